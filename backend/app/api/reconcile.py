"""
backend/app/api/reconcile.py - 订单账单对账 API
───────────────────────────────────────────────────
bill_logic.process_multiple_files() 的薄 API 层.
"""

from typing import List

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from bill_logic import BillError, LogCollector, format_records, process_multiple_files, to_excel_bytes
from bill_logic.decimal_math import format2

from backend.app.api.files import XLSX_MEDIA_TYPE, excel_headers, read_uploads
from backend.app.models import LogEntry, MergedItem, OrderReconcileResponse, StatisticsModel

router = APIRouter(prefix="/reconcile", tags=["Reconcile"])


@router.post("/orders", response_model=OrderReconcileResponse)
async def reconcile_orders(
    files: List[UploadFile] = File(..., description="订单账单文件 (xlsx/xls/csv, 可多个)"),
) -> OrderReconcileResponse:
    """
    订单账单对账.

    多个文件按上传顺序合并为一批, 返回 SKU 合并结果、统计和处理日志.
    """
    collector = LogCollector()
    try:
        batches = await read_uploads(files)
        result = process_multiple_files(batches, collector)
    except BillError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    stats = result.statistics.to_dict()
    stats["filter_rate"] = format2(result.statistics.filter_rate)
    return OrderReconcileResponse(
        files=[f.filename or "" for f in files],
        items=[MergedItem(**row) for row in format_records(result.to_records())],
        total_amount=format2(result.total_amount),
        statistics=StatisticsModel(**stats),
        logs=[LogEntry(**e) for e in collector.entries],
    )


@router.post("/orders/export")
async def export_orders(
    files: List[UploadFile] = File(..., description="订单账单文件 (xlsx/xls/csv, 可多个)"),
) -> Response:
    """订单对账结果导出为 Excel."""
    try:
        batches = await read_uploads(files)
        result = process_multiple_files(batches)
        content = to_excel_bytes(result.to_records())
    except BillError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers=excel_headers("订单对账结果.xlsx"),
    )
