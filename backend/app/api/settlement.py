"""
backend/app/api/settlement.py - 结算单汇总 API
───────────────────────────────────────────────────
bill_logic.process_settlement_data() 的薄 API 层.
多个结算单文件逐个校验, 按上传顺序拼成一批处理.
"""

from typing import List

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from bill_logic import (
    BillError,
    LogCollector,
    format_records,
    merge_settlement_batches,
    process_settlement_data,
    to_excel_bytes,
)
from bill_logic.decimal_math import format2

from backend.app.api.files import XLSX_MEDIA_TYPE, excel_headers, read_uploads
from backend.app.models import LogEntry, SettlementItem, SettlementResponse

router = APIRouter(prefix="/settlement", tags=["Settlement"])


async def _load_rows(files: List[UploadFile]) -> list:
    return merge_settlement_batches(await read_uploads(files))


@router.post("", response_model=SettlementResponse)
@router.post("/", response_model=SettlementResponse)
async def settle(
    files: List[UploadFile] = File(..., description="结算单文件 (xlsx/xls/csv, 可多个)"),
) -> SettlementResponse:
    """结算单按商品编号汇总."""
    collector = LogCollector()
    try:
        rows = await _load_rows(files)
        result = process_settlement_data(rows, collector)
    except BillError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    return SettlementResponse(
        files=[f.filename or "" for f in files],
        amount_column=result.amount_column,
        compensation=format2(result.compensation),
        compensated_code=result.compensated_code,
        items=[SettlementItem(**row) for row in format_records(result.to_records())],
        logs=[LogEntry(**e) for e in collector.entries],
    )


@router.post("/export")
async def export_settlement(
    files: List[UploadFile] = File(..., description="结算单文件 (xlsx/xls/csv, 可多个)"),
) -> Response:
    """结算单汇总结果导出为 Excel."""
    try:
        rows = await _load_rows(files)
        result = process_settlement_data(rows)
        content = to_excel_bytes(result.to_records(), sheet_name="结算单汇总")
    except BillError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers=excel_headers("结算单汇总.xlsx"),
    )
