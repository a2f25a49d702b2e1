"""
bill_logic/order_pipeline.py - 订单账单对账流程
───────────────────────────────────────────────────
行记录 → 校验 → BillLine → 按订单分组 → 业务规则 → 售后抵扣
      → 非销售单吸收 → SKU 合并 → 统计

每次调用独立, 不修改输入, 不保留任何状态.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence

from .after_sales import NETTABLE_TYPES, apply_after_sales, compute_after_sales_compensation
from .errors import ValidationError
from .grouping import group_by_order_number
from .log_sink import ERROR, SUCCESS, AddLog, emit
from .models import REQUIRED_ORDER_COLUMNS, BillLine, MergedLine
from .non_sales import apply_non_sales_adjustments
from .records import to_bill_lines, validate_data_structure
from .rules import apply_business_rules
from .sku_merge import merge_skus, total_price_sum
from .statistics import Statistics, generate_statistics

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


@dataclass
class OrderResult:
    merged: List[MergedLine]
    # 规则过滤 + 售后/非销售调整后的账单行
    lines: List[BillLine]
    statistics: Statistics

    @property
    def total_amount(self) -> Decimal:
        return total_price_sum(self.merged)

    def to_records(self) -> List[dict]:
        return [m.to_record() for m in self.merged]


def reconcile_lines(
    original: Sequence[BillLine],
    add_log: Optional[AddLog] = None,
) -> OrderResult:
    """已清洗的 BillLine 批次 → 对账结果."""
    emit(logger, add_log, "步骤1: 按订单编号分组")
    grouped = group_by_order_number(original, add_log)
    emit(logger, add_log, f"按订单编号分组完成，共 {len(grouped)} 个订单组")

    emit(logger, add_log, "步骤2: 应用业务规则")
    kept = apply_business_rules(grouped, add_log)

    emit(logger, add_log, "步骤3: 扣除售后服务单金额")
    # 售后合计基于整批原始数据, 不受规则过滤影响
    compensation = compute_after_sales_compensation(original)
    netted = apply_after_sales(kept, compensation, add_log)

    emit(logger, add_log, "步骤4: 吸收非销售单金额")
    adjusted = apply_non_sales_adjustments(netted, add_log)

    order_lines = [line for line in adjusted if line.document_type in NETTABLE_TYPES]
    if not order_lines:
        raise ValidationError("没有找到订单类型的数据")

    emit(logger, add_log, "步骤5: 合并相同商品编号")
    merged = merge_skus(order_lines, add_log)

    statistics = generate_statistics(original, adjusted)
    result = OrderResult(merged=merged, lines=adjusted, statistics=statistics)
    emit(
        logger, add_log,
        f"数据处理完成: {len(merged)} 个商品，总金额 ¥{result.total_amount:.2f}",
        SUCCESS,
    )
    return result


def process_order_data(rows: Sequence[Row], add_log: Optional[AddLog] = None) -> OrderResult:
    """订单导出行记录 (列名 → 值) 的完整处理流程."""
    try:
        emit(logger, add_log, "开始数据处理流程")
        validate_data_structure(rows, REQUIRED_ORDER_COLUMNS)
        lines = to_bill_lines(rows)
        return reconcile_lines(lines, add_log)
    except Exception as e:
        emit(logger, add_log, f"数据处理失败: {e}", ERROR)
        raise


def process_multiple_files(
    batches: Sequence[Sequence[Row]],
    add_log: Optional[AddLog] = None,
) -> OrderResult:
    """多个文件的行记录按上传顺序拼成一批处理."""
    if not batches:
        raise ValidationError("没有文件数据需要处理")
    all_rows: List[Row] = []
    for i, rows in enumerate(batches, start=1):
        validate_data_structure(rows, REQUIRED_ORDER_COLUMNS)
        emit(logger, add_log, f"合并第 {i} 个文件，数据行数: {len(rows)}")
        all_rows.extend(rows)
    emit(logger, add_log, f"所有文件数据合并完成，总数据行数: {len(all_rows)}")
    return process_order_data(all_rows, add_log)
