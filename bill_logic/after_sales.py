"""
bill_logic/after_sales.py - 售后服务单抵扣
───────────────────────────────────────────────
1) 全批次 售后服务单 金额按商品编号累加 (规则过滤之前计算)
2) 每个商品编号只抵扣一次: 找到第一条 金额 > |售后合计| 的
   订单/取消退款单 行, 金额减去 |售后合计|
"""
from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from .decimal_math import ZERO
from .log_sink import INFO, AddLog, emit
from .models import BillLine, DocumentType

logger = logging.getLogger(__name__)

NETTABLE_TYPES = (DocumentType.ORDER, DocumentType.CANCEL_REFUND)


def compute_after_sales_compensation(lines: Iterable[BillLine]) -> Dict[str, Decimal]:
    """商品编号 → 售后服务单金额合计 (带符号)."""
    totals: Dict[str, Decimal] = {}
    for line in lines:
        if line.document_type is not DocumentType.AFTER_SALES:
            continue
        totals[line.product_code] = totals.get(line.product_code, ZERO) + line.amount
    return totals


def apply_after_sales(
    lines: Sequence[BillLine],
    compensation: Dict[str, Decimal],
    add_log: Optional[AddLog] = None,
) -> List[BillLine]:
    """
    按批次顺序扣减售后金额, 返回新列表 (输入不变).

    只有 订单 / 取消退款单 行参与匹配, 其余行原样透传.
    """
    result = list(lines)
    used = set()

    for i, line in enumerate(result):
        if line.document_type not in NETTABLE_TYPES:
            continue
        code = line.product_code
        if code in used:
            continue
        comp = compensation.get(code)
        if comp is None or comp == 0:
            continue
        comp_abs = abs(comp)
        if line.amount > comp_abs:
            new_amount = line.amount - comp_abs
            result[i] = dataclasses.replace(line, amount=new_amount)
            used.add(code)
            emit(
                logger, add_log,
                f"售后抵扣: 订单 {line.order_number} 商品 {code} "
                f"金额 {line.amount} - {comp_abs} = {new_amount}",
            )

    for code, comp in compensation.items():
        if comp != 0 and code not in used:
            emit(
                logger, add_log,
                f"商品 {code} 售后金额 {comp} 未找到金额更大的订单行，未抵扣",
                INFO,
            )
    return result
