"""
bill_logic/non_sales.py - 非销售单金额吸收
───────────────────────────────────────────────
每条 非销售单 (订单编号+商品编号 去重) 在整个当前数据集里
按顺序找第一条 金额 > |非销售金额| 的行, 金额 += 非销售金额 (带符号).

匹配范围不限同订单/同商品. 返回新列表, 输入不变.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Sequence, Tuple

from .log_sink import INFO, AddLog, emit
from .models import BillLine, DocumentType

logger = logging.getLogger(__name__)


def adjustment_key(line: BillLine) -> Tuple[str, str]:
    return line.order_number, line.product_code


def apply_non_sales_adjustments(
    lines: Sequence[BillLine],
    add_log: Optional[AddLog] = None,
) -> List[BillLine]:
    result = list(lines)
    positions = [
        i for i, line in enumerate(result)
        if line.document_type is DocumentType.NON_SALES
    ]
    emit(logger, add_log, f"找到非销售单数量: {len(positions)}")

    processed = set()
    for pos in positions:
        # 读当前值: 非销售单本身也可能已被前一笔调整改过
        adjustment = result[pos]
        key = adjustment_key(adjustment)
        label = "/".join(key)
        if key in processed:
            emit(logger, add_log, f"非销售单 {label} 已处理过，跳过")
            continue
        processed.add(key)

        amount = adjustment.amount
        amount_abs = abs(amount)
        for i, row in enumerate(result):
            if row.amount > amount_abs:
                new_amount = row.amount + amount
                result[i] = dataclasses.replace(row, amount=new_amount)
                emit(
                    logger, add_log,
                    f"非销售单金额调整: {label} 金额 {amount} → "
                    f"订单 {row.order_number} 商品 {row.product_code} "
                    f"{row.amount} → {new_amount}",
                )
                break
        else:
            emit(
                logger, add_log,
                f"非销售单 {label} 金额 {amount} 未找到金额更大的记录，未调整",
                INFO,
            )
    return result
