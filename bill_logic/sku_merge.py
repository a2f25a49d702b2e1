"""
bill_logic/sku_merge.py - SKU 合并
───────────────────────────────────────
① 订单内合并: (订单编号, 商品编号) 分组, 金额求和 = 总价, 总价/商品数量 = 单价
   - 合流共配回收运费 行改写为匹配货款行的副本, 金额取回收运费金额
② 跨订单合并: 总价 > 0 的行按商品编号累加 金额 / 商品数量 / 总价
   单价保留首次出现的值
"""
from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from .decimal_math import ZERO, add, safe_divide, total
from .errors import IntegrityError
from .log_sink import AddLog, emit
from .models import BillLine, FeeCategory, MergedLine

logger = logging.getLogger(__name__)

NAME_PREFIX_LEN = 10


def rewrite_recovery_freight(
    items: Sequence[BillLine],
    add_log: Optional[AddLog] = None,
) -> List[BillLine]:
    """
    同一订单内, 合流共配回收运费 行被替换为 商品名称 包含其前 10 个字的货款行副本,
    副本金额 = 回收运费金额. 多个货款行匹配时以最后一个为准.
    """
    result = list(items)
    for i, item in enumerate(items):
        if item.fee_category is not FeeCategory.RECOVERY_FREIGHT:
            continue
        prefix = item.product_name[:NAME_PREFIX_LEN]
        for goods in items:
            if goods.fee_category is FeeCategory.GOODS_PAYMENT and prefix in goods.product_name:
                result[i] = dataclasses.replace(goods, amount=item.amount)
        if result[i] is not item:
            emit(
                logger, add_log,
                f"订单 {item.order_number}: 合流共配回收运费 {item.amount} 计入商品 {result[i].product_code}",
            )
    return result


def merge_within_orders(
    lines: Sequence[BillLine],
    add_log: Optional[AddLog] = None,
) -> List[MergedLine]:
    by_order: Dict[str, List[BillLine]] = {}
    for line in lines:
        by_order.setdefault(line.order_number, []).append(line)

    grouped: Dict[tuple, List[BillLine]] = {}
    for order_number, items in by_order.items():
        for line in rewrite_recovery_freight(items, add_log):
            grouped.setdefault((order_number, line.product_code), []).append(line)

    candidates: List[MergedLine] = []
    for (order_number, code), items in grouped.items():
        total_price = total(item.amount for item in items)
        template = next(
            (item for item in items if item.fee_category is FeeCategory.GOODS_PAYMENT),
            items[0],
        )
        if template.quantity is None:
            raise IntegrityError(f"商品数量数据缺失 (订单 {order_number}, 商品 {code})")

        candidates.append(MergedLine(
            product_name=template.product_name,
            product_code=template.product_code,
            unit_price=safe_divide(total_price, template.quantity),
            quantity=template.quantity,
            total_price=total_price,
            amount=template.amount,
        ))
    return candidates


def merge_same_sku(
    candidates: Sequence[MergedLine],
    add_log: Optional[AddLog] = None,
) -> List[MergedLine]:
    """跨订单按商品编号合并. 总价为空或 <= 0 的行不输出."""
    merged: Dict[str, MergedLine] = {}
    dropped = 0
    for row in candidates:
        if row.total_price is None or row.total_price <= 0:
            dropped += 1
            continue
        existing = merged.get(row.product_code)
        if existing is None:
            merged[row.product_code] = row
            continue
        merged[row.product_code] = dataclasses.replace(
            existing,
            amount=add(existing.amount, row.amount),
            quantity=add(existing.quantity, row.quantity),
            total_price=add(existing.total_price, row.total_price),
        )

    if dropped:
        emit(logger, add_log, f"剔除总价为空或不大于 0 的记录 {dropped} 条")
    return list(merged.values())


def merge_skus(
    lines: Sequence[BillLine],
    add_log: Optional[AddLog] = None,
) -> List[MergedLine]:
    candidates = merge_within_orders(lines, add_log)
    merged = merge_same_sku(candidates, add_log)
    emit(logger, add_log, f"SKU 合并完成: {len(candidates)} 条订单商品 → {len(merged)} 个商品编号")
    return merged


def total_price_sum(rows: Sequence[MergedLine]) -> Decimal:
    return sum((r.total_price or ZERO for r in rows), ZERO)
