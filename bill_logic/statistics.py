"""
bill_logic/statistics.py - 处理前后统计
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Dict, Sequence

from .decimal_math import percent
from .models import BillLine


@dataclass(frozen=True)
class Statistics:
    original_count: int
    processed_count: int
    filtered_count: int
    original_orders: int
    processed_orders: int
    original_types: Dict[str, int] = field(default_factory=dict)
    processed_types: Dict[str, int] = field(default_factory=dict)
    filter_rate: Decimal = Decimal("0.00")

    def to_dict(self) -> dict:
        return asdict(self)


def _type_histogram(lines: Sequence[BillLine]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for line in lines:
        counts[line.label] = counts.get(line.label, 0) + 1
    return counts


def _distinct_orders(lines: Sequence[BillLine]) -> int:
    return len({line.order_number for line in lines})


def generate_statistics(original: Sequence[BillLine], processed: Sequence[BillLine]) -> Statistics:
    """
    original: 原始账单行; processed: 规则过滤、售后/非销售调整后的账单行.
    filter_rate = (原始 - 处理后) / 原始 * 100, 两位小数.
    """
    original_count = len(original)
    processed_count = len(processed)
    filtered_count = original_count - processed_count
    return Statistics(
        original_count=original_count,
        processed_count=processed_count,
        filtered_count=filtered_count,
        original_orders=_distinct_orders(original),
        processed_orders=_distinct_orders(processed),
        original_types=_type_histogram(original),
        processed_types=_type_histogram(processed),
        filter_rate=percent(filtered_count, original_count),
    )
