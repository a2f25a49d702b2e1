"""
bill_logic/grouping.py - 分组
───────────────────────────────
按订单编号 (或任意键) 分组, 保留键和行的首次出现顺序.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from .log_sink import WARNING, AddLog, emit
from .models import BillLine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def group_by(
    rows: Iterable[T],
    key: Callable[[T], str],
    add_log: Optional[AddLog] = None,
) -> Dict[str, List[T]]:
    """
    按 key 分组. 键为空的行跳过并记录 warning, 不产生分组.

    Returns:
        {key: [row, ...]}, dict 保持插入顺序
    """
    grouped: Dict[str, List[T]] = {}
    for row in rows:
        k = key(row)
        if not k:
            emit(logger, add_log, "发现空订单编号，跳过该行", WARNING)
            continue
        grouped.setdefault(k, []).append(row)
    return grouped


def group_by_order_number(
    lines: Iterable[BillLine],
    add_log: Optional[AddLog] = None,
) -> Dict[str, List[BillLine]]:
    return group_by(lines, lambda line: line.order_number, add_log)
