"""
bill_logic/decimal_math.py - 精确十进制运算
───────────────────────────────────────────
金额/数量全部用 Decimal 计算, 不经过 float.

• to_decimal(): 任意单元格值 → Decimal (float 先转 str)
• safe_divide(): 除数为 0 / 缺失时返回 0 (无销量即无单价)
• quantize2(): 仅在导出时保留两位小数
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

ZERO = Decimal(0)
CENT = Decimal("0.01")


def _finite(d: Decimal) -> Decimal:
    # NaN / Infinity 不是金额
    if not d.is_finite():
        raise InvalidOperation(f"非有限数值: {d}")
    return d


def to_decimal(value) -> Optional[Decimal]:
    """单元格值转 Decimal. 空值返回 None, 无法解析或非有限值抛 InvalidOperation."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return _finite(value)
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value:  # NaN
            return None
        return _finite(Decimal(repr(value)))
    text = str(value).strip()
    if not text:
        return None
    return _finite(Decimal(text))


def add(*values: Optional[Decimal]) -> Decimal:
    total = ZERO
    for v in values:
        if v is not None:
            total += v
    return total


def total(values: Iterable[Optional[Decimal]]) -> Decimal:
    return add(*values)


def safe_divide(numerator: Decimal, denominator: Optional[Decimal]) -> Decimal:
    if denominator is None or denominator == 0:
        return ZERO
    return numerator / denominator


def is_zero(value: Optional[Decimal]) -> bool:
    return value is not None and value == 0


def sign(value: Decimal) -> int:
    return -1 if value < 0 else 1


def quantize2(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # 超出 context 精度的极大值, 原样返回
        return value


def format2(value: Optional[Decimal]) -> str:
    q = quantize2(value)
    return "" if q is None else f"{q:.2f}"


def percent(part: int, whole: int) -> Decimal:
    """part/whole*100, 两位小数."""
    if not whole:
        return quantize2(ZERO)
    return quantize2(Decimal(part) / Decimal(whole) * 100)
