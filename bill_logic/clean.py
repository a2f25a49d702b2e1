"""bill_logic/clean.py – 单元格清洗
---------------------------------------------------
• clean_string(): 去掉 Tab / 换行 和首尾空白
• clean_product_code(): Excel 的 ="123456" 前缀、科学计数/小数尾巴 → 纯编号
• clean_amount(): ¥ ￥ $ 千分位 空白 → Decimal
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from .decimal_math import ZERO, to_decimal

_ws_re = re.compile(r"[\t\n\r]")
_excel_text_re = re.compile(r'^="([^"]+)"$')
_currency_re = re.compile(r"[¥￥$,\s]")
_float_tail_re = re.compile(r"^(\d+)\.0+$")


def clean_string(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:
        return ""
    return _ws_re.sub("", str(value)).strip()


def _to_int_str(val: str) -> str:
    """10200796175741.0 / 1.0200796175741e13 → 10200796175741."""
    m = _float_tail_re.match(val)
    if m:
        return m.group(1)
    if "e" in val or "E" in val:
        try:
            d = Decimal(val)
        except InvalidOperation:
            return val
        if d == d.to_integral_value():
            return str(int(d))
    return val


def clean_product_code(value) -> str:
    if isinstance(value, float) and value == value and value.is_integer():
        return str(int(value))
    s = clean_string(value)
    if s.startswith("=") and '"' in s:
        m = _excel_text_re.match(s)
        if m:
            s = m.group(1)
    return _to_int_str(s)


def clean_order_number(value) -> str:
    # 订单编号与商品编号有同样的 Excel 数字化问题
    return clean_product_code(value)


def clean_amount(value) -> Decimal:
    """金额单元格 → Decimal, 空值记 0."""
    if isinstance(value, str):
        value = _currency_re.sub("", value)
    d = to_decimal(value)
    return ZERO if d is None else d


def clean_quantity(value):
    """数量单元格 → Decimal, 空值保留 None (下游据此判断数量缺失)."""
    if isinstance(value, str):
        value = _currency_re.sub("", value)
    return to_decimal(value)
