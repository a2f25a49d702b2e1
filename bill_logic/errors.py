"""
bill_logic/errors.py - 对账异常
"""


class BillError(ValueError):
    """账单处理错误基类."""


class ValidationError(BillError):
    """数据为空、缺少必要列、文件格式/大小不合法."""


class IntegrityError(BillError):
    """货款模板行缺少商品数量, 无法计算单价."""
