"""
bill_logic/models.py - 账单数据模型
───────────────────────────────────────
京东账单导出行 → 内部记录类型.

• 列名常量 (订单导出 / 结算单导出)
• 单据类型、费用项 枚举 (未知取值落到 OTHER)
• BillLine / MergedLine / SettlementLine 不可变记录
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

# ─────────────────────────
# 订单导出列名
# ─────────────────────────
COL_ORDER_NO = "订单编号"
COL_DOC_TYPE = "单据类型"
COL_FEE_ITEM = "费用项"
COL_PRODUCT_CODE = "商品编号"
COL_PRODUCT_NAME = "商品名称"
COL_QUANTITY = "商品数量"
COL_AMOUNT = "金额"

REQUIRED_ORDER_COLUMNS = (
    COL_ORDER_NO,
    COL_DOC_TYPE,
    COL_FEE_ITEM,
    COL_PRODUCT_CODE,
    COL_PRODUCT_NAME,
    COL_QUANTITY,
    COL_AMOUNT,
)

# 输出列
COL_UNIT_PRICE = "单价"
COL_TOTAL_PRICE = "总价"

# ─────────────────────────
# 结算单列名
# ─────────────────────────
# 金额列按顺序取第一个存在的
SETTLEMENT_AMOUNT_COLUMNS = ("应结金额", "金额", "合计金额", "总金额")
COL_FEE_NAME = "费用名称"
COL_SETTLED_AMOUNT = "应结金额"
COL_SETTLED_QUANTITY = "数量"
COL_DIRECT_FEE = "直营服务费"
COL_NET_AMOUNT = "净结金额"

# 导出格式
EXPORT_NUMERIC_FORMAT = "0.00"
PRODUCT_CODE_FORMAT = "@"
PRODUCT_CODE_COLUMNS = ("商品编码", "商品编号")
NUMERIC_COLUMNS = (
    COL_QUANTITY, COL_UNIT_PRICE, COL_TOTAL_PRICE,
    COL_SETTLED_AMOUNT, COL_SETTLED_QUANTITY, COL_DIRECT_FEE, COL_NET_AMOUNT,
)


class _Label(str, Enum):
    """中文标签枚举. 无法识别的标签解析为 OTHER."""

    @classmethod
    def parse(cls, raw) -> "_Label":
        if raw is None:
            return cls.OTHER
        text = str(raw).strip()
        for member in cls:
            if member.value == text:
                return member
        return cls.OTHER


class DocumentType(_Label):
    ORDER = "订单"
    CANCEL_REFUND = "取消退款单"
    AFTER_SALES = "售后服务单"
    NON_SALES = "非销售单"
    OTHER = "其他"


class FeeCategory(_Label):
    GOODS_PAYMENT = "货款"
    DIRECT_SERVICE_FEE = "直营服务费"
    RECOVERY_FREIGHT = "合流共配回收运费"
    AFTER_SALES_COMPENSATION = "售后卖家赔付费"
    OTHER = "其他"


@dataclass(frozen=True)
class BillLine:
    """账单导出的一行 (单个费用项)."""

    order_number: str
    document_type: DocumentType
    fee_category: FeeCategory
    product_code: str
    product_name: str
    quantity: Optional[Decimal]
    amount: Decimal
    # 原始单据类型文字, 统计直方图用
    document_label: str = ""

    @property
    def label(self) -> str:
        return self.document_label or self.document_type.value


@dataclass(frozen=True)
class MergedLine:
    """SKU 合并后的输出行."""

    product_name: str
    product_code: str
    unit_price: Decimal
    quantity: Optional[Decimal]
    total_price: Optional[Decimal]
    # 模板货款行自身的金额, 不出现在导出结果中
    amount: Decimal = Decimal(0)

    def to_record(self) -> dict:
        return {
            COL_PRODUCT_NAME: self.product_name,
            COL_PRODUCT_CODE: self.product_code,
            COL_UNIT_PRICE: self.unit_price,
            COL_QUANTITY: self.quantity,
            COL_TOTAL_PRICE: self.total_price,
        }


@dataclass(frozen=True)
class SettlementLine:
    """结算单按商品编号汇总后的输出行."""

    product_code: str
    settled_amount: Decimal
    quantity: Optional[Decimal] = None
    direct_operation_fee: Decimal = Decimal(0)

    @property
    def net_amount(self) -> Decimal:
        return self.settled_amount + self.direct_operation_fee

    def to_record(self) -> dict:
        record = {
            COL_PRODUCT_CODE: self.product_code,
            COL_SETTLED_AMOUNT: self.settled_amount,
        }
        if self.quantity is not None:
            record[COL_SETTLED_QUANTITY] = self.quantity
        record[COL_DIRECT_FEE] = self.direct_operation_fee
        record[COL_NET_AMOUNT] = self.net_amount
        return record
