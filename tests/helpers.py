from decimal import Decimal

from bill_logic.models import BillLine, DocumentType, FeeCategory


def line(order, doc, fee, code, amount, quantity="1", name=None):
    """测试用 BillLine 构造."""
    return BillLine(
        order_number=order,
        document_type=DocumentType.parse(doc),
        fee_category=FeeCategory.parse(fee),
        product_code=code,
        product_name=name if name is not None else f"商品{code}",
        quantity=None if quantity is None else Decimal(quantity),
        amount=Decimal(str(amount)),
        document_label=doc,
    )


def row(order, doc, fee, code, amount, quantity=1, name=None):
    """测试用 原始行记录 (导出表格的一行)."""
    return {
        "订单编号": order,
        "单据类型": doc,
        "费用项": fee,
        "商品编号": code,
        "商品名称": name if name is not None else f"商品{code}",
        "商品数量": quantity,
        "金额": amount,
    }
