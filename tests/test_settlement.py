from decimal import Decimal

import pytest

from bill_logic import (
    LogCollector,
    SettlementDeduction,
    SettlementLine,
    ValidationError,
    apply_settlement_deductions,
    merge_deductions,
    merge_settlement_batches,
    process_settlement_data,
    validate_settlement_structure,
)


def srow(code, fee, amount, quantity=None, amount_col="应结金额"):
    r = {"商品编号": code, "费用名称": fee, amount_col: amount}
    if quantity is not None:
        r["商品数量"] = quantity
    return r


def test_compensation_goes_to_first_sku_exceeding_it():
    rows = [
        srow("S1", "售后卖家赔付费", "-20"),
        srow("P15", "货款", "15"),
        srow("P30", "货款", "30"),
    ]
    result = process_settlement_data(rows)

    amounts = {l.product_code: l.settled_amount for l in result.lines}
    assert amounts == {"P15": Decimal(15), "P30": Decimal(10)}
    assert result.compensated_code == "P30"
    assert result.compensation == Decimal(-20)


def test_compensation_applied_to_exactly_one_sku():
    rows = [
        srow("", "售后卖家赔付费", "-5"),
        srow("A", "货款", "50"),
        srow("B", "货款", "60"),
    ]
    result = process_settlement_data(rows)
    assert [l.settled_amount for l in result.lines] == [Decimal(45), Decimal(60)]


def test_direct_fee_attached_and_net_amount_computed():
    rows = [
        srow("A", "货款", "100", quantity="2"),
        srow("A", "直营服务费", "-6"),
        srow("A", "货款", "-50", quantity="1"),
        srow("B", "货款", "20", quantity="1"),
    ]
    result = process_settlement_data(rows)
    a, b = result.lines

    assert a.settled_amount == 50
    # 数量按当前行金额的正负号累加: 2 - 1
    assert a.quantity == 1
    assert a.direct_operation_fee == -6
    assert a.net_amount == 44
    assert b.direct_operation_fee == 0
    assert b.net_amount == 20
    assert a.to_record() == {
        "商品编号": "A", "应结金额": Decimal(50), "数量": Decimal(1),
        "直营服务费": Decimal(-6), "净结金额": Decimal(44),
    }


def test_zero_settled_amount_is_dropped():
    rows = [
        srow("A", "货款", "10"),
        srow("A", "货款", "-10"),
        srow("B", "货款", "5"),
    ]
    result = process_settlement_data(rows)
    assert [l.product_code for l in result.lines] == ["B"]


def test_without_fee_name_column_every_row_is_goods_payment():
    rows = [
        {"商品编号": '="A"', "金额": "¥1,000.50"},
        {"商品编号": "A", "金额": "20"},
    ]
    result = process_settlement_data(rows)
    assert result.amount_column == "金额"
    assert [(l.product_code, l.settled_amount) for l in result.lines] == [("A", Decimal("1020.50"))]
    assert result.lines[0].quantity is None
    assert "数量" not in result.lines[0].to_record()


def test_unmatched_compensation_is_logged():
    log = LogCollector()
    result = process_settlement_data([
        srow("", "售后卖家赔付费", "-100"),
        srow("A", "货款", "30"),
    ], log)
    assert result.compensated_code is None
    assert result.lines[0].settled_amount == 30
    assert any("未抵扣" in m for m in log.messages("info"))


def test_amount_column_is_first_known_one_present():
    assert validate_settlement_structure([{"商品编号": "A", "总金额": 1, "合计金额": 2}]) == "合计金额"


def test_settlement_validation_errors():
    with pytest.raises(ValidationError, match="数据为空"):
        process_settlement_data([])
    with pytest.raises(ValidationError, match="商品编号"):
        process_settlement_data([{"应结金额": 1}])
    with pytest.raises(ValidationError, match="缺少金额列"):
        process_settlement_data([{"商品编号": "A", "费用名称": "货款"}])


def test_non_finite_amount_is_a_validation_error():
    with pytest.raises(ValidationError, match="不是有效数字"):
        process_settlement_data([srow("A", "货款", "Infinity")])


# ─────────────────────────
# 多文件
# ─────────────────────────
def test_batches_are_validated_one_by_one():
    first = [srow("A", "货款", "10")]
    assert merge_settlement_batches([first, [srow("B", "货款", "99")]]) == first + [srow("B", "货款", "99")]

    with pytest.raises(ValidationError, match="第 2 个文件: 缺少必要的列: 商品编号"):
        merge_settlement_batches([first, [{"SKU": "B", "费用名称": "货款", "应结金额": "99"}]])
    with pytest.raises(ValidationError, match="第 2 个文件金额列为 金额"):
        merge_settlement_batches([first, [srow("B", "货款", "99", amount_col="金额")]])
    with pytest.raises(ValidationError, match="费用名称"):
        merge_settlement_batches([first, [{"商品编号": "B", "应结金额": "99"}]])
    with pytest.raises(ValidationError):
        merge_settlement_batches([])


# ─────────────────────────
# 扣减
# ─────────────────────────
def settled(code, amount, quantity="10", fee="-6"):
    return SettlementLine(
        product_code=code,
        settled_amount=Decimal(amount),
        quantity=None if quantity is None else Decimal(quantity),
        direct_operation_fee=Decimal(fee),
    )


def deduction(code, amount="0", quantity="0", fee="0"):
    return SettlementDeduction(code, Decimal(amount), Decimal(quantity), Decimal(fee))


def test_deductions_with_same_code_are_merged():
    merged = merge_deductions([
        deduction("A", "10", "1", "2"),
        deduction("", "99", "9"),
        deduction('="A"', "5.5", "2", "-1"),
        deduction("B", "3", "1"),
    ])
    assert merged == [deduction("A", "15.5", "3", "1"), deduction("B", "3", "1")]


def test_deduction_updates_quantity_amount_fee_and_net():
    lines = [settled("A", "100"), settled("B", "50", fee="0")]
    log = LogCollector()
    result = apply_settlement_deductions(lines, [
        deduction("A", "20.10", "2", "4"),
        deduction("A", "0", "1", "0"),
    ], log)

    a, b = result
    assert a.quantity == 7
    assert a.settled_amount == Decimal("79.90")
    assert a.direct_operation_fee == -2
    assert a.net_amount == Decimal("77.90")
    assert b == lines[1]
    # 输入不变
    assert lines[0].settled_amount == 100
    assert log.entries[-1]["severity"] == "success"


def test_negative_service_fee_input_still_reduces_the_charge():
    result = apply_settlement_deductions([settled("A", "100")], [deduction("A", fee="-5")])
    assert result[0].direct_operation_fee == -1


def test_unknown_code_rejects_whole_deduction():
    with pytest.raises(ValidationError, match="未找到: X"):
        apply_settlement_deductions([settled("A", "100")], [deduction("A", "1", "1"), deduction("X", "1")])


def test_short_quantity_rejects_whole_deduction():
    lines = [settled("A", "100", quantity="2"), settled("B", "10", quantity=None)]
    with pytest.raises(ValidationError, match="数量不足"):
        apply_settlement_deductions(lines, [deduction("A", "1", "3")])
    with pytest.raises(ValidationError, match="B"):
        apply_settlement_deductions(lines, [deduction("B", "1", "1")])
    # 没有数量列时只扣金额
    result = apply_settlement_deductions(lines, [deduction("B", "4")])
    assert result[1].quantity is None
    assert result[1].settled_amount == 6
