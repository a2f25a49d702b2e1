from decimal import Decimal

import pytest

from bill_logic import (
    LogCollector,
    ValidationError,
    generate_statistics,
    process_multiple_files,
    process_order_data,
    to_bill_lines,
)

from helpers import line, row


def sample_rows():
    return [
        # 纯订单: 直营服务费被过滤
        row("1001", "订单", "货款", "A", "100", quantity=2),
        row("1001", "订单", "直营服务费", "A", "-5", quantity=2),
        # 含取消退款单: 整组剔除
        row("1002", "订单", "货款", "B", "80", quantity=1),
        row("1002", "取消退款单", "货款", "B", "-80", quantity=1),
        # 混合类型: 全部保留, 售后 -10 抵扣商品 A 的第一条 > 10 的订单行
        row("1003", "订单", "货款", "A", "60", quantity=1),
        row("1003", "售后服务单", "货款", "A", "-10", quantity=1),
        # 非销售单 -7 吸收到第一条金额 > 7 的行
        row("1004", "非销售单", "货款", "C", "-7", quantity=1),
        row("1005", "订单", "货款", "C", "40", quantity=4),
    ]


def test_full_order_pipeline():
    log = LogCollector()
    result = process_order_data(sample_rows(), log)

    records = result.to_records()
    assert [r["商品编号"] for r in records] == ["A", "C"]
    a, c = result.merged
    # A: 1001 的 100 先扣售后 10 → 90, 再吸收非销售 -7 → 83; 加上 1003 的 60
    assert a.total_price == Decimal(143)
    assert a.quantity == Decimal(3)
    assert a.unit_price == Decimal("41.5")
    assert c.total_price == Decimal(40)
    assert c.unit_price == Decimal(10)
    assert result.total_amount == Decimal(183)
    assert log.entries[-1]["severity"] == "success"


def test_refund_orders_never_reach_output():
    result = process_order_data(sample_rows())
    assert "B" not in {m.product_code for m in result.merged}
    assert "1002" not in {l.order_number for l in result.lines}


def test_totals_are_conserved_when_nothing_is_filtered():
    rows = [
        row("1", "订单", "货款", "A", "10.10", quantity=1),
        row("2", "订单", "货款", "B", "20.20", quantity=2),
        row("3", "订单", "货款", "A", "0.30", quantity=1),
    ]
    result = process_order_data(rows)
    survived = sum(l.amount for l in result.lines)
    assert sum(m.total_price for m in result.merged) == survived == Decimal("30.60")


def test_statistics_before_and_after():
    result = process_order_data(sample_rows())
    stats = result.statistics

    assert stats.original_count == 8
    assert stats.processed_count == 5
    assert stats.filtered_count == 3
    assert stats.original_orders == 5
    assert stats.processed_orders == 4
    assert stats.original_types["取消退款单"] == 1
    assert "取消退款单" not in stats.processed_types
    assert stats.filter_rate == Decimal("37.50")


def test_statistics_keep_raw_document_labels():
    original = [
        line("1", "订单", "货款", "A", 10),
        line("1", "调账单", "货款", "A", 1),
        line("2", "订单", "货款", "B", 5),
    ]
    stats = generate_statistics(original, original[:1])
    assert stats.original_types == {"订单": 2, "调账单": 1}
    assert stats.processed_types == {"订单": 1}
    assert stats.original_orders == 2
    assert stats.processed_orders == 1
    assert stats.filter_rate == Decimal("66.67")


def test_after_sales_in_refunded_order_still_nets_other_orders():
    rows = [
        # 整组因取消退款单被剔除, 但其中的售后金额仍计入合计
        row("2001", "订单", "货款", "X", "50"),
        row("2001", "取消退款单", "货款", "X", "-50"),
        row("2001", "售后服务单", "货款", "A", "-10"),
        row("3001", "订单", "货款", "A", "100", quantity=2),
    ]
    result = process_order_data(rows)

    assert [(l.order_number, l.amount) for l in result.lines] == [("3001", Decimal(90))]
    assert [(m.product_code, m.total_price, m.unit_price) for m in result.merged] == [
        ("A", Decimal(90), Decimal(45)),
    ]


def test_non_finite_amount_is_a_validation_error():
    rows = [
        row("1", "订单", "货款", "A", "100"),
        row("2", "非销售单", "货款", "B", "NaN"),
    ]
    with pytest.raises(ValidationError, match="不是有效数字"):
        process_order_data(rows)


def test_missing_column_fails_before_processing():
    rows = sample_rows()
    del rows[0]["金额"]
    with pytest.raises(ValidationError, match="缺少必要的列: 金额"):
        process_order_data(rows)


def test_empty_batch_fails():
    with pytest.raises(ValidationError, match="数据为空"):
        process_order_data([])
    with pytest.raises(ValidationError):
        process_multiple_files([])


def test_batch_without_order_lines_fails():
    with pytest.raises(ValidationError, match="没有找到订单类型的数据"):
        process_order_data([row("1", "售后服务单", "货款", "A", "-3")])


def test_multiple_files_are_processed_as_one_batch():
    first = [row("1", "订单", "货款", "A", "10")]
    second = [row("2", "订单", "货款", "A", "15")]
    result = process_multiple_files([first, second])
    assert len(result.merged) == 1
    assert result.merged[0].total_price == Decimal(25)


def test_input_rows_are_not_mutated():
    rows = sample_rows()
    snapshot = [dict(r) for r in rows]
    process_order_data(rows)
    assert rows == snapshot


def test_log_sink_failure_does_not_change_results():
    def broken(message, severity):
        raise RuntimeError("sink down")

    expected = process_order_data(sample_rows()).to_records()
    assert process_order_data(sample_rows(), broken).to_records() == expected


def test_bill_lines_keep_raw_document_label():
    lines = to_bill_lines([row("1", "调账单", "货款", '="A"', "1")])
    assert lines[0].document_type.value == "其他"
    assert lines[0].label == "调账单"
    assert lines[0].product_code == "A"
