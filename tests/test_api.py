import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from backend.app.main import app

ORDER_CSV = (
    "订单编号,单据类型,费用项,商品编号,商品名称,商品数量,金额\n"
    "1001,订单,货款,A,商品A,2,100\n"
    "1001,订单,直营服务费,A,商品A,2,-5\n"
    "1002,订单,货款,B,商品B,1,80\n"
    "1002,取消退款单,货款,B,商品B,1,-80\n"
)

SETTLEMENT_CSV = (
    "商品编号,费用名称,应结金额\n"
    ",售后卖家赔付费,-20\n"
    "P15,货款,15\n"
    "P30,货款,30\n"
    "P30,直营服务费,-3\n"
)


@pytest.fixture
def client():
    return TestClient(app)


def upload(*contents, name="bill.csv"):
    return [("files", (name, text.encode("utf-8"), "text/csv")) for text in contents]


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_reconcile_orders(client):
    res = client.post("/reconcile/orders", files=upload(ORDER_CSV))
    assert res.status_code == 200
    body = res.json()
    assert body["items"] == [
        {"商品名称": "商品A", "商品编号": "A", "单价": "50.00", "商品数量": "2.00", "总价": "100.00"},
    ]
    assert body["total_amount"] == "100.00"
    assert body["statistics"]["original_count"] == 4
    assert body["statistics"]["processed_count"] == 1
    assert body["statistics"]["filter_rate"] == "75.00"
    assert body["logs"][-1]["severity"] == "success"


def test_reconcile_orders_merges_multiple_files(client):
    second = "订单编号,单据类型,费用项,商品编号,商品名称,商品数量,金额\n2001,订单,货款,A,商品A,1,40\n"
    res = client.post("/reconcile/orders", files=upload(ORDER_CSV, second))
    assert res.status_code == 200
    body = res.json()
    assert body["items"][0]["总价"] == "140.00"
    assert body["items"][0]["商品数量"] == "3.00"


def test_missing_column_is_bad_request(client):
    res = client.post("/reconcile/orders", files=upload("订单编号,金额\n1,10\n"))
    assert res.status_code == 400
    assert "缺少必要的列" in res.json()["detail"]


def test_unsupported_file_type_is_bad_request(client):
    res = client.post("/reconcile/orders", files=upload(ORDER_CSV, name="bill.txt"))
    assert res.status_code == 400
    assert "不支持的文件格式" in res.json()["detail"]


def test_reconcile_export_returns_workbook(client):
    res = client.post("/reconcile/orders/export", files=upload(ORDER_CSV))
    assert res.status_code == 200
    assert res.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    ws = load_workbook(io.BytesIO(res.content)).active
    assert ws.title == "处理结果"
    assert ws["B2"].value == "A"
    assert ws["E2"].value == 100


def test_settlement(client):
    res = client.post("/settlement", files=upload(SETTLEMENT_CSV))
    assert res.status_code == 200
    body = res.json()
    assert body["amount_column"] == "应结金额"
    assert body["compensated_code"] == "P30"
    assert body["items"] == [
        {"商品编号": "P15", "应结金额": "15.00", "数量": None, "直营服务费": "0.00", "净结金额": "15.00"},
        {"商品编号": "P30", "应结金额": "10.00", "数量": None, "直营服务费": "-3.00", "净结金额": "7.00"},
    ]


def test_settlement_export(client):
    res = client.post("/settlement/export", files=upload(SETTLEMENT_CSV))
    assert res.status_code == 200
    ws = load_workbook(io.BytesIO(res.content)).active
    assert ws.title == "结算单汇总"
    assert [c.value for c in ws[1]] == ["商品编号", "应结金额", "直营服务费", "净结金额"]


def test_settlement_rejects_second_file_with_other_columns(client):
    other = "SKU,费用名称,金额\nB,货款,99\n"
    res = client.post("/settlement", files=upload(SETTLEMENT_CSV, other))
    assert res.status_code == 400
    assert "第 2 个文件" in res.json()["detail"]


def test_settlement_rejects_second_file_with_other_amount_column(client):
    other = "商品编号,费用名称,金额\nB,货款,99\n"
    res = client.post("/settlement/export", files=upload(SETTLEMENT_CSV, other))
    assert res.status_code == 400
    assert "金额列" in res.json()["detail"]


def test_settlement_without_amount_column_is_bad_request(client):
    res = client.post("/settlement", files=upload("商品编号,费用名称\nA,货款\n"))
    assert res.status_code == 400
    assert "缺少金额列" in res.json()["detail"]
