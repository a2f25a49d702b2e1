"""
backend/app/models/schemas.py - Pydantic 模型
───────────────────────────────────────────────────────
响应序列化用. 计算逻辑在 bill_logic/ 中.
金额字段在这里已格式化为两位小数字符串.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ─────────────────────────────────────
# 通用
# ─────────────────────────────────────
class HealthResponse(BaseModel):
    """健康检查响应."""
    status: str = "ok"
    version: str = "1.0.0"


class LogEntry(BaseModel):
    """处理日志."""
    message: str
    severity: str = "info"


# ─────────────────────────────────────
# 订单对账
# ─────────────────────────────────────
class MergedItem(BaseModel):
    """SKU 合并结果行."""
    商品名称: str = Field(..., description="商品名称")
    商品编号: str = Field(..., description="商品编号")
    单价: str = Field(..., description="单价")
    商品数量: str = Field(..., description="商品数量")
    总价: str = Field(..., description="总价")


class StatisticsModel(BaseModel):
    """处理前后统计."""
    original_count: int
    processed_count: int
    filtered_count: int
    original_orders: int
    processed_orders: int
    original_types: Dict[str, int] = Field(default_factory=dict)
    processed_types: Dict[str, int] = Field(default_factory=dict)
    filter_rate: str = Field(..., description="过滤比例 (%)")


class OrderReconcileResponse(BaseModel):
    """订单对账响应."""
    success: bool = True
    files: List[str] = Field(default_factory=list)
    items: List[MergedItem]
    total_amount: str = Field(..., description="总金额")
    statistics: StatisticsModel
    logs: List[LogEntry] = Field(default_factory=list)


# ─────────────────────────────────────
# 结算单
# ─────────────────────────────────────
class SettlementItem(BaseModel):
    """结算单汇总行."""
    商品编号: str
    应结金额: str
    数量: Optional[str] = None
    直营服务费: str
    净结金额: str


class SettlementResponse(BaseModel):
    """结算单响应."""
    success: bool = True
    files: List[str] = Field(default_factory=list)
    amount_column: str = Field(..., description="实际使用的金额列")
    compensation: str = Field(..., description="售后卖家赔付费合计")
    compensated_code: Optional[str] = Field(default=None, description="承担赔付的商品编号")
    items: List[SettlementItem]
    logs: List[LogEntry] = Field(default_factory=list)
