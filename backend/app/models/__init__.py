"""
backend/app/models - Pydantic 模型定义
───────────────────────────────────────────
响应序列化用 Pydantic 模型.
"""

from .schemas import (
    # 通用
    HealthResponse,
    LogEntry,
    # 订单对账
    MergedItem,
    StatisticsModel,
    OrderReconcileResponse,
    # 结算单
    SettlementItem,
    SettlementResponse,
)

__all__ = [
    "HealthResponse",
    "LogEntry",
    "MergedItem",
    "StatisticsModel",
    "OrderReconcileResponse",
    "SettlementItem",
    "SettlementResponse",
]
