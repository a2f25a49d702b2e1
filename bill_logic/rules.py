"""
bill_logic/rules.py - 订单组业务规则
───────────────────────────────────────
逐个订单组判断:
  1) 含 取消退款单 → 整组剔除
  2) 单据类型只有 订单 → 剔除 费用项=直营服务费 的行
  3) 其他混合类型 → 原样保留
只做过滤, 不改金额.
"""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from .log_sink import INFO, SUCCESS, AddLog, emit
from .models import BillLine, DocumentType, FeeCategory

logger = logging.getLogger(__name__)


def apply_business_rules(
    grouped: Mapping[str, Sequence[BillLine]],
    add_log: Optional[AddLog] = None,
) -> List[BillLine]:
    result: List[BillLine] = []
    processed_groups = 0
    filtered_groups = 0
    filtered_rows = 0

    for order_number, group in grouped.items():
        processed_groups += 1
        doc_types = {line.document_type for line in group}

        if DocumentType.CANCEL_REFUND in doc_types:
            emit(
                logger, add_log,
                f"订单 {order_number}: 包含取消退款单，过滤整个订单组 ({len(group)} 行)",
            )
            filtered_groups += 1
            filtered_rows += len(group)
            continue

        if doc_types == {DocumentType.ORDER}:
            kept = [
                line for line in group
                if line.fee_category is not FeeCategory.DIRECT_SERVICE_FEE
            ]
            removed = len(group) - len(kept)
            if removed:
                emit(logger, add_log, f"订单 {order_number}: 过滤掉 {removed} 行直营服务费")
                filtered_rows += removed
            result.extend(kept)
        else:
            emit(
                logger, add_log,
                f"订单 {order_number}: 混合单据类型，保留所有行 ({len(group)} 行)",
                INFO,
            )
            result.extend(group)

    emit(
        logger, add_log,
        f"处理完成: 共处理 {processed_groups} 个订单组，过滤 {filtered_groups} 个订单组，"
        f"过滤 {filtered_rows} 行数据",
        SUCCESS,
    )
    return result
