"""
bill_logic/log_sink.py - 处理日志
───────────────────────────────────
各处理步骤通过 add_log(message, severity) 上报决策过程
(过滤了哪个订单组、抵扣了哪笔售后、跳过了哪一行).

add_log 由调用方注入; 同时写入模块 logger.
add_log 自身出错不影响计算结果.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

AddLog = Callable[[str, str], None]

INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

_LEVELS = {
    INFO: logging.INFO,
    SUCCESS: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
}


def emit(
    logger: logging.Logger,
    add_log: Optional[AddLog],
    message: str,
    severity: str = INFO,
) -> None:
    logger.log(_LEVELS.get(severity, logging.INFO), message)
    if add_log is None:
        return
    try:
        add_log(message, severity)
    except Exception:  # noqa: BLE001 - 日志通道故障不得影响对账结果
        logger.debug("add_log 回调失败, 已忽略", exc_info=True)


class LogCollector:
    """收集处理日志, API 响应里原样返回."""

    def __init__(self) -> None:
        self.entries: List[Dict[str, str]] = []

    def __call__(self, message: str, severity: str = INFO) -> None:
        self.entries.append({"message": message, "severity": severity})

    def messages(self, severity: Optional[str] = None) -> List[str]:
        return [
            e["message"] for e in self.entries
            if severity is None or e["severity"] == severity
        ]
