"""
bill_logic/ - 京东账单对账引擎
────────────────────────────────────
纯 Python 函数, 不依赖 Web 层.
所有金额/数量使用 Decimal, 只在导出时保留两位小数.

模块结构:
- models.py: 列名常量, 单据类型/费用项枚举, 记录类型
- decimal_math.py: 精确十进制运算
- clean.py: 单元格清洗 (商品编号, 金额)
- log_sink.py: 处理日志回调
- grouping.py: 按订单编号分组
- rules.py: 订单组业务规则
- after_sales.py: 售后服务单抵扣
- non_sales.py: 非销售单金额吸收
- sku_merge.py: SKU 合并
- settlement.py: 结算单汇总与扣减
- statistics.py: 处理前后统计
- records.py: 表格读写
- order_pipeline.py: 订单对账主流程
"""

# 模型
from .models import (
    BillLine,
    DocumentType,
    FeeCategory,
    MergedLine,
    SettlementLine,
)

# 异常
from .errors import (
    BillError,
    IntegrityError,
    ValidationError,
)

# 日志
from .log_sink import LogCollector

# 处理步骤
from .grouping import group_by, group_by_order_number
from .rules import apply_business_rules
from .after_sales import apply_after_sales, compute_after_sales_compensation
from .non_sales import apply_non_sales_adjustments
from .sku_merge import (
    merge_same_sku,
    merge_skus,
    merge_within_orders,
    rewrite_recovery_freight,
)
from .statistics import Statistics, generate_statistics

# 主流程
from .order_pipeline import (
    OrderResult,
    process_multiple_files,
    process_order_data,
    reconcile_lines,
)
from .settlement import (
    SettlementDeduction,
    SettlementResult,
    apply_settlement_deductions,
    merge_deductions,
    merge_settlement_batches,
    process_settlement_data,
    validate_settlement_structure,
)

# 读写
from .records import (
    format_records,
    read_table,
    to_bill_lines,
    to_excel_bytes,
    validate_data_structure,
    validate_file,
)

__all__ = [
    # models
    "BillLine",
    "DocumentType",
    "FeeCategory",
    "MergedLine",
    "SettlementLine",
    # errors
    "BillError",
    "IntegrityError",
    "ValidationError",
    # log
    "LogCollector",
    # stages
    "group_by",
    "group_by_order_number",
    "apply_business_rules",
    "apply_after_sales",
    "compute_after_sales_compensation",
    "apply_non_sales_adjustments",
    "merge_same_sku",
    "merge_skus",
    "merge_within_orders",
    "rewrite_recovery_freight",
    "Statistics",
    "generate_statistics",
    # pipelines
    "OrderResult",
    "process_multiple_files",
    "process_order_data",
    "reconcile_lines",
    "SettlementDeduction",
    "SettlementResult",
    "apply_settlement_deductions",
    "merge_deductions",
    "merge_settlement_batches",
    "process_settlement_data",
    "validate_settlement_structure",
    # records
    "format_records",
    "read_table",
    "to_bill_lines",
    "to_excel_bytes",
    "validate_data_structure",
    "validate_file",
]
