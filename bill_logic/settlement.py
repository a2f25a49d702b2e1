"""
bill_logic/settlement.py - 结算单汇总
───────────────────────────────────────────
结算单导出 (费用名称 + 应结金额 等列) 按商品编号合并.

  • 金额列: 应结金额 / 金额 / 合计金额 / 总金额, 以首行第一个存在的为准
  • 售后卖家赔付费: 全批次累加, 整笔计入第一个 应结金额 > |赔付合计| 的商品
  • 直营服务费: 按商品编号累加, 附加到输出行
  • 货款 (无 费用名称 列时全部行): 按商品编号累加应结金额,
    数量按当前行金额的正负号带符号累加
  • 调整前应结金额为 0 的商品不输出
  • 多文件: 逐个校验后拼接 (merge_settlement_batches)
  • 扣减: 按商品编号扣数量/货款, 冲减直营服务费 (apply_settlement_deductions)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .clean import clean_amount, clean_product_code, clean_quantity, clean_string
from .decimal_math import ZERO, sign
from .errors import ValidationError
from .log_sink import INFO, SUCCESS, AddLog, emit
from .models import (
    COL_FEE_NAME,
    COL_PRODUCT_CODE,
    COL_QUANTITY,
    SETTLEMENT_AMOUNT_COLUMNS,
    FeeCategory,
    SettlementLine,
)

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


@dataclass
class _Merged:
    settled_amount: Decimal = ZERO
    quantity: Decimal = ZERO


@dataclass
class SettlementResult:
    lines: List[SettlementLine]
    amount_column: str
    compensation: Decimal = ZERO
    # 承担赔付的商品编号, 未抵扣时为 None
    compensated_code: Optional[str] = None
    processed_count: int = 0
    skipped_count: int = 0
    direct_fees: Dict[str, Decimal] = field(default_factory=dict)

    def to_records(self) -> List[dict]:
        return [line.to_record() for line in self.lines]


def find_amount_column(first_row: Row) -> Optional[str]:
    return next((col for col in SETTLEMENT_AMOUNT_COLUMNS if col in first_row), None)


def validate_settlement_structure(rows: Sequence[Row]) -> str:
    """校验结算单结构, 返回实际使用的金额列名."""
    if not rows:
        raise ValidationError("数据为空")
    first_row = rows[0]
    if COL_PRODUCT_CODE not in first_row:
        raise ValidationError(f"缺少必要的列: {COL_PRODUCT_CODE}")
    amount_column = find_amount_column(first_row)
    if amount_column is None:
        raise ValidationError(
            f"缺少金额列，请确保文件包含以下任一列: {', '.join(SETTLEMENT_AMOUNT_COLUMNS)}"
        )
    return amount_column


def _amount(row: Row, column: str, index: int) -> Decimal:
    try:
        return clean_amount(row.get(column))
    except InvalidOperation:
        raise ValidationError(f"第 {index + 1} 行 {column} 不是有效数字: {row.get(column)!r}")


def _quantity(row: Row, index: int) -> Decimal:
    try:
        q = clean_quantity(row.get(COL_QUANTITY))
    except InvalidOperation:
        raise ValidationError(f"第 {index + 1} 行 {COL_QUANTITY} 不是有效数字: {row.get(COL_QUANTITY)!r}")
    return ZERO if q is None else q


def process_settlement_data(
    rows: Sequence[Row],
    add_log: Optional[AddLog] = None,
) -> SettlementResult:
    amount_column = validate_settlement_structure(rows)
    first_row = rows[0]
    has_fee_name = COL_FEE_NAME in first_row
    has_quantity = COL_QUANTITY in first_row

    emit(
        logger, add_log,
        f"结算单: {len(rows)} 行, 金额列 {amount_column}, "
        f"费用名称列 {'有' if has_fee_name else '无'}, 数量列 {'有' if has_quantity else '无'}",
    )

    # ① 预扫描: 售后卖家赔付费合计 + 直营服务费
    compensation = ZERO
    direct_fees: Dict[str, Decimal] = {}
    if has_fee_name:
        for i, row in enumerate(rows):
            fee = FeeCategory.parse(clean_string(row.get(COL_FEE_NAME)))
            if fee is FeeCategory.AFTER_SALES_COMPENSATION:
                compensation += _amount(row, amount_column, i)
            elif fee is FeeCategory.DIRECT_SERVICE_FEE:
                code = clean_product_code(row.get(COL_PRODUCT_CODE))
                if code:
                    direct_fees[code] = direct_fees.get(code, ZERO) + _amount(row, amount_column, i)

    # ② 货款合并
    merged: Dict[str, _Merged] = {}
    processed = skipped = 0
    for i, row in enumerate(rows):
        if has_fee_name:
            fee = FeeCategory.parse(clean_string(row.get(COL_FEE_NAME)))
            if fee is not FeeCategory.GOODS_PAYMENT:
                skipped += 1
                continue
        processed += 1
        code = clean_product_code(row.get(COL_PRODUCT_CODE))
        amount = _amount(row, amount_column, i)
        entry = merged.setdefault(code, _Merged())
        entry.settled_amount += amount
        if has_quantity:
            entry.quantity += _quantity(row, i) * sign(amount)

    emit(logger, add_log, f"货款记录 {processed} 行, 跳过 {skipped} 行, 合并为 {len(merged)} 个商品编号")

    # ③ 赔付费只扣一个 SKU
    compensated_code = None
    if compensation != 0:
        compensation_abs = abs(compensation)
        compensated_code = next(
            (code for code, entry in merged.items() if entry.settled_amount > compensation_abs),
            None,
        )
        if compensated_code is None:
            emit(
                logger, add_log,
                f"售后卖家赔付费 {compensation} 未找到应结金额更大的商品，未抵扣",
                INFO,
            )
        else:
            emit(logger, add_log, f"售后卖家赔付费 {compensation} 计入商品 {compensated_code}")

    # ④ 组装
    lines: List[SettlementLine] = []
    for code, entry in merged.items():
        if entry.settled_amount == 0:
            continue
        settled = entry.settled_amount
        if code == compensated_code:
            settled += compensation
        lines.append(SettlementLine(
            product_code=code,
            settled_amount=settled,
            quantity=entry.quantity if has_quantity else None,
            direct_operation_fee=direct_fees.get(code, ZERO),
        ))

    emit(logger, add_log, f"结算单处理完成: 输出 {len(lines)} 个商品", SUCCESS)
    return SettlementResult(
        lines=lines,
        amount_column=amount_column,
        compensation=compensation,
        compensated_code=compensated_code,
        processed_count=processed,
        skipped_count=skipped,
        direct_fees=direct_fees,
    )


def merge_settlement_batches(batches: Sequence[Sequence[Row]]) -> List[Row]:
    """
    多个结算单文件按上传顺序拼成一批.

    每个文件单独校验结构; 金额列与 费用名称 列必须与第一个文件一致.
    """
    if not batches:
        raise ValidationError("没有文件数据需要处理")
    rows: List[Row] = []
    first_column = first_has_fee_name = None
    for i, batch in enumerate(batches, start=1):
        try:
            amount_column = validate_settlement_structure(batch)
        except ValidationError as e:
            raise ValidationError(f"第 {i} 个文件: {e}")
        has_fee_name = COL_FEE_NAME in batch[0]
        if first_column is None:
            first_column, first_has_fee_name = amount_column, has_fee_name
        elif amount_column != first_column:
            raise ValidationError(
                f"第 {i} 个文件金额列为 {amount_column}，与第 1 个文件的 {first_column} 不一致"
            )
        elif has_fee_name != first_has_fee_name:
            raise ValidationError(f"第 {i} 个文件 {COL_FEE_NAME} 列与第 1 个文件不一致")
        rows.extend(batch)
    return rows


# ───────────── 结算单扣减 ──────────────────────────────
@dataclass(frozen=True)
class SettlementDeduction:
    """一条扣减输入: 从某商品的汇总行中扣掉货款与数量, 并冲减直营服务费."""

    product_code: str
    amount: Decimal = ZERO
    quantity: Decimal = ZERO
    service_fee: Decimal = ZERO


def merge_deductions(deductions: Iterable[SettlementDeduction]) -> List[SettlementDeduction]:
    """相同商品编号的扣减行累加合并, 空编号忽略."""
    merged: Dict[str, SettlementDeduction] = {}
    for d in deductions:
        code = clean_product_code(d.product_code)
        if not code:
            continue
        prev = merged.get(code)
        if prev is None:
            merged[code] = replace(d, product_code=code)
        else:
            merged[code] = replace(
                prev,
                amount=prev.amount + d.amount,
                quantity=prev.quantity + d.quantity,
                service_fee=prev.service_fee + d.service_fee,
            )
    return list(merged.values())


def apply_settlement_deductions(
    lines: Sequence[SettlementLine],
    deductions: Iterable[SettlementDeduction],
    add_log: Optional[AddLog] = None,
) -> List[SettlementLine]:
    """
    按商品编号扣减汇总结果, 返回新列表.

      • 数量 -= 扣减数量, 应结金额 -= 扣减货款
      • 直营服务费 += |服务费| (服务费为负数扣除项, 输入正数即减小扣除)
      • 净结金额随之重算

    先整体校验: 任一商品编号不存在或数量不足都抛 ValidationError, 不做部分扣减.
    """
    merged = merge_deductions(deductions)
    index = {line.product_code: i for i, line in enumerate(lines)}

    missing = [d.product_code for d in merged if d.product_code not in index]
    if missing:
        raise ValidationError(f"以下商品编号未找到: {', '.join(missing)}")

    insufficient = []
    for d in merged:
        current = lines[index[d.product_code]].quantity or ZERO
        if current < d.quantity:
            insufficient.append(f"{d.product_code} (当前: {current}, 需要: {d.quantity})")
    if insufficient:
        raise ValidationError(f"以下商品编号数量不足: {'; '.join(insufficient)}")

    result = list(lines)
    for d in merged:
        i = index[d.product_code]
        line = result[i]
        quantity = line.quantity
        if quantity is not None or d.quantity != 0:
            quantity = (quantity or ZERO) - d.quantity
        result[i] = replace(
            line,
            quantity=quantity,
            settled_amount=line.settled_amount - d.amount,
            direct_operation_fee=line.direct_operation_fee + abs(d.service_fee),
        )
        emit(
            logger, add_log,
            f"商品 {d.product_code} 扣减: 数量 {d.quantity}, 货款 {d.amount}, 服务费 {d.service_fee} "
            f"→ 净结金额 {line.net_amount} → {result[i].net_amount}",
        )

    emit(logger, add_log, f"结算单扣减完成: {len(merged)} 个商品", SUCCESS)
    return result
