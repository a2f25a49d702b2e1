"""
bill_logic/records.py - 表格读写
────────────────────────────────────────────────────────────
账单文件 ↔ 行记录 ↔ BillLine

  • read_table(): xlsx / xls / csv → [{列名: 文本}] (全部按文本读, 不经 float)
    csv 先按 UTF-8 读, 失败或没有中文时改用 GB18030
  • validate_file(): 扩展名 + 大小
  • to_bill_lines(): 行记录 → BillLine (清洗编号/金额, 映射枚举)
  • format_records() / to_excel_bytes(): 导出时才保留两位小数
"""
from __future__ import annotations

import io
import logging
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .clean import clean_amount, clean_order_number, clean_product_code, clean_quantity, clean_string
from .decimal_math import format2, quantize2
from .errors import ValidationError
from .models import (
    COL_AMOUNT,
    COL_DOC_TYPE,
    COL_FEE_ITEM,
    COL_ORDER_NO,
    COL_PRODUCT_CODE,
    COL_PRODUCT_NAME,
    COL_QUANTITY,
    EXPORT_NUMERIC_FORMAT,
    NUMERIC_COLUMNS,
    PRODUCT_CODE_COLUMNS,
    PRODUCT_CODE_FORMAT,
    BillLine,
    DocumentType,
    FeeCategory,
)

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = (".xlsx", ".xls", ".csv")
FILE_SIZE_LIMIT = 50 * 1024 * 1024  # 50MB

_cjk_re = re.compile(r"[一-龥]")

FileSource = Union[str, Path, BinaryIO]


# ───────────── 文件校验 ──────────────────────────────────
def file_type(file_name: str) -> str:
    """文件名 → xlsx / xls / csv."""
    if not file_name or not isinstance(file_name, str):
        raise ValidationError("文件名无效")
    suffix = Path(file_name).suffix.lower()
    if suffix not in VALID_EXTENSIONS:
        raise ValidationError(
            f"不支持的文件格式: {file_name}。支持的格式: {', '.join(VALID_EXTENSIONS)}"
        )
    return suffix.lstrip(".")


def validate_file(file_name: str, size: int, max_size: int = FILE_SIZE_LIMIT) -> str:
    kind = file_type(file_name)
    if size > max_size:
        raise ValidationError(
            f"文件过大: {file_name} ({size / (1024 * 1024):.2f}MB)。"
            f"最大支持 {max_size / (1024 * 1024):.0f}MB"
        )
    return kind


# ───────────── 读取 ─────────────────────────────────────
def _read_bytes(source: FileSource) -> bytes:
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    pos = source.tell()
    source.seek(0)
    data = source.read()
    source.seek(pos)
    return data


def _read_csv(raw: bytes) -> pd.DataFrame:
    def _load(encoding: str) -> pd.DataFrame:
        return pd.read_csv(
            io.BytesIO(raw), encoding=encoding, dtype=str,
            keep_default_na=False, skip_blank_lines=True,
        )

    try:
        df = _load("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("CSV 不是 UTF-8 编码, 改用 GB18030")
        return _load("gb18030")

    if not any(_cjk_re.search(str(c)) for c in df.columns):
        try:
            gbk = _load("gb18030")
        except (UnicodeDecodeError, pd.errors.ParserError):
            return df
        if any(_cjk_re.search(str(c)) for c in gbk.columns):
            return gbk
    return df


def read_table(source: FileSource, file_name: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    读取账单文件的第一个工作表.

    Args:
        source: 路径或二进制文件对象
        file_name: 文件名 (source 为文件对象时用于判断类型)

    Returns:
        行记录列表, 空单元格为 ""
    """
    name = file_name or getattr(source, "name", None) or str(source)
    kind = file_type(name)
    raw = _read_bytes(source)

    try:
        if kind == "csv":
            df = _read_csv(raw)
        else:
            df = pd.read_excel(io.BytesIO(raw), sheet_name=0, dtype=str, keep_default_na=False)
    except (ValueError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"{name} 文件解析失败: {e}")

    df.columns = [clean_string(c) for c in df.columns]
    # 整行为空的行不算数据
    df = df[~(df == "").all(axis=1)]
    if df.empty:
        raise ValidationError(f"{name} 中没有数据")
    return df.to_dict(orient="records")


# ───────────── 行记录 → BillLine ─────────────────────────
def validate_data_structure(rows: Sequence[Mapping[str, Any]], required: Sequence[str]) -> None:
    if not rows:
        raise ValidationError("数据为空")
    first_row = rows[0]
    for column in required:
        if column not in first_row:
            logger.error("实际存在的列名: %s", list(first_row.keys()))
            raise ValidationError(f"缺少必要的列: {column}")


def to_bill_line(row: Mapping[str, Any], index: int = 0) -> BillLine:
    doc_label = clean_string(row.get(COL_DOC_TYPE))
    try:
        quantity = clean_quantity(row.get(COL_QUANTITY))
        amount = clean_amount(row.get(COL_AMOUNT))
    except InvalidOperation:
        raise ValidationError(
            f"第 {index + 1} 行 {COL_QUANTITY}/{COL_AMOUNT} 不是有效数字: "
            f"{row.get(COL_QUANTITY)!r} / {row.get(COL_AMOUNT)!r}"
        )
    return BillLine(
        order_number=clean_order_number(row.get(COL_ORDER_NO)),
        document_type=DocumentType.parse(doc_label),
        fee_category=FeeCategory.parse(clean_string(row.get(COL_FEE_ITEM))),
        product_code=clean_product_code(row.get(COL_PRODUCT_CODE)),
        product_name=clean_string(row.get(COL_PRODUCT_NAME)),
        quantity=quantity,
        amount=amount,
        document_label=doc_label,
    )


def to_bill_lines(rows: Iterable[Mapping[str, Any]]) -> List[BillLine]:
    return [to_bill_line(row, i) for i, row in enumerate(rows)]


# ───────────── 导出 ─────────────────────────────────────
def format_records(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Decimal → 两位小数字符串 (JSON 展示用)."""
    out = []
    for record in records:
        out.append({
            k: format2(v) if isinstance(v, Decimal) else ("" if v is None else v)
            for k, v in record.items()
        })
    return out


def to_frame(records: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    rows = []
    for record in records:
        row = {}
        for k, v in record.items():
            if k in PRODUCT_CODE_COLUMNS:
                row[k] = "" if v is None else str(v)
            elif isinstance(v, Decimal):
                row[k] = float(quantize2(v))
            else:
                row[k] = v
        rows.append(row)
    return pd.DataFrame(rows)


def to_excel_bytes(records: Sequence[Mapping[str, Any]], sheet_name: str = "处理结果") -> bytes:
    """商品编号列写成文本 (@), 数值列 0.00."""
    if not records:
        raise ValidationError("没有数据可导出")
    df = to_frame(records)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]
        for col_idx, header in enumerate(df.columns, start=1):
            if header in PRODUCT_CODE_COLUMNS:
                fmt = PRODUCT_CODE_FORMAT
            elif header in NUMERIC_COLUMNS:
                fmt = EXPORT_NUMERIC_FORMAT
            else:
                continue
            ws.column_dimensions[ws.cell(row=1, column=col_idx).column_letter].width = 20
            for (cell,) in ws.iter_rows(min_row=2, min_col=col_idx, max_col=col_idx):
                cell.number_format = fmt
    return buf.getvalue()
