"""
backend/app/api/files.py - 上传文件读取
───────────────────────────────────────────
UploadFile → 行记录. 校验扩展名和大小后交给 bill_logic.read_table.
"""

import io
from typing import Any, Dict, List, Sequence
from urllib.parse import quote

from fastapi import UploadFile

from bill_logic import read_table, validate_file
from backend.app.config import settings


async def read_uploads(files: Sequence[UploadFile]) -> List[List[Dict[str, Any]]]:
    """每个文件读成一批行记录, 顺序与上传顺序一致."""
    batches = []
    for file in files:
        name = file.filename or "upload.xlsx"
        contents = await file.read()
        validate_file(name, len(contents), settings.MAX_UPLOAD_SIZE)
        file_like = io.BytesIO(contents)
        file_like.name = name
        batches.append(read_table(file_like, name))
    return batches


def excel_headers(file_name: str) -> Dict[str, str]:
    # 中文文件名按 RFC 5987 编码
    return {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}",
    }


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
