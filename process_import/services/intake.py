from __future__ import annotations

import logging
import mimetypes
import re
from typing import Any

from ..db.batches import insert_batch
from ..errors import EmptyUploadError, UnsupportedFileTypeError
from ..excel.reader import extract_extension
from ..models.batch import ImportBatch

"""Upload intake: accepts one spreadsheet and stores it as a waiting batch."""

__all__ = [
    "VALID_FILE_TYPES",
    "extension_for_mime",
    "guess_mime_type",
    "format_file_name",
    "register_upload",
]

logger = logging.getLogger(__name__)

VALID_FILE_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
    "text/csv": "csv",
    "application/csv": "csv",
}

_MIME_BY_EXTENSION = {ext: mime for mime, ext in VALID_FILE_TYPES.items() if mime != "application/csv"}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_\-.]")
_EXTENSION = re.compile(r"\.[^/.]+$")


def extension_for_mime(mime_type: str | None) -> str:
    try:
        return VALID_FILE_TYPES[mime_type or ""]
    except KeyError:
        raise UnsupportedFileTypeError(f"Formato de arquivo inválido: {mime_type}") from None


def guess_mime_type(file_name: str) -> str | None:
    """MIME type from the file name; spreadsheet extensions unknown to the platform map still resolve."""
    mime_type, _ = mimetypes.guess_type(file_name)
    if mime_type in VALID_FILE_TYPES:
        return mime_type
    return _MIME_BY_EXTENSION.get(extract_extension(file_name), mime_type)


def format_file_name(file_name: str, extension: str | None = None) -> str:
    """Spaces become underscores, unsafe characters are dropped, extension is rewritten."""
    formatted = _UNSAFE_CHARS.sub("", file_name.replace(" ", "_"))
    if not extension:
        return formatted
    if _EXTENSION.search(formatted):
        return _EXTENSION.sub(f".{extension}", formatted)
    return f"{formatted}.{extension}"


def register_upload(
    cursor: Any,
    *,
    name: str | None,
    original_file_name: str,
    data: bytes,
    mime_type: str | None,
    imported_by: str | None,
) -> ImportBatch:
    """Validate an upload and store it with status ``waiting``.

    Raises:
        EmptyUploadError: no file name or no content
        UnsupportedFileTypeError: MIME type outside the allow-list
    """
    if not original_file_name or not data:
        raise EmptyUploadError("Arquivo não inserido.")
    extension = extension_for_mime(mime_type)
    batch = insert_batch(
        cursor,
        name=name,
        file_name=format_file_name(original_file_name, extension),
        data=data,
        imported_by=imported_by,
    )
    logger.info("batch=%s registered file=%s", batch.id, batch.file_name)
    return batch
