"""
Multipart form helpers shared by the seller, product and upload routes.

Storefront forms send snake_case or camelCase field names depending on the
page, and browsers submit an empty file part when a file input is left
blank. These helpers normalize both.
"""

import asyncio
import re
from typing import Optional

from starlette.datastructures import FormData, UploadFile

from delicacies.exceptions import PayloadTooLargeError
from delicacies.storage.uploads import UploadSink

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def form_text(form: FormData, *names: str) -> Optional[str]:
    """First non-empty text value among the given field names."""
    for name in names:
        value = form.get(name)
        if isinstance(value, str) and value != "":
            return value
    return None


def parse_float(value: Optional[str]) -> Optional[float]:
    """Leading decimal number of a form value, or None."""
    match = _LEADING_FLOAT.match(value) if value else None
    return float(match.group(0)) if match else None


def parse_int(value: Optional[str]) -> Optional[int]:
    """Leading integer of a form value, or None ("3.5" gives 3)."""
    match = _LEADING_INT.match(value) if value else None
    return int(match.group(0)) if match else None


def _is_file(value) -> bool:
    return isinstance(value, UploadFile) and bool(value.filename)


def form_file(form: FormData, name: str) -> Optional[UploadFile]:
    """First non-empty file submitted under name."""
    for value in form.getlist(name):
        if _is_file(value):
            return value
    return None


def form_files(form: FormData, name: str, limit: Optional[int] = None) -> list[UploadFile]:
    files = [value for value in form.getlist(name) if _is_file(value)]
    return files[:limit] if limit is not None else files


async def store_upload(sink: UploadSink, upload: Optional[UploadFile]) -> Optional[str]:
    """
    Persist one uploaded file and return its URL, or None if absent.

    At most max_bytes + 1 bytes are read, so an oversized file is rejected
    without buffering all of it.
    """
    if upload is None:
        return None
    sink.check_type(upload.content_type)
    content = await upload.read(sink.max_bytes + 1)
    if len(content) > sink.max_bytes:
        raise PayloadTooLargeError(sink.max_bytes)
    return await asyncio.to_thread(
        sink.store, upload.filename, content, content_type=upload.content_type,
    )
