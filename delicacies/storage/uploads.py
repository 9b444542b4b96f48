"""
Upload Sink

Writes uploaded images to a local directory and hands back the URL path
they are served from.

Filenames are "<millisecond timestamp>-<sanitized original name>". Two
uploads with the same sanitized name in the same millisecond land on the
same file and the second overwrites the first.
"""

import re
import time
from pathlib import Path
from typing import Iterable, Optional, Union

from loguru import logger

from ..exceptions import PayloadTooLargeError, ValidationError

DEFAULT_ALLOWED_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")
DEFAULT_MAX_BYTES = 5 * 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_filename(name: str) -> str:
    """Replace every character outside [a-zA-Z0-9._-] with '_'."""
    return _UNSAFE_CHARS.sub("_", str(name))


class UploadSink:
    """
    Local-disk image store.

    Usage:
        sink = UploadSink("./uploads", url_prefix="/api/uploads")
        url = sink.store("khaja.jpg", data, content_type="image/jpeg")
    """

    def __init__(
        self,
        upload_dir: Union[str, Path],
        url_prefix: str = "/api/uploads",
        allowed_types: Optional[Iterable[str]] = DEFAULT_ALLOWED_TYPES,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.allowed_types = set(allowed_types) if allowed_types else None
        self.max_bytes = max_bytes

    def make_filename(self, original_name: str) -> str:
        return f"{int(time.time() * 1000)}-{sanitize_filename(original_name)}"

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def check_type(self, content_type: Optional[str]) -> None:
        if self.allowed_types is not None and content_type not in self.allowed_types:
            raise ValidationError("Invalid file type", detail=f"Unsupported type: {content_type}")

    def store(
        self,
        original_name: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Persist one file.

        Args:
            original_name: Client-side filename
            content: File bytes
            content_type: MIME type reported by the client

        Returns:
            URL path of the stored file

        Raises:
            ValidationError: If the content type is not an allowed image type
            PayloadTooLargeError: If the file exceeds max_bytes
        """
        self.check_type(content_type)

        if len(content) > self.max_bytes:
            raise PayloadTooLargeError(self.max_bytes)

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = self.make_filename(original_name or "upload")
        (self.upload_dir / filename).write_bytes(content)

        logger.info(f"Stored upload: {filename} ({len(content) // 1024}KB)")
        return self.url_for(filename)

    def resolve(self, filename: str) -> Optional[Path]:
        """Path of a stored file, or None if missing or outside the upload dir."""
        if not filename or filename != sanitize_filename(filename) or filename in (".", ".."):
            return None
        path = self.upload_dir / filename
        return path if path.is_file() else None
