from __future__ import annotations

import os
import secrets
import time

import structlog

from core.config import settings
from domain.errors import InvalidInputError


log = structlog.get_logger(__name__)

PUBLIC_PREFIX = "/uploads"


class UploadStorage:
    """Local disk storage for user uploads, served statically under /uploads."""

    def __init__(self, base_dir: str | None = None, max_bytes: int | None = None) -> None:
        self.base_dir = os.path.abspath(base_dir or settings.uploads_dir)
        self.max_bytes = max_bytes if max_bytes is not None else settings.upload_max_bytes
        os.makedirs(self.base_dir, exist_ok=True)

    @staticmethod
    def make_name(filename: str | None) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"

    def put_bytes(self, data: bytes, filename: str | None = None) -> str:
        if len(data) > self.max_bytes:
            raise InvalidInputError(f"File is larger than {self.max_bytes} bytes")
        name = self.make_name(filename)
        with open(os.path.join(self.base_dir, name), "wb") as f:
            f.write(data)
        log.info("upload_saved", name=name, size=len(data))
        return f"{PUBLIC_PREFIX}/{name}"

    def get_path(self, reference: str) -> str:
        name = os.path.basename(reference)
        return os.path.join(self.base_dir, name)
