from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import settings
from ..core.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    relative_path: str
    public_path: str
    local_path: Optional[str] = None


@dataclass
class RetrievedFile:
    content: bytes
    content_type: str


class StorageService:
    """Keeps uploaded artifacts (payment proofs, QR images) under the uploads directory."""

    @property
    def upload_root(self) -> Path:
        return settings.uploads_root_path

    @property
    def public_prefix(self) -> str:
        return settings.uploads_public_prefix.strip("/")

    def _normalize_relative(self, relative_path: str) -> str:
        relative = relative_path.strip().lstrip("/")
        if relative.startswith(self.public_prefix + "/"):
            relative = relative.split("/", 1)[1]
        if ".." in Path(relative).parts:
            raise ValueError("Relative upload paths may not leave the uploads directory.")
        return relative

    def _build_public_path(self, relative_path: str) -> str:
        if self.public_prefix.startswith("http"):
            return f"{self.public_prefix.rstrip('/')}/{relative_path}"
        return f"/{self.public_prefix}/{relative_path}"

    def save_file(self, relative_path: str, content: bytes, content_type: Optional[str] = None) -> StoredFile:
        relative = self._normalize_relative(relative_path)
        destination = self.upload_root / relative
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(content)
        logger.info(
            "Stored upload %s (%s, %d bytes)",
            relative,
            content_type or mimetypes.guess_type(relative)[0] or "application/octet-stream",
            len(content),
        )
        return StoredFile(
            relative_path=relative,
            public_path=self._build_public_path(relative),
            local_path=str(destination),
        )

    def retrieve_file(self, path: str) -> RetrievedFile:
        relative = self._normalize_relative(path)
        source = self.upload_root / relative
        if not source.exists():
            raise NotFoundError("File not found.")
        content_type = mimetypes.guess_type(relative)[0] or "application/octet-stream"
        return RetrievedFile(content=source.read_bytes(), content_type=content_type)


storage_service = StorageService()
