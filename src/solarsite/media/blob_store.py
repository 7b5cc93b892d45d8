"""Flat filesystem store for uploaded files.

Files live directly under one directory and are published as
``<url_prefix>/<name>``. Blocking filesystem calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from solarsite.media.errors import BlobExistsError, BlobWriteError

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    """Outcome of a best-effort multi-file delete.

    A failed cleanup never fails the operation that triggered it; callers
    log the report and carry on.
    """

    deleted: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when nothing failed (missing files count as already gone)."""
        return not self.failed

    def as_dict(self) -> dict[str, object]:
        return {"deleted": self.deleted, "missing": self.missing, "failed": self.failed}


class BlobStore:
    """Write, delete and locate files in the upload directory."""

    def __init__(self, root: Path, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def url_for(self, name: str) -> str:
        return f"{self.url_prefix}/{name}"

    def name_from_url(self, url: str) -> str:
        """Return the file name a URL points at (its last path segment)."""
        return url.rstrip("/").rsplit("/", 1)[-1]

    def path_for(self, name: str) -> Path:
        """Resolve a file name inside the store.

        Raises:
            ValueError: The name is empty or contains path components.
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    async def write(self, name: str, data: bytes) -> str:
        """Write a new file atomically and return its public URL.

        Existing files are never replaced: two assets can not end up sharing
        one file.

        Raises:
            BlobExistsError: A file with this name is already stored.
            BlobWriteError: Disk full, permission denied, etc.
        """
        path = self.path_for(name)
        try:
            await asyncio.to_thread(self._write_atomic, path, data)
        except OSError as e:
            raise BlobWriteError(f"Could not write {name}: {e.strerror or e}") from e
        return self.url_for(name)

    async def delete(self, name: str) -> None:
        """Delete one file. Raises FileNotFoundError if it does not exist."""
        await asyncio.to_thread(self.path_for(name).unlink)

    async def delete_urls(self, urls: Iterable[str]) -> CleanupReport:
        """Best-effort delete of every file the URLs reference."""
        report = CleanupReport()
        for url in urls:
            name = self.name_from_url(url)
            try:
                await self.delete(name)
            except FileNotFoundError:
                report.missing.append(name)
            except (OSError, ValueError) as e:
                report.failed[name] = str(e)
            else:
                report.deleted.append(name)

        if report.failed:
            logger.warning("Blob cleanup incomplete: %s", report.as_dict())
        elif report.missing:
            logger.info("Blob cleanup: files already gone: %s", report.missing)
        return report

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid4().hex}.part")
        try:
            tmp.write_bytes(data)
            # link() fails instead of replacing when the name is taken
            try:
                os.link(tmp, path)
            except FileExistsError:
                raise BlobExistsError(f"{path.name} already exists") from None
        finally:
            tmp.unlink(missing_ok=True)
