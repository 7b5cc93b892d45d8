"""File naming helpers for the blob store.

On-disk names are ``<unix-ms>-<stem><suffix>.<ext>``. Content is never
hashed, so identical re-uploads produce distinct files. Two uploads of the
same stem in the same millisecond would clash; the blob store refuses the
second write and the orchestrator retries with the next millisecond.
"""

from __future__ import annotations

import re
import time
from pathlib import PurePosixPath, PureWindowsPath

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-z0-9._-]")

FALLBACK_STEM = "image"


def normalize_stem(filename: str) -> str:
    """Normalize an uploaded filename into a safe stem.

    Rules:
    - Drop any directory components (both / and \\ separators)
    - Strip the last extension
    - Collapse whitespace runs to a hyphen
    - Lowercase
    - Replace anything outside [a-z0-9._-] with a hyphen

    Examples:
        "Solar Panel.JPG" -> "solar-panel"
        "../../etc/passwd" -> "passwd"
        "roof  install.v2.png" -> "roof-install.v2"
        ".png" -> "image"
    """
    name = PureWindowsPath(PurePosixPath(filename).name).name
    stem, dot, _ext = name.rpartition(".")
    if not dot:
        stem = name
    stem = _WHITESPACE.sub("-", stem.strip()).lower()
    stem = _UNSAFE.sub("-", stem).strip(".")
    return stem or FALLBACK_STEM


def current_ms() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def timestamp_prefix(stem: str, now_ms: int | None = None) -> str:
    """Return the ``<unix-ms>-<stem>`` base name for a new upload."""
    if now_ms is None:
        now_ms = current_ms()
    return f"{now_ms}-{stem}"
