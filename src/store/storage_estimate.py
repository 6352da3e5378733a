"""Best-effort storage usage estimation for the offline stores."""

from __future__ import annotations

import math
from pathlib import Path
import shutil
from typing import Iterable

from core.types import StorageInfo

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    """Render a byte count with a binary unit, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    exponent = min(int(math.floor(math.log(size, 1024))), len(_BYTE_UNITS) - 1)
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {_BYTE_UNITS[exponent]}"


def estimate_storage(files: Iterable[Path], root: Path) -> StorageInfo:
    """Estimate usage of ``files`` against the quota of the disk holding ``root``.

    The quota is free disk space plus what the cache already uses.
    Returns zeros when the host cannot report disk usage.
    """
    try:
        used = sum(path.stat().st_size for path in files if path.exists())
        free = shutil.disk_usage(_existing_ancestor(root)).free
    except OSError:
        return StorageInfo()
    available = free + used
    percentage = (used / available) * 100 if available > 0 else 0.0
    return StorageInfo(
        used=used,
        available=available,
        percentage=percentage,
        formatted_used=format_bytes(used),
        formatted_available=format_bytes(available),
    )


def _existing_ancestor(path: Path) -> Path:
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return path
