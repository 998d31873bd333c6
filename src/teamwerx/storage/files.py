"""Small filesystem helpers shared by the file-backed stores."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from teamwerx.errors import TeamwerxValidationError


def atomic_write_text(path: Path, text: str) -> None:
    """Write *text* to *path* through a temp file and ``os.replace``.

    Readers see either the old or the new file, never a partial one.  The
    parent directory is created when missing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def validate_name(value: str, field: str) -> str:
    """Check that *value* is usable as a single path component."""
    name = (value or "").strip()
    if not name:
        raise TeamwerxValidationError(
            f"{field} cannot be empty",
            context={"field": field, "value": value},
        )
    if name in (".", "..") or "/" in name or "\\" in name or name.startswith(".archive"):
        raise TeamwerxValidationError(
            f"{field} '{value}' is not a valid name",
            context={"field": field, "value": value},
        )
    return name
