"""File-backed change store.

Layout::

    <changes_dir>/<change_id>/change.json
    <changes_dir>/.archive/<change_id>/change.json   (after archive)
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from teamwerx.config import TeamwerxConfig
from teamwerx.errors import (
    TeamwerxMalformedStateError,
    TeamwerxNotFoundError,
    TeamwerxValidationError,
)
from teamwerx.models import Change, ChangeStatus
from teamwerx.observability import get_logger
from teamwerx.storage.files import atomic_write_text, validate_name

log = get_logger("teamwerx.storage")

CHANGE_FILENAME = "change.json"
ARCHIVE_DIRNAME = ".archive"


class FileChangeStore:
    """Change store rooted at ``config.changes_path``."""

    def __init__(self, config: TeamwerxConfig) -> None:
        self._config = config
        self._root = config.changes_path

    @property
    def root(self) -> Path:
        return self._root

    @property
    def archive_root(self) -> Path:
        return self._root / ARCHIVE_DIRNAME

    def change_dir(self, change_id: str) -> Path:
        return self._root / validate_name(change_id, "id")

    def read_change(self, change_id: str) -> Change:
        """Load a change.

        Raises
        ------
        TeamwerxValidationError
            *change_id* is empty.
        TeamwerxNotFoundError
            No ``change.json`` for that id.
        TeamwerxMalformedStateError
            The file is not valid change JSON.
        """
        path = self.change_dir(change_id) / CHANGE_FILENAME
        if not path.is_file():
            raise TeamwerxNotFoundError(
                f"change with ID '{change_id}' not found",
                context={"resource_type": "change", "resource_id": change_id},
            )
        return self._load(path, fallback_id=change_id)

    def list_changes(self) -> list[Change]:
        """Return all active changes; unreadable entries are skipped."""
        if not self._root.is_dir():
            return []
        changes: list[Change] = []
        for entry in sorted(self._root.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            path = entry / CHANGE_FILENAME
            try:
                changes.append(self._load(path, fallback_id=entry.name))
            except TeamwerxMalformedStateError as exc:
                log.warning(
                    "Skipping unreadable change",
                    extra={
                        "extra_fields": {
                            "op": "list_changes",
                            "change_id": entry.name,
                            "error": str(exc),
                        }
                    },
                )
        return changes

    def save(self, change: Change) -> None:
        """Write ``change.json`` (pretty-printed, trailing newline)."""
        if change is None:
            raise TeamwerxValidationError(
                "change cannot be None", context={"field": "change"}
            )
        self._write(change, self.change_dir(change.id) / CHANGE_FILENAME)

    def archive(self, change: Change) -> None:
        """Move the change directory under ``.archive`` and mark it archived.

        When the directory cannot be moved (e.g. it was never saved), the
        change JSON alone is written to the archive location.
        """
        src = self.change_dir(change.id)
        dst = self.archive_root / change.id
        if dst.exists():
            raise TeamwerxValidationError(
                f"change '{change.id}' is already archived",
                context={"field": "id", "value": change.id},
            )
        dst.parent.mkdir(parents=True, exist_ok=True)
        try:
            src.rename(dst)
        except OSError as exc:
            log.warning(
                "Archive move failed, writing change JSON only",
                extra={
                    "extra_fields": {
                        "op": "archive",
                        "change_id": change.id,
                        "error": str(exc),
                    }
                },
            )
            change.status = ChangeStatus.ARCHIVED.value
            self._write(change, dst / CHANGE_FILENAME)
            shutil.rmtree(src, ignore_errors=True)
            return
        change.status = ChangeStatus.ARCHIVED.value
        self._write(change, dst / CHANGE_FILENAME)

    def _write(self, change: Change, path: Path) -> None:
        validate_name(change.id, "id")
        change.touch()
        text = json.dumps(change.to_dict(), indent=2, ensure_ascii=False) + "\n"
        atomic_write_text(path, text)

    def _load(self, path: Path, fallback_id: str) -> Change:
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TeamwerxMalformedStateError(
                f"failed to parse change file '{path}': {exc}",
                context={"path": str(path), "reason": str(exc)},
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise TeamwerxMalformedStateError(
                f"failed to parse change file '{path}': expected a JSON object",
                context={"path": str(path), "reason": "not an object"},
            )
        try:
            change = Change.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise TeamwerxMalformedStateError(
                f"failed to parse change file '{path}': {exc}",
                context={"path": str(path), "reason": str(exc)},
                cause=exc,
            ) from exc
        # Hand-written files may omit the id.
        if not change.id:
            change.id = fallback_id
        return change
