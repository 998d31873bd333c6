"""File-backed spec store: ``<specs_dir>/<domain>/spec.md``.

Specs are read from disk on every call and never cached, so each read
reflects edits made by other processes since the last one.
"""

from __future__ import annotations

from pathlib import Path

from teamwerx.config import TeamwerxConfig
from teamwerx.document.spec import read_spec
from teamwerx.errors import (
    TeamwerxDivergedError,
    TeamwerxError,
    TeamwerxMalformedStateError,
    TeamwerxNotFoundError,
)
from teamwerx.models import Spec
from teamwerx.observability import get_logger
from teamwerx.storage.files import atomic_write_text, validate_name
from teamwerx.utils.hashing import fingerprint

log = get_logger("teamwerx.storage")

SPEC_FILENAME = "spec.md"


class FileSpecStore:
    """Spec store rooted at a directory.

    Parameters
    ----------
    config:
        Workspace configuration; ``specs_path`` is the root, and
        ``conditional_write`` enables the re-check before writes.
    """

    def __init__(self, config: TeamwerxConfig) -> None:
        self._config = config
        self._root = config.specs_path

    @property
    def root(self) -> Path:
        return self._root

    def spec_path(self, domain: str) -> Path:
        return self._root / validate_name(domain, "domain") / SPEC_FILENAME

    def read_spec(self, domain: str) -> Spec:
        """Read and parse the spec of *domain*.

        Raises
        ------
        TeamwerxNotFoundError
            The domain has no ``spec.md``.
        TeamwerxMalformedStateError
            The file exists but cannot be read as UTF-8 text.
        """
        path = self.spec_path(domain)
        return read_spec(domain, self._read_text(domain, path), self._config)

    def write_spec(self, spec: Spec, expected_fingerprint: str | None = None) -> None:
        """Replace the spec file with ``spec.content``.

        With ``conditional_write`` enabled and *expected_fingerprint* given,
        the file is re-read first and the write is refused if its
        fingerprint moved.  A concurrent writer can still slip in between
        that check and the replace; the window is only narrowed.
        """
        path = self.spec_path(spec.domain)
        if self._config.conditional_write and expected_fingerprint is not None:
            current = self._current_fingerprint(spec.domain, path)
            if current != expected_fingerprint:
                raise TeamwerxDivergedError(
                    f"Spec '{spec.domain}' has diverged while merging: expected "
                    f"fingerprint {expected_fingerprint or '<empty>'}, found "
                    f"{current or '<empty>'} on disk",
                    context={
                        "domain": spec.domain,
                        "base_fingerprint": expected_fingerprint,
                        "current_fingerprint": current,
                        "reason": "spec file changed between read and write",
                        "details": [],
                    },
                )
        atomic_write_text(path, spec.content)
        log.debug(
            "spec written",
            extra={
                "extra_fields": {
                    "op": "write_spec",
                    "domain": spec.domain,
                    "path": str(path),
                    "bytes": len(spec.content.encode("utf-8")),
                }
            },
        )

    def list_specs(self) -> list[Spec]:
        """Return every readable spec, sorted by domain.

        Unreadable entries are skipped so one broken file does not hide
        the rest.
        """
        if not self._root.is_dir():
            return []
        specs: list[Spec] = []
        for entry in sorted(self._root.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            try:
                specs.append(self.read_spec(entry.name))
            except TeamwerxError as exc:
                log.warning(
                    "Skipping unreadable spec",
                    extra={
                        "extra_fields": {
                            "op": "list_specs",
                            "domain": entry.name,
                            "error": str(exc),
                        }
                    },
                )
        return specs

    def _current_fingerprint(self, domain: str, path: Path) -> str:
        try:
            text = self._read_text(domain, path)
        except TeamwerxNotFoundError:
            return ""
        return fingerprint(text, self._config.fingerprint_bytes)

    def _read_text(self, domain: str, path: Path) -> str:
        try:
            with path.open(encoding="utf-8", newline="") as fh:
                return fh.read()
        except FileNotFoundError as exc:
            raise TeamwerxNotFoundError(
                f"spec with ID '{domain}' not found",
                context={"resource_type": "spec", "resource_id": domain},
                cause=exc,
            ) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise TeamwerxMalformedStateError(
                f"failed to read spec '{domain}': {exc}",
                context={"path": str(path), "reason": str(exc)},
                cause=exc,
            ) from exc
