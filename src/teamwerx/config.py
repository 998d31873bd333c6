"""Workspace configuration for teamwerx.

:class:`TeamwerxConfig` is a plain dataclass that captures every tuneable
knob of the merge engine and its file-backed stores.  Instances are passed
to :class:`~teamwerx.workspace.Teamwerx`, the stores, the merger and the
change applier.

Two module-level constants define the conventional requirement heading:

* :data:`DEFAULT_REQUIREMENT_LEVEL`: heading depth of a requirement block.
* :data:`DEFAULT_REQUIREMENT_PREFIX`: literal text that opens its title.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Document convention constants
# ---------------------------------------------------------------------------

DEFAULT_REQUIREMENT_LEVEL: int = 3
"""``###`` headings delimit requirement blocks."""

DEFAULT_REQUIREMENT_PREFIX: str = "Requirement:"
"""A requirement heading reads ``### Requirement: <title>``."""

DEFAULT_ROOT_DIR: str = ".teamwerx"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class TeamwerxConfig:
    """Complete configuration for a teamwerx workspace.

    Every parameter has a sensible default; a bare ``TeamwerxConfig()``
    works against ``./.teamwerx``.

    Parameters
    ----------
    root_dir:
        Workspace directory holding ``specs/`` and ``changes/``.
    specs_dir:
        Override for the spec store location.  Defaults to
        ``<root_dir>/specs``.
    changes_dir:
        Override for the change store location.  Defaults to
        ``<root_dir>/changes``.
    requirement_level:
        Heading level (1–6) at which requirement blocks live.
    requirement_prefix:
        Literal prefix a heading's text must start with to open a
        requirement block.
    fingerprint_bytes:
        Number of SHA-256 digest bytes kept in a fingerprint.  The hex
        fingerprint is twice as long.
    transactional_apply:
        Stage every delta of a change in memory and only write once all of
        them merged cleanly.

        * ``True``: nothing is written if any delta fails.
        * ``False``: deltas are persisted one by one; a failure leaves the
          earlier deltas applied.
    conditional_write:
        Re-read and re-fingerprint a spec file right before replacing it,
        refusing the write if it changed since it was read.
    metrics:
        Optional :class:`~teamwerx.observability.MetricsHook` backend.
    debug_dump_blocks:
        Write the block arena of every merged document to *stderr*.
    """

    # ── Layout ──────────────────────────────────────────────────────────
    root_dir: str = DEFAULT_ROOT_DIR

    specs_dir: str | None = None

    changes_dir: str | None = None

    # ── Document convention ─────────────────────────────────────────────
    requirement_level: int = DEFAULT_REQUIREMENT_LEVEL

    requirement_prefix: str = DEFAULT_REQUIREMENT_PREFIX

    # ── Fingerprints ────────────────────────────────────────────────────
    fingerprint_bytes: int = 8

    # ── Apply policy ────────────────────────────────────────────────────
    transactional_apply: bool = True

    conditional_write: bool = True

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_blocks: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not 1 <= self.requirement_level <= 6:
            raise ValueError(
                f"requirement_level must be between 1 and 6, got {self.requirement_level}"
            )
        if not self.requirement_prefix.strip():
            raise ValueError("requirement_prefix must not be empty")
        if not 1 <= self.fingerprint_bytes <= 32:
            raise ValueError(
                f"fingerprint_bytes must be between 1 and 32, got {self.fingerprint_bytes}"
            )
        if not str(self.root_dir).strip():
            raise ValueError("root_dir must not be empty")

    @property
    def specs_path(self) -> Path:
        return Path(self.specs_dir) if self.specs_dir else Path(self.root_dir) / "specs"

    @property
    def changes_path(self) -> Path:
        return Path(self.changes_dir) if self.changes_dir else Path(self.root_dir) / "changes"
