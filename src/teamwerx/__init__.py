"""teamwerx: spec merge engine for markdown requirement documents.

Public re-exports
-----------------

* **Facade:** :class:`Teamwerx`
* **Configuration:** :class:`TeamwerxConfig`
* **Engine:** :class:`SpecMerger`, :class:`ChangeApplier`,
  :class:`DeltaDocumentParser`, :func:`check_divergence`
* **Errors:** Every :class:`TeamwerxError` subclass and :class:`ErrorCode`
* **Models:** All spec, delta, change and result dataclasses

Usage::

    from teamwerx import Teamwerx

    tw = Teamwerx(root_dir=".teamwerx")
    change = tw.read_change("001-add-2fa")
    tw.apply_change(change)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from teamwerx.config import (
    DEFAULT_REQUIREMENT_LEVEL,
    DEFAULT_REQUIREMENT_PREFIX,
    TeamwerxConfig,
)

# ── Document model ──────────────────────────────────────────────────────
from teamwerx.document import SpecDocument, parse_requirements, read_spec

# ── Errors ──────────────────────────────────────────────────────────────
from teamwerx.errors import (
    ErrorCode,
    TeamwerxApplyError,
    TeamwerxDivergedError,
    TeamwerxError,
    TeamwerxMalformedStateError,
    TeamwerxNotFoundError,
    TeamwerxValidationError,
)

# ── Engine ──────────────────────────────────────────────────────────────
from teamwerx.merge import (
    ChangeApplier,
    DeltaDocumentParser,
    SpecMerger,
    check_divergence,
)

# ── Models ──────────────────────────────────────────────────────────────
from teamwerx.models import (
    ApplyResult,
    Change,
    ChangeStatus,
    DeltaOperation,
    MergeResult,
    MergeWarning,
    OperationType,
    Requirement,
    RequirementDivergence,
    Spec,
    SpecDelta,
)

# ── Storage ─────────────────────────────────────────────────────────────
from teamwerx.storage import FileChangeStore, FileSpecStore, MemorySpecStore
from teamwerx.utils.hashing import fingerprint

# ── Facade ──────────────────────────────────────────────────────────────
from teamwerx.workspace import Teamwerx

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_REQUIREMENT_LEVEL",
    "DEFAULT_REQUIREMENT_PREFIX",
    "ApplyResult",
    "Change",
    "ChangeApplier",
    "ChangeStatus",
    "DeltaDocumentParser",
    "DeltaOperation",
    "ErrorCode",
    "FileChangeStore",
    "FileSpecStore",
    "MemorySpecStore",
    "MergeResult",
    "MergeWarning",
    "OperationType",
    "Requirement",
    "RequirementDivergence",
    "Spec",
    "SpecDelta",
    "SpecDocument",
    "SpecMerger",
    "Teamwerx",
    "TeamwerxApplyError",
    "TeamwerxConfig",
    "TeamwerxDivergedError",
    "TeamwerxError",
    "TeamwerxMalformedStateError",
    "TeamwerxNotFoundError",
    "TeamwerxValidationError",
    "check_divergence",
    "fingerprint",
    "parse_requirements",
    "read_spec",
]
