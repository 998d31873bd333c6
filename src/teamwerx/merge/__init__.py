"""Merge engine for spec deltas.

Exports
-------
SpecMerger
    Applies a delta's operations to one spec.
ChangeApplier
    Applies every delta of a change, transactionally or one by one.
DeltaDocumentParser
    Reads delta markdown documents into deltas.
check_divergence
    Refuse a delta whose base no longer matches the spec.
analyze_divergence
    List the requirements that changed since a base.
"""

from .applier import ChangeApplier
from .delta_parser import DeltaConflict, DeltaDocument, DeltaDocumentParser
from .divergence import analyze_divergence, check_divergence, is_diverged
from .merger import SpecMerger, build_requirement_text, merge_content, validate_delta

__all__ = [
    "ChangeApplier",
    "DeltaConflict",
    "DeltaDocument",
    "DeltaDocumentParser",
    "SpecMerger",
    "analyze_divergence",
    "build_requirement_text",
    "check_divergence",
    "is_diverged",
    "merge_content",
    "validate_delta",
]
