"""Public data models for teamwerx.

This module contains the spec, delta and change types shared by the
document model, the merge engine and the stores, plus the result and
warning types returned by merge operations.  All types are plain
dataclasses; the persisted ones know how to convert to and from the stable
JSON shape used on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from teamwerx.utils.hashing import DEFAULT_FINGERPRINT_BYTES
from teamwerx.utils.hashing import fingerprint as _fingerprint


def _object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"'{key}' must be a list, got {type(value).__name__}")
    return value

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OperationType(str, Enum):
    """Edit operations a delta can carry."""

    ADDED = "ADDED"
    """Append a new requirement block at the end of the document."""

    MODIFIED = "MODIFIED"
    """Replace a requirement block, or append it when absent."""

    REMOVED = "REMOVED"
    """Delete a requirement block; absent targets are ignored."""


class ChangeStatus(str, Enum):
    """Lifecycle states of a change."""

    DRAFT = "draft"
    APPLIED = "applied"
    ARCHIVED = "archived"


# ---------------------------------------------------------------------------
# Spec documents
# ---------------------------------------------------------------------------

@dataclass
class Requirement:
    """A named block inside a spec.

    Attributes
    ----------
    id:
        Kebab-case identifier derived from *title*.  Never stored on its
        own: two titles that kebab-case identically are the same
        requirement as far as the merger is concerned.
    title:
        Heading text after the requirement prefix, trimmed.
    content:
        Verbatim block text, heading line and trailing padding included.
    start, end:
        Character offsets of the block in the spec content it was parsed
        from.  Stale after any edit.
    """

    id: str = ""
    title: str = ""
    content: str = ""
    start: int = 0
    end: int = 0

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Requirement:
        data = _object(data, "requirement")
        return cls(id=_str(data, "id"), title=_str(data, "title"), content=_str(data, "content"))


@dataclass
class Spec:
    """One domain's specification document.

    Attributes
    ----------
    domain:
        Store key, e.g. ``"auth"``.
    content:
        Full raw markdown; the source of truth.
    requirements:
        Requirement blocks parsed from *content*, in document order.
    fingerprint:
        Fingerprint of the trimmed *content*; ``""`` for an empty or
        missing document.
    """

    domain: str
    content: str = ""
    requirements: list[Requirement] = field(default_factory=list)
    fingerprint: str = ""

    def find(self, requirement_id: str) -> Requirement | None:
        """Return the first requirement with *requirement_id*, if any."""
        if not requirement_id:
            return None
        for req in self.requirements:
            if req.id == requirement_id:
                return req
        return None

    def requirement_fingerprints(self, size: int = DEFAULT_FINGERPRINT_BYTES) -> dict[str, str]:
        """Map each requirement id to the fingerprint of its block.

        When ids collide the first block wins, matching lookup order.
        """
        result: dict[str, str] = {}
        for req in self.requirements:
            if req.id in result:
                continue
            result[req.id] = _fingerprint(req.content, size)
        return result


# ---------------------------------------------------------------------------
# Deltas and changes (persisted)
# ---------------------------------------------------------------------------

@dataclass
class DeltaOperation:
    """A single edit in a delta.

    ``type`` is kept as the raw string read from disk so that an unknown
    value reaches the merger and is rejected there, instead of failing at
    load time.
    """

    type: str
    requirement: Requirement = field(default_factory=Requirement)

    def to_dict(self) -> dict[str, Any]:
        op_type = self.type.value if isinstance(self.type, OperationType) else self.type
        return {"type": op_type, "requirement": self.requirement.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeltaOperation:
        data = _object(data, "operation")
        return cls(
            type=_str(data, "type"),
            requirement=Requirement.from_dict(data.get("requirement") or {}),
        )


@dataclass
class SpecDelta:
    """Edits intended for one domain.

    Attributes
    ----------
    domain:
        Target spec.
    base_fingerprint:
        Fingerprint of the spec the delta was written against.  Empty
        disables the divergence check.
    operations:
        Ordered edits.
    base_requirements:
        Optional requirement-id to fingerprint map of the base spec.  Only
        used to explain a divergence.
    """

    domain: str
    base_fingerprint: str = ""
    operations: list[DeltaOperation] = field(default_factory=list)
    base_requirements: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"domain": self.domain}
        if self.base_fingerprint:
            data["base_fingerprint"] = self.base_fingerprint
        data["operations"] = [op.to_dict() for op in self.operations]
        if self.base_requirements:
            data["base_requirements"] = dict(self.base_requirements)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpecDelta:
        data = _object(data, "spec delta")
        return cls(
            domain=_str(data, "domain"),
            base_fingerprint=_str(data, "base_fingerprint"),
            operations=[DeltaOperation.from_dict(op) for op in _list(data, "operations")],
            base_requirements=dict(_object(data.get("base_requirements") or {}, "base_requirements")),
        )


def _parse_time(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; anything else raises."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"invalid timestamp {value!r}") from exc


@dataclass
class Change:
    """A named bundle of deltas with its own lifecycle.

    Attributes
    ----------
    id:
        Directory name of the change in the change store.
    title:
        Human readable summary.
    status:
        ``draft``, ``applied`` or ``archived``.
    created_at:
        Creation time; filled in on first save when missing.
    spec_deltas:
        One delta per touched domain, applied in list order.
    goal_id:
        Optional goal the change belongs to.
    applied_at:
        Time of the last successful apply.
    """

    id: str
    title: str = ""
    status: str = ChangeStatus.DRAFT.value
    created_at: datetime | None = None
    spec_deltas: list[SpecDelta] = field(default_factory=list)
    goal_id: str = ""
    applied_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "spec_deltas": [d.to_dict() for d in self.spec_deltas],
        }
        if self.goal_id:
            data["goal_id"] = self.goal_id
        if self.applied_at:
            data["applied_at"] = self.applied_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Change:
        data = _object(data, "change")
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            status=_str(data, "status") or ChangeStatus.DRAFT.value,
            created_at=_parse_time(data.get("created_at")),
            spec_deltas=[SpecDelta.from_dict(d) for d in _list(data, "spec_deltas")],
            goal_id=_str(data, "goal_id"),
            applied_at=_parse_time(data.get("applied_at")),
        )

    def touch(self) -> None:
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class MergeWarning:
    """A non-fatal issue noticed while merging.

    Attributes
    ----------
    code:
        Machine-readable code, e.g. ``"DUPLICATE_REQUIREMENT"``.
    message:
        Human-readable description.
    context:
        Structured diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class RequirementDivergence:
    """How one requirement differs between a delta's base and the spec."""

    requirement: str
    change: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "requirement": self.requirement,
            "change": self.change,
            "message": self.message,
        }


@dataclass
class MergeResult:
    """Outcome of merging one delta into one spec.

    Attributes
    ----------
    spec:
        The spec with its content replaced and requirements re-derived.
    base_fingerprint:
        Fingerprint of the spec before the merge.
    operations_applied:
        Count per operation type of operations that edited the document.
        A REMOVED whose target is absent is not counted.
    forced:
        ``True`` when a divergence was detected but bypassed.
    warnings:
        Non-fatal issues.
    """

    spec: Spec
    base_fingerprint: str = ""
    operations_applied: dict[str, int] = field(
        default_factory=lambda: {t.value: 0 for t in OperationType}
    )
    forced: bool = False
    warnings: list[MergeWarning] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.spec.fingerprint != self.base_fingerprint


@dataclass
class ApplyResult:
    """Outcome of applying a change.

    Attributes
    ----------
    change_id:
        The applied change.
    merges:
        One :class:`MergeResult` per delta, in delta order.
    domains_written:
        Domains whose spec was persisted (empty on a dry run).
    dry_run:
        ``True`` when nothing was persisted.
    """

    change_id: str
    merges: list[MergeResult] = field(default_factory=list)
    domains_written: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def warnings(self) -> list[MergeWarning]:
        return [w for m in self.merges for w in m.warnings]
