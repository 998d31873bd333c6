"""Parse delta documents: markdown files describing edits to one spec.

A delta document carries YAML front matter and up to three operation
sections, each holding requirement blocks::

    ---
    domain: auth
    change: 001-add-2fa
    ---

    # Spec Delta: auth

    ## ADDED Requirements

    ### Requirement: Two-Factor Authentication
    Users MUST confirm sign-in with a second factor.

    ## REMOVED Requirements

    ### Requirement: Legacy Tokens

Any other level-2 (or higher) heading closes the current section.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import frontmatter  # type: ignore[import-untyped]
import yaml

from teamwerx.config import TeamwerxConfig
from teamwerx.document.headings import HeadingScanner
from teamwerx.document.model import SpecDocument
from teamwerx.errors import TeamwerxMalformedStateError, TeamwerxNotFoundError
from teamwerx.models import DeltaOperation, OperationType, Requirement, SpecDelta

_SECTION = re.compile(r"^(ADDED|MODIFIED|REMOVED)\s+Requirements$", re.IGNORECASE)
_SECTION_LEVEL = 2

# Merge order of the resulting delta: removals first so a title reused by an
# addition is not deleted again, additions last.
_OPERATION_ORDER = (OperationType.REMOVED, OperationType.MODIFIED, OperationType.ADDED)


@dataclass
class DeltaConflict:
    """A requirement id listed in two operation sections."""

    type: str
    requirement_id: str
    message: str


@dataclass
class DeltaDocument:
    """Parsed delta document.

    Attributes
    ----------
    domain:
        Target spec, from the ``domain`` front matter key.
    change:
        Change id, from the ``change`` key.
    base_fingerprint:
        Optional fingerprint the delta was written against.
    operations:
        Requirements per operation type, in document order.
    metadata:
        The full front matter.
    """

    domain: str = ""
    change: str = ""
    base_fingerprint: str = ""
    operations: dict[str, list[Requirement]] = field(
        default_factory=lambda: {t.value: [] for t in OperationType}
    )
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def operation_count(self) -> int:
        return sum(len(reqs) for reqs in self.operations.values())

    def to_spec_delta(self) -> SpecDelta:
        """Flatten into a :class:`SpecDelta` (REMOVED, MODIFIED, ADDED)."""
        ops = [
            DeltaOperation(type=op_type.value, requirement=req)
            for op_type in _OPERATION_ORDER
            for req in self.operations.get(op_type.value, [])
        ]
        return SpecDelta(
            domain=self.domain,
            base_fingerprint=self.base_fingerprint,
            operations=ops,
        )


class DeltaDocumentParser:
    """Turn delta documents into :class:`DeltaDocument` objects.

    Parameters
    ----------
    config:
        Supplies the requirement heading convention.
    """

    def __init__(self, config: TeamwerxConfig | None = None) -> None:
        self._config = config or TeamwerxConfig()
        self._scanner = HeadingScanner()

    def parse_file(self, path: str | Path) -> DeltaDocument:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise TeamwerxNotFoundError(
                f"delta document '{path}' not found",
                context={"resource_type": "delta", "resource_id": str(path)},
                cause=exc,
            ) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise TeamwerxMalformedStateError(
                f"failed to read delta document '{path}': {exc}",
                context={"path": str(path), "reason": str(exc)},
                cause=exc,
            ) from exc
        return self.parse(text, source=str(path))

    def parse(self, text: str, source: str = "<string>") -> DeltaDocument:
        """Parse delta markdown *text*.

        Raises
        ------
        TeamwerxMalformedStateError
            The front matter is not valid YAML.
        """
        try:
            post = frontmatter.loads(text)
        except yaml.YAMLError as exc:
            raise TeamwerxMalformedStateError(
                f"invalid front matter in delta document '{source}': {exc}",
                context={"path": source, "reason": str(exc)},
                cause=exc,
            ) from exc

        meta = dict(post.metadata)
        doc = DeltaDocument(
            domain=str(meta.get("domain") or "").strip(),
            change=str(meta.get("change") or "").strip(),
            base_fingerprint=str(meta.get("base_fingerprint") or "").strip(),
            metadata=meta,
        )
        for op_type, body in self._sections(post.content):
            doc.operations[op_type].extend(self._requirements(body))
        return doc

    def validate(self, doc: DeltaDocument) -> list[str]:
        """Return a list of problems; empty means the delta is usable."""
        errors: list[str] = []
        if not doc.domain:
            errors.append("Delta missing domain in front matter")
        if doc.operation_count == 0:
            errors.append("Delta has no operations (ADDED/MODIFIED/REMOVED)")
        for op_type, reqs in doc.operations.items():
            for req in reqs:
                if not req.title:
                    errors.append(f"{op_type} requirement missing title")
                if op_type != OperationType.REMOVED.value and not _body(req.content):
                    errors.append(f"{op_type} requirement '{req.title}' has no content")
        return errors

    def find_conflicts(self, doc: DeltaDocument) -> list[DeltaConflict]:
        """Report requirement ids that appear in two operation sections."""
        ids = {op: {r.id for r in reqs} for op, reqs in doc.operations.items()}
        pairs = (
            (OperationType.ADDED, OperationType.MODIFIED),
            (OperationType.ADDED, OperationType.REMOVED),
            (OperationType.MODIFIED, OperationType.REMOVED),
        )
        conflicts: list[DeltaConflict] = []
        for first, second in pairs:
            seen: set[str] = set()
            for req in doc.operations.get(first.value, []):
                if not req.id or req.id in seen or req.id not in ids.get(second.value, set()):
                    continue
                seen.add(req.id)
                conflicts.append(
                    DeltaConflict(
                        type=f"{first.value}_AND_{second.value}",
                        requirement_id=req.id,
                        message=(
                            f"Requirement '{req.id}' appears in both "
                            f"{first.value} and {second.value}"
                        ),
                    )
                )
        return conflicts

    def template(self, domain: str, change_id: str) -> str:
        """Return a starter delta document."""
        heading = f"{'#' * self._config.requirement_level} {self._config.requirement_prefix}"
        post = frontmatter.Post(
            f"# Spec Delta: {domain}\n\n"
            f"## ADDED Requirements\n\n"
            f"{heading} New Feature\n"
            f"Describe the requirement being added.\n\n"
            f"## MODIFIED Requirements\n\n"
            f"{heading} Existing Feature\n"
            f"Paste the full updated requirement.\n\n"
            f"## REMOVED Requirements\n\n"
            f"{heading} Old Feature\n",
            change=change_id,
            domain=domain,
        )
        return frontmatter.dumps(post) + "\n"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _sections(self, body: str) -> list[tuple[str, str]]:
        sections: list[tuple[str, str]] = []
        current: str | None = None
        start = 0
        for heading in self._scanner.scan(body):
            if heading.level > _SECTION_LEVEL:
                continue
            if current is not None:
                sections.append((current, body[start : heading.offset]))
                current = None
            match = _SECTION.match(heading.text.strip()) if heading.level == _SECTION_LEVEL else None
            if match:
                current = match.group(1).upper()
                start = heading.offset
        if current is not None:
            sections.append((current, body[start:]))
        return sections

    def _requirements(self, section: str) -> list[Requirement]:
        cfg = self._config
        reqs = SpecDocument.parse(section, cfg.requirement_level, cfg.requirement_prefix).requirements()
        return [
            Requirement(id=r.id, title=r.title, content=r.content.strip())
            for r in reqs
        ]


def _body(content: str) -> str:
    """Requirement text below its heading line."""
    return content.partition("\n")[2].strip()
