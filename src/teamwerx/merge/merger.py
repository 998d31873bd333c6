"""Delta merger: apply a :class:`SpecDelta` to a spec document.

The spec content is cut into a block arena once per merge
(:class:`~teamwerx.document.SpecDocument`), each operation edits the
arena in submitted order, and the document is serialised once at the end.
"""

from __future__ import annotations

import sys
import time

from teamwerx.config import TeamwerxConfig
from teamwerx.document.model import SpecDocument
from teamwerx.document.spec import read_spec
from teamwerx.errors import TeamwerxNotFoundError, TeamwerxValidationError
from teamwerx.merge.divergence import check_divergence, is_diverged
from teamwerx.models import (
    DeltaOperation,
    MergeResult,
    MergeWarning,
    OperationType,
    Requirement,
    Spec,
    SpecDelta,
)
from teamwerx.observability import NoopMetricsHook, get_logger
from teamwerx.storage.memory import MemorySpecStore
from teamwerx.storage.protocols import SpecStore
from teamwerx.utils.hashing import fingerprint
from teamwerx.utils.text import kebab_case

log = get_logger("teamwerx.merge")

_OPERATION_TYPES = frozenset(t.value for t in OperationType)


def _op_type(op: DeltaOperation) -> str:
    return op.type.value if isinstance(op.type, OperationType) else str(op.type)


def target_id(requirement: Requirement) -> str:
    """Id an operation looks up: the explicit id, else the kebab-cased title."""
    return requirement.id.strip() or kebab_case(requirement.title)


def build_requirement_text(
    requirement: Requirement,
    level: int = 3,
    prefix: str = "Requirement:",
) -> str:
    """Return the block text an ADDED or MODIFIED operation inserts.

    Non-blank content is used verbatim, padded to end with a blank line.
    Otherwise a bare heading is synthesised from the title (or the id).
    """
    if requirement.content.strip():
        text = requirement.content
        if not text.endswith("\n"):
            text += "\n"
        if not text.endswith("\n\n"):
            text += "\n"
        return text
    title = requirement.title.strip() or requirement.id
    return f"{'#' * level} {prefix} {title}\n\n\n"


def validate_delta(delta: SpecDelta) -> None:
    """Reject a delta that cannot be merged.

    Every operation is checked before any of them runs, so a rejected
    delta never leaves a half-merged document behind.

    Raises
    ------
    TeamwerxValidationError
        With ``field`` set to ``domain``, ``type``, ``requirement.id`` or
        ``requirement.content``.
    """
    if delta is None:
        raise TeamwerxValidationError("delta cannot be None", context={"field": "delta"})
    if not delta.domain.strip():
        raise TeamwerxValidationError(
            "delta domain cannot be empty",
            context={"field": "domain", "value": delta.domain},
        )
    for idx, op in enumerate(delta.operations):
        op_type = _op_type(op)
        req = op.requirement
        if op_type not in _OPERATION_TYPES:
            raise TeamwerxValidationError(
                f"unknown operation type: {op_type}",
                context={"field": "type", "value": op_type, "operation_index": idx},
            )
        if op_type == OperationType.ADDED.value:
            if not (req.id.strip() or req.title.strip() or req.content.strip()):
                raise TeamwerxValidationError(
                    "ADDED operation needs requirement content, title or id",
                    context={"field": "requirement.content", "operation_index": idx},
                )
        elif not (req.id.strip() or req.title.strip()):
            raise TeamwerxValidationError(
                f"{op_type} operation needs a requirement id or title",
                context={"field": "requirement.id", "operation_index": idx},
            )


class SpecMerger:
    """Merge deltas into specs held by a :class:`SpecStore`.

    Parameters
    ----------
    store:
        Where specs are read from and written to.
    config:
        Workspace configuration (document convention, fingerprint size,
        metrics, debug dump).
    """

    def __init__(self, store: SpecStore, config: TeamwerxConfig | None = None) -> None:
        self._store = store
        self._config = config or TeamwerxConfig()
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )

    @property
    def store(self) -> SpecStore:
        return self._store

    def load(self, domain: str) -> Spec:
        """Read *domain*; a missing spec is returned as an empty one."""
        try:
            return self._store.read_spec(domain)
        except TeamwerxNotFoundError:
            return Spec(domain=domain)

    def merge(self, spec: Spec, delta: SpecDelta, force: bool = False) -> MergeResult:
        """Merge *delta* into *spec* without persisting anything.

        Parameters
        ----------
        spec:
            The current state of the target document.
        delta:
            Operations to apply, in order.
        force:
            Merge even if *spec* diverged from the delta's base.

        Returns
        -------
        MergeResult
            Carries the merged spec, its previous fingerprint, per-type
            operation counts and any warnings.

        Raises
        ------
        TeamwerxValidationError
            The delta is malformed.
        TeamwerxDivergedError
            *spec* changed since the delta's base and *force* is off.
        """
        validate_delta(delta)
        cfg = self._config
        t0 = time.monotonic()

        forced = False
        if is_diverged(spec, delta):
            self._metrics.increment("teamwerx.divergence_total", tags={"domain": delta.domain})
            if not force:
                check_divergence(spec, delta, cfg.fingerprint_bytes)
            forced = True
            log.warning(
                "Spec diverged from delta base, merging anyway (force)",
                extra={
                    "extra_fields": {
                        "op": "merge",
                        "domain": delta.domain,
                        "base_fingerprint": delta.base_fingerprint,
                        "current_fingerprint": spec.fingerprint,
                    }
                },
            )

        doc = SpecDocument.parse(spec.content, cfg.requirement_level, cfg.requirement_prefix)
        result = MergeResult(spec=spec, base_fingerprint=spec.fingerprint, forced=forced)

        for op in delta.operations:
            self._apply_operation(doc, op, delta.domain, result)

        if cfg.debug_dump_blocks:
            self._dump_blocks(delta.domain, doc)

        content = doc.render()
        result.spec = Spec(
            domain=delta.domain,
            content=content,
            requirements=doc.requirements(),
            fingerprint=fingerprint(content, cfg.fingerprint_bytes),
        )

        elapsed_ms = (time.monotonic() - t0) * 1000
        self._metrics.timing(
            "teamwerx.merge_duration_ms", elapsed_ms, tags={"domain": delta.domain}
        )
        log.debug(
            "delta merged",
            extra={
                "extra_fields": {
                    "op": "merge",
                    "domain": delta.domain,
                    "operations_applied": dict(result.operations_applied),
                    "base_fingerprint": result.base_fingerprint,
                    "fingerprint": result.spec.fingerprint,
                    "duration_ms": round(elapsed_ms, 3),
                }
            },
        )
        return result

    def apply(
        self,
        delta: SpecDelta,
        force: bool = False,
        dry_run: bool = False,
    ) -> MergeResult:
        """Read the delta's spec, merge, and write it back.

        The write is conditional on the spec still having the fingerprint
        it had when read (see ``TeamwerxConfig.conditional_write``).  With
        *dry_run* the merged result is returned and nothing is written.
        """
        validate_delta(delta)
        spec = self.load(delta.domain)
        result = self.merge(spec, delta, force=force)
        if not dry_run:
            self._store.write_spec(result.spec, expected_fingerprint=result.base_fingerprint)
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _apply_operation(
        self,
        doc: SpecDocument,
        op: DeltaOperation,
        domain: str,
        result: MergeResult,
    ) -> None:
        op_type = _op_type(op)
        req = op.requirement
        text = build_requirement_text(
            req, self._config.requirement_level, self._config.requirement_prefix
        )

        if op_type == OperationType.ADDED.value:
            self._append(doc, text, domain, result)
        else:
            idx = doc.index_of(target_id(req))
            if op_type == OperationType.REMOVED.value:
                if idx is None:
                    log.debug(
                        "requirement to remove not found",
                        extra={"extra_fields": {"domain": domain, "requirement": target_id(req)}},
                    )
                    return
                doc.remove(idx)
            elif idx is None:
                self._append(doc, text, domain, result)
            else:
                doc.replace(idx, text)

        result.operations_applied[op_type] += 1
        self._metrics.increment("teamwerx.merge_ops_total", tags={"op_type": op_type})

    def _append(self, doc: SpecDocument, text: str, domain: str, result: MergeResult) -> None:
        start = doc.append(text)
        for block in doc.blocks[start:]:
            if not block.key:
                continue
            first = doc.index_of(block.key)
            if first is not None and first < start:
                warning = MergeWarning(
                    code="DUPLICATE_REQUIREMENT",
                    message=(
                        f"Requirement '{block.key}' already exists in spec '{domain}'; "
                        f"lookups will keep matching the first occurrence"
                    ),
                    context={"domain": domain, "requirement": block.key},
                )
                result.warnings.append(warning)
                self._metrics.increment(
                    "teamwerx.warnings_total", tags={"code": warning.code}
                )
                log.warning(
                    warning.message,
                    extra={"extra_fields": {"op": "merge", **warning.context}},
                )

    def _dump_blocks(self, domain: str, doc: SpecDocument) -> None:
        print(f"[teamwerx] block arena for '{domain}':", file=sys.stderr)
        for idx, block in enumerate(doc.blocks):
            kind = "requirement" if block.is_requirement else "section"
            first_line = block.content.split("\n", 1)[0]
            print(
                f"  {idx:3d} {kind:<11} key={block.key!r} {first_line[:60]!r}",
                file=sys.stderr,
            )


def merge_content(
    content: str,
    delta: SpecDelta,
    config: TeamwerxConfig | None = None,
    force: bool = False,
) -> str:
    """Merge *delta* into raw markdown *content* and return the new text."""
    cfg = config or TeamwerxConfig()
    merger = SpecMerger(MemorySpecStore(config=cfg), cfg)
    return merger.merge(read_spec(delta.domain, content, cfg), delta, force=force).spec.content
