"""Change applier: run every delta of a change against the spec store.

Two modes, chosen by ``TeamwerxConfig.transactional_apply``:

* **transactional** (default) -- every delta is read, checked and merged
  in memory first; specs are only written once all of them succeeded.
* **sequential** -- each delta is merged and written before the next one
  runs; the first failure stops the change and earlier writes stay.

Deltas run in list order.  Several deltas on one domain chain: each sees
the document the previous one produced.
"""

from __future__ import annotations

from datetime import datetime, timezone

from teamwerx.config import TeamwerxConfig
from teamwerx.errors import (
    TeamwerxApplyError,
    TeamwerxDivergedError,
    TeamwerxError,
    TeamwerxValidationError,
)
from teamwerx.merge.merger import SpecMerger
from teamwerx.models import ApplyResult, Change, ChangeStatus, MergeResult, Spec, SpecDelta
from teamwerx.observability import NoopMetricsHook, get_logger
from teamwerx.storage.protocols import ChangeStore, SpecStore

log = get_logger("teamwerx.merge")


class _Staging:
    """In-memory view of the specs a change touches."""

    __slots__ = ("base", "merger", "order", "specs")

    def __init__(self, merger: SpecMerger) -> None:
        self.merger = merger
        self.specs: dict[str, Spec] = {}
        self.base: dict[str, Spec] = {}
        self.order: list[str] = []

    def current(self, domain: str) -> Spec:
        if domain not in self.specs:
            spec = self.merger.load(domain)
            self.specs[domain] = spec
            self.base[domain] = spec
            self.order.append(domain)
        return self.specs[domain]

    def update(self, spec: Spec) -> None:
        self.specs[spec.domain] = spec

    def dirty(self) -> list[str]:
        return [d for d in self.order if self.specs[d].content != self.base[d].content]


class ChangeApplier:
    """Apply changes through a :class:`SpecMerger`.

    Parameters
    ----------
    merger:
        Merger bound to the spec store the change targets.
    changes:
        Optional change store; when given, a successfully applied change
        is marked ``applied`` and saved.
    config:
        Workspace configuration.
    """

    def __init__(
        self,
        merger: SpecMerger,
        changes: ChangeStore | None = None,
        config: TeamwerxConfig | None = None,
    ) -> None:
        self._merger = merger
        self._changes = changes
        self._config = config or TeamwerxConfig()
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )

    @property
    def specs(self) -> SpecStore:
        return self._merger.store

    def apply(self, change: Change, force: bool = False, dry_run: bool = False) -> ApplyResult:
        """Apply every delta of *change*.

        Parameters
        ----------
        change:
            The change to apply.  Updated in place on success.
        force:
            Bypass the divergence check of every delta.
        dry_run:
            Merge in memory only; nothing is written and the change is not
            marked applied.

        Returns
        -------
        ApplyResult

        Raises
        ------
        TeamwerxValidationError
            The change has no id.
        TeamwerxApplyError
            A delta failed; the original error is the ``cause``.
        """
        if change is None or not change.id.strip():
            raise TeamwerxValidationError(
                "change id cannot be empty",
                context={"field": "id", "value": getattr(change, "id", None)},
            )

        if dry_run or self._config.transactional_apply:
            result = self._apply_staged(change, force, dry_run)
            mode = "dry_run" if dry_run else "transactional"
        else:
            result = self._apply_sequential(change, force)
            mode = "sequential"

        if not dry_run:
            change.status = ChangeStatus.APPLIED.value
            change.applied_at = datetime.now(timezone.utc)
            if self._changes is not None:
                self._changes.save(change)
            self._metrics.increment("teamwerx.changes_applied_total", tags={"mode": mode})

        log.info(
            "change applied" if not dry_run else "change merged (dry run)",
            extra={
                "extra_fields": {
                    "op": "apply_change",
                    "change_id": change.id,
                    "mode": mode,
                    "deltas": len(change.spec_deltas),
                    "domains_written": result.domains_written,
                    "warnings": len(result.warnings),
                }
            },
        )
        return result

    def refresh_base_fingerprints(self, change: Change) -> Change:
        """Point every delta's base at the spec state it will meet.

        Deltas are replayed in order against an in-memory copy of the
        store, so a second delta on the same domain gets the fingerprint
        produced by the first one.  Per-requirement fingerprints are
        refreshed alongside.  Nothing is written.
        """
        staging = _Staging(self._merger)
        size = self._config.fingerprint_bytes
        for idx, delta in enumerate(change.spec_deltas):
            try:
                spec = staging.current(delta.domain)
                delta.base_fingerprint = spec.fingerprint
                delta.base_requirements = spec.requirement_fingerprints(size)
                staging.update(self._merger.merge(spec, delta, force=True).spec)
            except TeamwerxError as exc:
                raise self._wrap(change, delta, idx, exc) from exc
        log.info(
            "base fingerprints refreshed",
            extra={
                "extra_fields": {
                    "op": "refresh_base_fingerprints",
                    "change_id": change.id,
                    "deltas": len(change.spec_deltas),
                }
            },
        )
        return change

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _apply_staged(self, change: Change, force: bool, dry_run: bool) -> ApplyResult:
        staging = _Staging(self._merger)
        result = ApplyResult(change_id=change.id, dry_run=dry_run)

        for idx, delta in enumerate(change.spec_deltas):
            try:
                merged = self._merger.merge(staging.current(delta.domain), delta, force=force)
            except TeamwerxError as exc:
                raise self._wrap(change, delta, idx, exc) from exc
            staging.update(merged.spec)
            result.merges.append(merged)

        if dry_run:
            return result

        dirty = staging.dirty()
        if self._config.conditional_write:
            for domain in dirty:
                current = self._merger.load(domain).fingerprint
                expected = staging.base[domain].fingerprint
                if current != expected:
                    exc = TeamwerxDivergedError(
                        f"Spec '{domain}' has diverged while merging: expected "
                        f"fingerprint {expected or '<empty>'}, found {current or '<empty>'}",
                        context={
                            "domain": domain,
                            "base_fingerprint": expected,
                            "current_fingerprint": current,
                            "reason": "spec changed between staging and commit",
                            "details": [],
                        },
                    )
                    raise self._commit_error(change, domain, result, exc) from exc

        # A writer can still slip in between the check above and the writes
        # below; a refused write rolls back the domains already written.
        for domain in dirty:
            try:
                self.specs.write_spec(
                    staging.specs[domain],
                    expected_fingerprint=staging.base[domain].fingerprint,
                )
            except TeamwerxError as exc:
                rolled_back = self._rollback(staging, result.domains_written)
                raise self._commit_error(change, domain, result, exc, rolled_back) from exc
            result.domains_written.append(domain)
        return result

    def _rollback(self, staging: _Staging, written: list[str]) -> list[str]:
        """Restore the base content of *written*; return the domains restored."""
        restored: list[str] = []
        for domain in reversed(written):
            try:
                self.specs.write_spec(
                    staging.base[domain],
                    expected_fingerprint=staging.specs[domain].fingerprint,
                )
            except TeamwerxError as exc:
                log.error(
                    "Rollback of spec failed, it keeps the change's content",
                    exc_info=exc,
                    extra={
                        "extra_fields": {
                            "op": "rollback",
                            "domain": domain,
                        }
                    },
                )
                continue
            restored.append(domain)
        return restored

    @staticmethod
    def _commit_error(
        change: Change,
        domain: str,
        result: ApplyResult,
        exc: TeamwerxError,
        rolled_back: list[str] | None = None,
    ) -> TeamwerxApplyError:
        return TeamwerxApplyError(
            f"failed to apply change {change.id}: {exc.message}",
            context={
                "change_id": change.id,
                "domain": domain,
                "domains_written": list(result.domains_written),
                "rolled_back": rolled_back or [],
            },
            cause=exc,
        )

    def _apply_sequential(self, change: Change, force: bool) -> ApplyResult:
        result = ApplyResult(change_id=change.id)
        for idx, delta in enumerate(change.spec_deltas):
            try:
                merged: MergeResult = self._merger.apply(delta, force=force)
            except TeamwerxError as exc:
                raise self._wrap(change, delta, idx, exc) from exc
            result.merges.append(merged)
            if delta.domain not in result.domains_written:
                result.domains_written.append(delta.domain)
        return result

    @staticmethod
    def _wrap(change: Change, delta: SpecDelta, idx: int, exc: TeamwerxError) -> TeamwerxApplyError:
        return TeamwerxApplyError(
            f"failed to apply change {change.id}: {exc.message}",
            context={"change_id": change.id, "domain": delta.domain, "delta_index": idx},
            cause=exc,
        )
