"""Workspace facade.

:class:`Teamwerx` wires the spec and change stores, the merger and the
change applier for one workspace directory.  It is what the CLI talks to.

Usage::

    from teamwerx import Teamwerx

    tw = Teamwerx(root_dir=".teamwerx")
    change = tw.read_change("001-add-2fa")
    result = tw.apply_change(change)
    print(result.domains_written)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from teamwerx.config import TeamwerxConfig
from teamwerx.errors import TeamwerxValidationError
from teamwerx.merge.applier import ChangeApplier
from teamwerx.merge.delta_parser import DeltaDocumentParser
from teamwerx.merge.merger import SpecMerger
from teamwerx.models import ApplyResult, Change, ChangeStatus, MergeResult, Spec, SpecDelta
from teamwerx.observability import get_logger
from teamwerx.storage.changes import FileChangeStore
from teamwerx.storage.protocols import ChangeStore, SpecStore
from teamwerx.storage.specs import FileSpecStore

log = get_logger("teamwerx.workspace")


class Teamwerx:
    """Entry point for spec and change operations in one workspace.

    Parameters
    ----------
    config:
        Full configuration.  Mutually exclusive with ``**kwargs``.
    specs:
        Spec store override (defaults to a :class:`FileSpecStore`).
    changes:
        Change store override (defaults to a :class:`FileChangeStore`).
    **kwargs:
        Forwarded to :class:`TeamwerxConfig` when *config* is not given.
    """

    def __init__(
        self,
        config: TeamwerxConfig | None = None,
        *,
        specs: SpecStore | None = None,
        changes: ChangeStore | None = None,
        **kwargs: Any,
    ) -> None:
        if config is not None and kwargs:
            raise TypeError("pass either config or configuration keywords, not both")
        self._config = config or TeamwerxConfig(**kwargs)
        self._specs = specs if specs is not None else FileSpecStore(self._config)
        self._changes = changes if changes is not None else FileChangeStore(self._config)
        self._merger = SpecMerger(self._specs, self._config)
        self._applier = ChangeApplier(self._merger, self._changes, self._config)
        self._delta_parser = DeltaDocumentParser(self._config)

    @property
    def config(self) -> TeamwerxConfig:
        return self._config

    @property
    def specs(self) -> SpecStore:
        return self._specs

    @property
    def changes(self) -> ChangeStore:
        return self._changes

    @property
    def delta_parser(self) -> DeltaDocumentParser:
        return self._delta_parser

    # ------------------------------------------------------------------
    # Specs
    # ------------------------------------------------------------------

    def read_spec(self, domain: str) -> Spec:
        return self._specs.read_spec(domain)

    def list_specs(self) -> list[Spec]:
        return self._specs.list_specs()

    def fingerprints(self, domain: str) -> dict[str, str]:
        """Per-requirement fingerprints of *domain*'s spec."""
        return self.read_spec(domain).requirement_fingerprints(self._config.fingerprint_bytes)

    def merge_delta(self, delta: SpecDelta, force: bool = False, dry_run: bool = False) -> MergeResult:
        """Merge a single delta into its spec and write it back."""
        return self._merger.apply(delta, force=force, dry_run=dry_run)

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    def read_change(self, change_id: str) -> Change:
        return self._changes.read_change(change_id)

    def list_changes(self) -> list[Change]:
        return self._changes.list_changes()

    def create_change(
        self,
        change_id: str,
        title: str,
        deltas: list[SpecDelta],
        goal_id: str = "",
        capture_base: bool = True,
    ) -> Change:
        """Create and save a draft change.

        With *capture_base*, deltas without a base fingerprint get the
        fingerprints of the specs as they are now.
        """
        if not change_id.strip():
            raise TeamwerxValidationError(
                "change id cannot be empty", context={"field": "id", "value": change_id}
            )
        change = Change(
            id=change_id.strip(),
            title=title,
            status=ChangeStatus.DRAFT.value,
            spec_deltas=list(deltas),
            goal_id=goal_id,
        )
        if capture_base:
            missing = [d for d in change.spec_deltas if not d.base_fingerprint]
            if missing:
                self._applier.refresh_base_fingerprints(
                    Change(id=change.id, spec_deltas=missing)
                )
        self._changes.save(change)
        log.info(
            "change created",
            extra={"extra_fields": {"change_id": change.id, "deltas": len(change.spec_deltas)}},
        )
        return change

    def create_change_from_documents(
        self,
        change_id: str,
        title: str,
        paths: list[str | Path],
        goal_id: str = "",
    ) -> Change:
        """Create a draft change from delta documents on disk.

        Raises
        ------
        TeamwerxValidationError
            A document fails validation or lists a requirement in two
            sections.
        """
        deltas: list[SpecDelta] = []
        for path in paths:
            doc = self._delta_parser.parse_file(path)
            problems = self._delta_parser.validate(doc)
            problems.extend(c.message for c in self._delta_parser.find_conflicts(doc))
            if problems:
                raise TeamwerxValidationError(
                    f"invalid delta document '{path}': " + "; ".join(problems),
                    context={"field": "delta", "path": str(path), "problems": problems},
                )
            deltas.append(doc.to_spec_delta())
        return self.create_change(change_id, title, deltas, goal_id=goal_id)

    def apply_change(self, change: Change, force: bool = False, dry_run: bool = False) -> ApplyResult:
        return self._applier.apply(change, force=force, dry_run=dry_run)

    def resolve_change(self, change: Change, dry_run: bool = False) -> ApplyResult:
        """Refresh base fingerprints, save the change, and apply it."""
        self._applier.refresh_base_fingerprints(change)
        if not dry_run:
            self._changes.save(change)
        return self._applier.apply(change, dry_run=dry_run)

    def archive_change(self, change: Change) -> None:
        self._changes.archive(change)
        log.info("change archived", extra={"extra_fields": {"change_id": change.id}})
