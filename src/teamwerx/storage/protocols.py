"""Capability protocols for spec and change persistence.

The merger, the change applier and the :class:`~teamwerx.workspace.Teamwerx`
facade depend on these protocols only, so a file-backed store can be
swapped for the in-memory one (or a test double) without touching them.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from teamwerx.models import Change, Spec


@runtime_checkable
class SpecStore(Protocol):
    """Read and write one markdown spec per domain."""

    def read_spec(self, domain: str) -> Spec:
        """Return the current spec.

        Raises :class:`~teamwerx.errors.TeamwerxNotFoundError` when the
        domain has no spec yet.
        """
        ...

    def write_spec(self, spec: Spec, expected_fingerprint: str | None = None) -> None:
        """Persist ``spec.content`` wholesale.

        When *expected_fingerprint* is given the store may refuse the write
        with :class:`~teamwerx.errors.TeamwerxDivergedError` if the stored
        spec no longer has that fingerprint.
        """
        ...

    def list_specs(self) -> list[Spec]:
        """Return every readable spec; unreadable ones are skipped."""
        ...


@runtime_checkable
class ChangeStore(Protocol):
    """Persist change bundles."""

    def read_change(self, change_id: str) -> Change:
        ...

    def list_changes(self) -> list[Change]:
        ...

    def save(self, change: Change) -> None:
        ...

    def archive(self, change: Change) -> None:
        ...
