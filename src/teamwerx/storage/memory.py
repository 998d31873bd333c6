"""In-memory spec store.

Used by tests and by the change applier to stage merges before anything
touches disk.
"""

from __future__ import annotations

from teamwerx.config import TeamwerxConfig
from teamwerx.document.spec import read_spec
from teamwerx.errors import TeamwerxDivergedError, TeamwerxNotFoundError
from teamwerx.models import Spec
from teamwerx.storage.files import validate_name
from teamwerx.utils.hashing import fingerprint


class MemorySpecStore:
    """Spec store backed by a ``domain -> content`` dict."""

    def __init__(
        self,
        contents: dict[str, str] | None = None,
        config: TeamwerxConfig | None = None,
    ) -> None:
        self._config = config or TeamwerxConfig()
        self.contents: dict[str, str] = dict(contents or {})
        self.writes: list[str] = []

    def read_spec(self, domain: str) -> Spec:
        name = validate_name(domain, "domain")
        if name not in self.contents:
            raise TeamwerxNotFoundError(
                f"spec with ID '{name}' not found",
                context={"resource_type": "spec", "resource_id": name},
            )
        return read_spec(name, self.contents[name], self._config)

    def write_spec(self, spec: Spec, expected_fingerprint: str | None = None) -> None:
        name = validate_name(spec.domain, "domain")
        if expected_fingerprint is not None and self._config.conditional_write:
            current = fingerprint(self.contents.get(name, ""), self._config.fingerprint_bytes)
            if current != expected_fingerprint:
                raise TeamwerxDivergedError(
                    f"Spec '{name}' has diverged while merging",
                    context={
                        "domain": name,
                        "base_fingerprint": expected_fingerprint,
                        "current_fingerprint": current,
                        "reason": "spec changed between read and write",
                        "details": [],
                    },
                )
        self.contents[name] = spec.content
        self.writes.append(name)

    def list_specs(self) -> list[Spec]:
        return [self.read_spec(domain) for domain in sorted(self.contents)]
