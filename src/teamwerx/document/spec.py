"""Build :class:`~teamwerx.models.Spec` snapshots from raw markdown."""

from __future__ import annotations

from teamwerx.config import TeamwerxConfig
from teamwerx.document.model import parse_requirements
from teamwerx.models import Spec
from teamwerx.utils.hashing import fingerprint


def read_spec(domain: str, content: str, config: TeamwerxConfig | None = None) -> Spec:
    """Parse *content* into a spec for *domain*.

    Requirements and fingerprint are derived here, on every read; neither
    is ever stored next to the document.
    """
    cfg = config or TeamwerxConfig()
    return Spec(
        domain=domain,
        content=content,
        requirements=parse_requirements(
            content, cfg.requirement_level, cfg.requirement_prefix
        ),
        fingerprint=fingerprint(content, cfg.fingerprint_bytes),
    )
