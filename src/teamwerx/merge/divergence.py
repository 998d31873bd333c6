"""Divergence detection for spec deltas.

A delta records the fingerprint of the spec it was written against.  Before
its operations run, that base is compared with the fingerprint of the spec
as it is now; a mismatch means someone edited the document in between and
the delta may overwrite their work.
"""

from __future__ import annotations

from teamwerx.errors import TeamwerxDivergedError
from teamwerx.models import OperationType, RequirementDivergence, Spec, SpecDelta
from teamwerx.utils.hashing import DEFAULT_FINGERPRINT_BYTES


def is_diverged(spec: Spec, delta: SpecDelta) -> bool:
    """Return ``True`` if *spec* no longer matches the base of *delta*.

    The check is skipped (``False``) when either side has no recorded
    state: a delta without a base fingerprint, or an empty spec.
    """
    if not delta.base_fingerprint or not spec.fingerprint:
        return False
    return spec.fingerprint != delta.base_fingerprint


def analyze_divergence(
    base_requirements: dict[str, str],
    spec: Spec,
    size: int = DEFAULT_FINGERPRINT_BYTES,
) -> list[RequirementDivergence]:
    """List the requirements that changed between a base and *spec*.

    Parameters
    ----------
    base_requirements:
        Requirement id to fingerprint map captured with the base.
    spec:
        The spec as it is now.
    size:
        Fingerprint size used when *base_requirements* was captured.

    Returns
    -------
    list[RequirementDivergence]
        Modified and removed requirements in base order, then added ones in
        document order.  Empty when *base_requirements* is empty.
    """
    if not base_requirements:
        return []
    current = spec.requirement_fingerprints(size)
    details: list[RequirementDivergence] = []
    for req_id, base_fp in base_requirements.items():
        current_fp = current.get(req_id)
        if current_fp is None:
            details.append(
                RequirementDivergence(
                    requirement=req_id,
                    change=OperationType.REMOVED.value,
                    message=f"Requirement '{req_id}' was removed from spec",
                )
            )
        elif current_fp != base_fp:
            details.append(
                RequirementDivergence(
                    requirement=req_id,
                    change=OperationType.MODIFIED.value,
                    message=f"Requirement '{req_id}' was modified in spec",
                )
            )
    for req_id in current:
        if req_id not in base_requirements:
            details.append(
                RequirementDivergence(
                    requirement=req_id,
                    change=OperationType.ADDED.value,
                    message=f"Requirement '{req_id}' was added to spec",
                )
            )
    return details


def divergence_error(
    spec: Spec,
    delta: SpecDelta,
    size: int = DEFAULT_FINGERPRINT_BYTES,
) -> TeamwerxDivergedError:
    """Build the error describing how *spec* diverged from *delta*'s base."""
    details = analyze_divergence(delta.base_requirements, spec, size)
    changed = ""
    if details:
        changed = " Changed requirements: " + ", ".join(d.requirement for d in details) + "."
    return TeamwerxDivergedError(
        f"Spec '{delta.domain}' has diverged from the change's base "
        f"(base {delta.base_fingerprint}, current {spec.fingerprint}).{changed} "
        f"Run 'teamwerx change resolve' to refresh the base fingerprints, "
        f"or re-run with --force to apply anyway.",
        context={
            "domain": delta.domain,
            "base_fingerprint": delta.base_fingerprint,
            "current_fingerprint": spec.fingerprint,
            "reason": "current spec fingerprint does not match delta base fingerprint",
            "details": [d.to_dict() for d in details],
        },
    )


def check_divergence(
    spec: Spec,
    delta: SpecDelta,
    size: int = DEFAULT_FINGERPRINT_BYTES,
) -> None:
    """Raise :class:`TeamwerxDivergedError` if *spec* diverged from *delta*.

    See :func:`is_diverged` for when the check is skipped.
    """
    if is_diverged(spec, delta):
        raise divergence_error(spec, delta, size)
