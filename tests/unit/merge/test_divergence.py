"""Tests for merge/divergence.py: base fingerprint checks."""

import pytest

from teamwerx.document.spec import read_spec
from teamwerx.errors import ErrorCode, TeamwerxDivergedError
from teamwerx.merge.divergence import (
    analyze_divergence,
    check_divergence,
    divergence_error,
    is_diverged,
)
from teamwerx.models import Spec, SpecDelta


def _spec(text: str) -> Spec:
    return read_spec("auth", text)


class TestIsDiverged:
    def test_empty_base_never_diverges(self, auth_spec):
        assert is_diverged(_spec(auth_spec), SpecDelta(domain="auth")) is False

    def test_empty_spec_never_diverges(self):
        assert is_diverged(Spec(domain="auth"), SpecDelta(domain="auth", base_fingerprint="abc")) is False

    def test_matching_fingerprint(self, auth_spec):
        spec = _spec(auth_spec)
        assert is_diverged(spec, SpecDelta(domain="auth", base_fingerprint=spec.fingerprint)) is False

    def test_mismatch(self, auth_spec):
        assert is_diverged(_spec(auth_spec), SpecDelta(domain="auth", base_fingerprint="f2")) is True

    def test_trailing_whitespace_edit_is_not_divergence(self, auth_spec):
        base = _spec(auth_spec).fingerprint
        assert is_diverged(_spec(auth_spec + "\n\n  "), SpecDelta(domain="auth", base_fingerprint=base)) is False


class TestCheckDivergence:
    def test_passes_silently(self, auth_spec):
        check_divergence(_spec(auth_spec), SpecDelta(domain="auth"))

    def test_raises_with_context(self, auth_spec):
        spec = _spec(auth_spec)
        with pytest.raises(TeamwerxDivergedError) as exc_info:
            check_divergence(spec, SpecDelta(domain="auth", base_fingerprint="deadbeefcafebabe"))
        err = exc_info.value
        assert err.code == ErrorCode.DIVERGED
        assert err.context["domain"] == "auth"
        assert err.context["base_fingerprint"] == "deadbeefcafebabe"
        assert err.context["current_fingerprint"] == spec.fingerprint
        assert err.context["reason"]
        assert err.context["details"] == []

    def test_message_is_actionable(self, auth_spec):
        err = divergence_error(_spec(auth_spec), SpecDelta(domain="auth", base_fingerprint="x"))
        message = str(err)
        assert "auth" in message
        assert "diverged" in message
        assert "teamwerx change resolve" in message
        assert "--force" in message

    def test_details_name_changed_requirements(self, auth_spec):
        base = _spec(auth_spec)
        edited = _spec(auth_spec.replace("Users MAY reset.", "Users MUST reset."))
        delta = SpecDelta(
            domain="auth",
            base_fingerprint=base.fingerprint,
            base_requirements=base.requirement_fingerprints(),
        )
        with pytest.raises(TeamwerxDivergedError) as exc_info:
            check_divergence(edited, delta)
        assert exc_info.value.context["details"] == [
            {
                "requirement": "password-reset",
                "change": "MODIFIED",
                "message": "Requirement 'password-reset' was modified in spec",
            }
        ]
        assert "password-reset" in str(exc_info.value)


class TestAnalyzeDivergence:
    def test_no_base_requirements(self, auth_spec):
        assert analyze_divergence({}, _spec(auth_spec)) == []

    def test_modified_removed_added(self):
        base = _spec("### Requirement: A\na\n\n### Requirement: B\nb\n\n")
        current = _spec("### Requirement: A\nchanged\n\n### Requirement: C\nc\n\n")
        details = analyze_divergence(base.requirement_fingerprints(), current)
        assert [(d.requirement, d.change) for d in details] == [
            ("a", "MODIFIED"),
            ("b", "REMOVED"),
            ("c", "ADDED"),
        ]

    def test_unchanged(self, auth_spec):
        spec = _spec(auth_spec)
        assert analyze_divergence(spec.requirement_fingerprints(), spec) == []

    def test_custom_fingerprint_size(self, auth_spec):
        spec = _spec(auth_spec)
        assert analyze_divergence(spec.requirement_fingerprints(4), spec, size=4) == []
