"""Tests for merge/delta_parser.py: delta documents with front matter."""

import pytest

from teamwerx.errors import TeamwerxMalformedStateError, TeamwerxNotFoundError
from teamwerx.merge.delta_parser import DeltaDocumentParser

DELTA = """---
change: 001-add-2fa
domain: auth
base_fingerprint: 0123456789abcdef
---

# Spec Delta: auth

## ADDED Requirements

### Requirement: Two-Factor Authentication
Users MUST confirm sign-in with a second factor.

#### Scenario: TOTP
- code accepted

## MODIFIED Requirements

### Requirement: User Login
Users MUST log in with email and password.

## REMOVED Requirements

### Requirement: Legacy Tokens

## Notes

### Requirement: Not An Operation
ignored
"""


@pytest.fixture
def parser():
    return DeltaDocumentParser()


class TestParse:
    def test_front_matter(self, parser):
        doc = parser.parse(DELTA)
        assert doc.domain == "auth"
        assert doc.change == "001-add-2fa"
        assert doc.base_fingerprint == "0123456789abcdef"
        assert doc.metadata["change"] == "001-add-2fa"

    def test_sections(self, parser):
        doc = parser.parse(DELTA)
        assert [r.id for r in doc.operations["ADDED"]] == ["two-factor-authentication"]
        assert [r.id for r in doc.operations["MODIFIED"]] == ["user-login"]
        assert [r.id for r in doc.operations["REMOVED"]] == ["legacy-tokens"]
        assert doc.operation_count == 3

    def test_requirement_content_trimmed(self, parser):
        added = parser.parse(DELTA).operations["ADDED"][0]
        assert added.title == "Two-Factor Authentication"
        assert added.content == (
            "### Requirement: Two-Factor Authentication\n"
            "Users MUST confirm sign-in with a second factor.\n"
            "\n"
            "#### Scenario: TOTP\n"
            "- code accepted"
        )

    def test_other_section_closes_operations(self, parser):
        doc = parser.parse(DELTA)
        all_ids = [r.id for reqs in doc.operations.values() for r in reqs]
        assert "not-an-operation" not in all_ids

    def test_section_heading_case_insensitive(self, parser):
        doc = parser.parse("---\ndomain: x\n---\n## added requirements\n\n### Requirement: A\nbody\n")
        assert [r.id for r in doc.operations["ADDED"]] == ["a"]

    def test_repeated_section_accumulates(self, parser):
        text = (
            "## ADDED Requirements\n\n### Requirement: A\na\n\n"
            "## REMOVED Requirements\n\n### Requirement: Z\n\n"
            "## ADDED Requirements\n\n### Requirement: B\nb\n"
        )
        assert [r.id for r in parser.parse(text).operations["ADDED"]] == ["a", "b"]

    def test_no_front_matter(self, parser):
        doc = parser.parse("## ADDED Requirements\n\n### Requirement: A\nbody\n")
        assert doc.domain == ""
        assert doc.metadata == {}

    def test_invalid_yaml(self, parser):
        with pytest.raises(TeamwerxMalformedStateError):
            parser.parse("---\ndomain: [unclosed\n---\nbody\n")

    def test_to_spec_delta_order(self, parser):
        delta = parser.parse(DELTA).to_spec_delta()
        assert delta.domain == "auth"
        assert delta.base_fingerprint == "0123456789abcdef"
        assert [op.type for op in delta.operations] == ["REMOVED", "MODIFIED", "ADDED"]
        assert delta.operations[0].requirement.id == "legacy-tokens"


class TestParseFile:
    def test_reads_file(self, parser, tmp_path):
        path = tmp_path / "delta.md"
        path.write_text(DELTA, encoding="utf-8")
        assert parser.parse_file(path).domain == "auth"

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(TeamwerxNotFoundError):
            parser.parse_file(tmp_path / "nope.md")


class TestValidate:
    def test_valid(self, parser):
        assert parser.validate(parser.parse(DELTA)) == []

    def test_missing_domain_and_operations(self, parser):
        errors = parser.validate(parser.parse("# nothing here\n"))
        assert "Delta missing domain in front matter" in errors
        assert "Delta has no operations (ADDED/MODIFIED/REMOVED)" in errors

    def test_added_without_body(self, parser):
        doc = parser.parse("---\ndomain: auth\n---\n## ADDED Requirements\n\n### Requirement: Empty\n")
        assert parser.validate(doc) == ["ADDED requirement 'Empty' has no content"]

    def test_removed_without_body_is_fine(self, parser):
        doc = parser.parse("---\ndomain: auth\n---\n## REMOVED Requirements\n\n### Requirement: Gone\n")
        assert parser.validate(doc) == []


class TestFindConflicts:
    def test_none(self, parser):
        assert parser.find_conflicts(parser.parse(DELTA)) == []

    def test_all_pairs(self, parser):
        text = (
            "## ADDED Requirements\n\n### Requirement: X\nx\n\n### Requirement: Y\ny\n\n"
            "## MODIFIED Requirements\n\n### Requirement: X\nx2\n\n### Requirement: Z\nz\n\n"
            "## REMOVED Requirements\n\n### Requirement: Y\n\n### Requirement: Z\n"
        )
        conflicts = parser.find_conflicts(parser.parse(text))
        assert [(c.type, c.requirement_id) for c in conflicts] == [
            ("ADDED_AND_MODIFIED", "x"),
            ("ADDED_AND_REMOVED", "y"),
            ("MODIFIED_AND_REMOVED", "z"),
        ]
        assert conflicts[0].message == "Requirement 'x' appears in both ADDED and MODIFIED"


class TestTemplate:
    def test_template_parses(self, parser):
        text = parser.template("auth", "001-x")
        doc = parser.parse(text)
        assert doc.domain == "auth"
        assert doc.change == "001-x"
        assert parser.validate(doc) == []
        assert parser.find_conflicts(doc) == []
