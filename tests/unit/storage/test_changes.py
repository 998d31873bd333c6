"""Tests for storage/changes.py: change.json persistence and archive."""

import json

import pytest

from teamwerx.errors import (
    TeamwerxMalformedStateError,
    TeamwerxNotFoundError,
    TeamwerxValidationError,
)
from teamwerx.models import Change, DeltaOperation, Requirement, SpecDelta


def _change(change_id: str = "001-add-mfa") -> Change:
    return Change(
        id=change_id,
        title="Add MFA",
        goal_id="G-1",
        spec_deltas=[
            SpecDelta(
                domain="auth",
                base_fingerprint="0123456789abcdef",
                operations=[
                    DeltaOperation(
                        type="ADDED",
                        requirement=Requirement(id="mfa", title="MFA", content="### Requirement: MFA\nTOTP.\n"),
                    )
                ],
            )
        ],
    )


class TestSaveAndRead:
    def test_round_trip(self, change_store):
        change = _change()
        change_store.save(change)
        loaded = change_store.read_change("001-add-mfa")
        assert loaded.title == "Add MFA"
        assert loaded.goal_id == "G-1"
        assert loaded.status == "draft"
        assert loaded.created_at == change.created_at
        assert loaded.spec_deltas[0].base_fingerprint == "0123456789abcdef"
        assert loaded.spec_deltas[0].operations[0].requirement.content == "### Requirement: MFA\nTOTP.\n"

    def test_json_shape(self, change_store, root):
        change_store.save(_change())
        path = root / "changes" / "001-add-mfa" / "change.json"
        text = path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        data = json.loads(text)
        assert data["id"] == "001-add-mfa"
        assert data["spec_deltas"][0]["operations"][0]["type"] == "ADDED"
        assert "applied_at" not in data
        assert "base_requirements" not in data["spec_deltas"][0]

    def test_created_at_set_once(self, change_store):
        change = _change()
        change_store.save(change)
        first = change.created_at
        assert first is not None
        change_store.save(change)
        assert change.created_at == first

    def test_missing(self, change_store):
        with pytest.raises(TeamwerxNotFoundError) as exc_info:
            change_store.read_change("nope")
        assert str(exc_info.value) == "change with ID 'nope' not found"

    def test_empty_id(self, change_store):
        with pytest.raises(TeamwerxValidationError) as exc_info:
            change_store.read_change("")
        assert exc_info.value.field == "id"

    def test_missing_id_falls_back_to_directory(self, change_store, root):
        path = root / "changes" / "hand-made" / "change.json"
        path.parent.mkdir(parents=True)
        path.write_text('{"title": "Manual", "spec_deltas": []}', encoding="utf-8")
        change = change_store.read_change("hand-made")
        assert change.id == "hand-made"
        assert change.status == "draft"

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            "[1, 2]",
            '{"id": "broken", "spec_deltas": [null]}',
            '{"id": "broken", "spec_deltas": [{"domain": "auth", "operations": [7]}]}',
            '{"id": 42}',
            '{"id": "broken", "created_at": "not a time"}',
        ],
    )
    def test_malformed(self, change_store, root, payload):
        path = root / "changes" / "broken" / "change.json"
        path.parent.mkdir(parents=True)
        path.write_text(payload, encoding="utf-8")
        with pytest.raises(TeamwerxMalformedStateError):
            change_store.read_change("broken")


class TestListChanges:
    def test_sorted_and_skips_unreadable(self, change_store, root):
        change_store.save(_change("002-b"))
        change_store.save(_change("001-a"))
        broken = root / "changes" / "003-broken"
        broken.mkdir()
        (broken / "change.json").write_text("{", encoding="utf-8")
        shaped = root / "changes" / "005-bad-shape"
        shaped.mkdir()
        (shaped / "change.json").write_text('{"id": "005-bad-shape", "spec_deltas": [null]}', encoding="utf-8")
        (root / "changes" / "004-empty").mkdir()
        assert [c.id for c in change_store.list_changes()] == ["001-a", "002-b"]

    def test_archived_not_listed(self, change_store):
        change = _change()
        change_store.save(change)
        change_store.archive(change)
        assert change_store.list_changes() == []

    def test_no_directory(self, change_store):
        assert change_store.list_changes() == []


class TestArchive:
    def test_moves_directory(self, change_store, root):
        change = _change()
        change_store.save(change)
        (root / "changes" / change.id / "notes.md").write_text("extra", encoding="utf-8")
        change_store.archive(change)
        archived = root / "changes" / ".archive" / change.id
        assert not (root / "changes" / change.id).exists()
        assert (archived / "notes.md").read_text(encoding="utf-8") == "extra"
        assert json.loads((archived / "change.json").read_text(encoding="utf-8"))["status"] == "archived"
        assert change.status == "archived"

    def test_unsaved_change_writes_json_only(self, change_store, root):
        change = _change("never-saved")
        change_store.archive(change)
        archived = root / "changes" / ".archive" / "never-saved" / "change.json"
        assert json.loads(archived.read_text(encoding="utf-8"))["status"] == "archived"

    def test_already_archived(self, change_store):
        change = _change()
        change_store.save(change)
        change_store.archive(change)
        with pytest.raises(TeamwerxValidationError):
            change_store.archive(change)
