"""
CollectionSession tests.

Tests:
1. Lazy load, seeding and recovery notices
2. add / update / remove / replace_all validation and persistence
3. Derived views are snapshots: later mutations do not change them
4. Failed saves keep the change in memory and add a notice (no retry)
5. Import / export through the session
6. Default view parameters and filter options
"""

import json
import logging

import pytest

from dashkit.config import settings
from dashkit.kernel.aggregates import Count
from dashkit.kernel.params import ViewParameters
from dashkit.kernel.types import CollectionSchema
from dashkit.store.samples import TASK_SCHEMA, TASKS
from dashkit.store.session import CollectionSession, RecordError
from dashkit.store.storage import FileRecordStore

NEW_TASK = {
    "title": "Write release notes",
    "assignee": "Marco",
    "status": "todo",
    "priority": "medium",
    "tags": ["release"],
    "due_date": "2024-06-05",
    "estimate_hours": 1.0,
}


@pytest.fixture
def session(store):
    return CollectionSession(store, "tasks", TASK_SCHEMA, TASKS.records)


def stored_ids(store):
    return [r["id"] for r in store.load("tasks")]


# ============================================================================
# Loading
# ============================================================================


class TestOpen:
    def test_first_use_loads_the_seed(self, session, store):
        assert session.records == TASKS.records
        assert session.notices == []
        assert store.items == {}

    def test_explicit_open_reports_source(self, session):
        assert session.open().source == "seeded"

    def test_corrupt_store_becomes_a_notice(self, store):
        store.items["tasks"] = "garbage"
        session = CollectionSession(store, "tasks", TASK_SCHEMA, TASKS.records)
        assert session.records == TASKS.records
        assert session.notices == ["Saved data for 'tasks' could not be read; 4 sample record(s) were loaded instead."]

    def test_no_seed(self, store):
        assert CollectionSession(store, "tasks", TASK_SCHEMA).records == []

    def test_get(self, session):
        assert session.get("task_002")["title"] == "Fix login redirect"
        assert session.get("task_999") is None


# ============================================================================
# Mutations
# ============================================================================


class TestMutations:
    def test_add_generates_id_and_saves(self, session, store):
        added = session.add(NEW_TASK)
        assert len(added["id"]) == 32
        assert session.records[-1] == added
        assert stored_ids(store)[-1] == added["id"]
        assert "id" not in NEW_TASK

    def test_add_keeps_given_id(self, session):
        assert session.add({**NEW_TASK, "id": "task_005"})["id"] == "task_005"

    def test_add_duplicate_id(self, session):
        with pytest.raises(RecordError, match="Duplicate id"):
            session.add({**NEW_TASK, "id": "task_001"})
        assert len(session.records) == 4

    def test_add_invalid(self, session, store):
        with pytest.raises(RecordError, match="status"):
            session.add({**NEW_TASK, "status": "blocked"})
        assert len(session.records) == 4
        assert store.items == {}

    def test_update(self, session, store):
        updated = session.update("task_002", {"status": "done", "estimate_hours": None})
        assert updated["status"] == "done"
        assert session.get("task_002") == updated
        assert store.load("tasks")[1]["status"] == "done"

    def test_update_does_not_edit_in_place(self, session):
        original = session.get("task_002")
        session.update("task_002", {"status": "done"})
        assert original["status"] == "todo"

    def test_update_rejects_id_change(self, session):
        with pytest.raises(RecordError, match="Cannot change id"):
            session.update("task_002", {"id": "task_999"})

    def test_update_allows_same_id(self, session):
        assert session.update("task_002", {"id": "task_002", "priority": "low"})["priority"] == "low"

    def test_update_invalid(self, session):
        with pytest.raises(RecordError):
            session.update("task_002", {"due_date": "next week"})
        assert session.get("task_002")["due_date"] == "2024-05-20"

    def test_update_unknown(self, session):
        with pytest.raises(RecordError, match="No record"):
            session.update("task_999", {"status": "done"})

    def test_remove(self, session, store):
        removed = session.remove("task_003")
        assert removed["id"] == "task_003"
        assert stored_ids(store) == ["task_001", "task_002", "task_004"]

    def test_remove_unknown(self, session):
        with pytest.raises(RecordError):
            session.remove("task_999")

    def test_replace_all_copies(self, session):
        records = [dict(TASKS.records[0])]
        session.replace_all(records)
        records[0]["title"] = "changed"
        assert session.records[0]["title"] == "Draft Q3 roadmap"

    def test_replace_all_rejects_duplicates(self, session):
        with pytest.raises(RecordError, match="Duplicate id"):
            session.replace_all([TASKS.records[0], TASKS.records[0]])
        assert len(session.records) == 4

    def test_reset_to_sample(self, session, store):
        session.remove("task_001")
        session.reset_to_sample()
        assert session.records == TASKS.records
        assert stored_ids(store) == ["task_001", "task_002", "task_003", "task_004"]

    def test_persists_across_sessions(self, tmp_path):
        first = CollectionSession(FileRecordStore(tmp_path), "tasks", TASK_SCHEMA, TASKS.records)
        added = first.add(NEW_TASK)
        second = CollectionSession(FileRecordStore(tmp_path), "tasks", TASK_SCHEMA, TASKS.records)
        assert second.get(added["id"]) == added
        assert second.open().source == "stored"


# ============================================================================
# Snapshots
# ============================================================================


class TestSnapshots:
    def test_earlier_view_is_unchanged(self, session):
        before = session.view(aggregates={"n": Count()})
        session.update("task_001", {"title": "Renamed"})
        session.remove("task_004")
        assert before.visible[0]["title"] == "Draft Q3 roadmap"
        assert before.total == 4
        assert before.aggregates["n"] == 4

    def test_view_sees_latest_snapshot(self, session):
        session.add(NEW_TASK)
        assert session.view().total == 5


# ============================================================================
# Save failures
# ============================================================================


class TestSaveFailure:
    def test_change_kept_in_memory_with_notice(self, unwritable_store, caplog):
        session = CollectionSession(unwritable_store, "tasks", TASK_SCHEMA, TASKS.records)
        with caplog.at_level(logging.WARNING, logger="dashkit.store.session"):
            session.add(NEW_TASK)
        assert len(session.records) == 5
        assert session.notices == [
            "Changes could not be saved: quota exceeded. They are kept for this session only."
        ]
        assert "failed to save" in caplog.text

    def test_no_retry(self, unwritable_store):
        session = CollectionSession(unwritable_store, "tasks", TASK_SCHEMA, TASKS.records)
        session.add(NEW_TASK)
        session.remove("task_001")
        assert unwritable_store.save_attempts == 2
        assert len(session.notices) == 2


# ============================================================================
# Import / export
# ============================================================================


class TestSessionTransfer:
    def test_import_merges_and_reports(self, session, store):
        incoming = [{**NEW_TASK, "id": "task_010"}, {**TASKS.records[0], "title": "Other"}]
        result = session.import_text(json.dumps(incoming), "json", "preserve", "skip")
        assert result.imported == 2
        assert [r["id"] for r in session.records][-1] == "task_010"
        assert session.get("task_001")["title"] == "Draft Q3 roadmap"
        assert session.take_notices() == [
            "Imported 2 record(s). 1 record(s) already existed and were left unchanged."
        ]
        assert "task_010" in stored_ids(store)

    def test_import_overwrite(self, session):
        incoming = [{**TASKS.records[0], "title": "Other"}]
        session.import_text(json.dumps(incoming), "json", "preserve", "overwrite")
        assert session.get("task_001")["title"] == "Other"

    def test_import_that_changes_nothing_does_not_save(self, session, store):
        session.import_text(json.dumps([TASKS.records[0]]), "json", "preserve", "skip")
        assert store.items == {}

    def test_import_reports_malformed_rows(self, session):
        text = "id,title,status,priority,tags\nt1,Good,todo,low,\nt2,Bad,later,low,\n"
        session.import_text(text, "csv", "preserve", "skip")
        assert session.take_notices() == ["Imported 1 record(s), skipped 1 malformed row(s)."]
        assert session.get("t1") is not None

    def test_import_with_int_ids(self, store):
        schema = CollectionSchema(fields={"id": "int", "name": "string"})
        people = CollectionSession(store, "people", schema, [{"id": 1, "name": "Ada"}])
        result = people.import_text('[{"id": 2, "name": "Grace"}]', "json", "preserve", "append")
        assert result.errors == []
        assert [r["id"] for r in people.records] == [1, 2]

    def test_int_id_collision_uses_the_factory(self, store):
        schema = CollectionSchema(fields={"id": "int", "name": "string"})
        people = CollectionSession(store, "people", schema, [{"id": 1, "name": "Ada"}])
        people.import_text('[{"id": 1, "name": "Grace"}]', "json", "preserve", "append", id_factory=lambda: 99)
        assert people.records == [{"id": 1, "name": "Ada"}, {"id": 99, "name": "Grace"}]
        assert [r["id"] for r in store.load("people")] == [1, 99]

    def test_export(self, session):
        assert session.export_text("csv").startswith("id,title,assignee,status,priority,tags,due_date,estimate_hours\n")
        assert json.loads(session.export_text("json")) == TASKS.records


# ============================================================================
# Views
# ============================================================================


class TestSessionViews:
    def test_default_page_size(self, session):
        view = session.view()
        assert view.page_size == settings.PAGE_SIZE
        assert view.page_index == 1

    def test_explicit_params(self, session):
        view = session.view(ViewParameters(filters={"assignee": "Priya"}))
        assert [r["id"] for r in view.visible] == ["task_001", "task_004"]

    def test_options(self, session):
        assert session.options_for("assignee") == ["Marco", "Priya"]
        assert session.options_for("tags") == ["auth", "bug", "docs", "planning", "release"]
        assert session.options_for("status") == ["done", "in_progress", "todo"]

    def test_take_notices_clears(self, session):
        session.notices.append("hello")
        assert session.take_notices() == ["hello"]
        assert session.notices == []
