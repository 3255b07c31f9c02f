"""Tests for the note store registry and the SQLAlchemy note store."""

import pytest

from smartnote_queue import NoteStore, NoteStoreRegistry, NotFoundError, SQLAlchemyNoteStore

KIND = "OnDemandSmartNote"


def test_sqlalchemy_store_satisfies_protocol(note_store: SQLAlchemyNoteStore):
    assert isinstance(note_store, NoteStore)


# ============================================================================
# Registry Tests
# ============================================================================


def test_registry_get_registered_store(note_store: SQLAlchemyNoteStore):
    registry = NoteStoreRegistry()
    registry.register(KIND, note_store)

    assert registry.get(KIND) is note_store
    assert registry.kinds() == [KIND]


def test_registry_unknown_kind():
    with pytest.raises(NotFoundError, match="Unknown note kind"):
        NoteStoreRegistry().get("AppointmentSummary")


def test_note_ref_carries_label(registry: NoteStoreRegistry, make_note):
    note_id = make_note(text="Control de presión arterial")

    ref = registry.note_ref(KIND, note_id)

    assert ref.kind == KIND
    assert ref.id == note_id
    assert ref.label == "Control de presión arterial"


def test_note_ref_for_missing_note(registry: NoteStoreRegistry):
    ref = registry.note_ref(KIND, "999")
    assert ref.id == "999"
    assert ref.label is None


# ============================================================================
# SQLAlchemyNoteStore Tests
# ============================================================================


def test_exists(note_store: SQLAlchemyNoteStore, make_note):
    note_id = make_note()
    assert note_store.exists(note_id) is True
    assert note_store.exists("999") is False
    assert note_store.exists("not-a-number") is False


def test_label_is_truncated(session_factory):
    store = SQLAlchemyNoteStore(session_factory, kind=KIND, label_length=10)
    note_id = store.create_note("doctor-1", "Paciente con tos seca desde hace tres días")

    assert store.get_label(note_id) == "Paciente c"


def test_processing_parameters(note_store: SQLAlchemyNoteStore, make_note):
    params = note_store.get_processing_parameters(make_note())

    assert params.context_id == "ctx-1"
    assert params.environment == "env-1"
    assert params.direct is False


def test_processing_parameters_missing_note(note_store: SQLAlchemyNoteStore):
    with pytest.raises(NotFoundError):
        note_store.get_processing_parameters("999")


def test_write_and_read_result(note_store: SQLAlchemyNoteStore, make_note):
    note_id = make_note()
    assert note_store.get_result(note_id) is None

    note_store.write_result(note_id, "Diagnosis: common cold")

    assert note_store.get_result(note_id) == "Diagnosis: common cold"


def test_write_result_missing_note(note_store: SQLAlchemyNoteStore):
    with pytest.raises(NotFoundError):
        note_store.write_result("999", "result")


def test_result_history_order(note_store: SQLAlchemyNoteStore, make_note):
    note_id = make_note()

    note_store.append_result_history(note_id, "first", "doctor-1")
    note_store.append_result_history(note_id, "second", "doctor-2")

    rows = note_store.history(note_id)
    assert [(row.previous_result, row.edited_by) for row in rows] == [
        ("first", "doctor-1"),
        ("second", "doctor-2"),
    ]
    assert all(row.note_kind == KIND for row in rows)


def test_overwrite_records_previous_result(note_store: SQLAlchemyNoteStore, make_note):
    note_id = make_note()

    note_store.write_result(note_id, "first", edited_by="doctor-1")
    assert note_store.history(note_id) == []

    note_store.write_result(note_id, "second", edited_by="doctor-2")

    (row,) = note_store.history(note_id)
    assert (row.previous_result, row.edited_by) == ("first", "doctor-2")
    assert note_store.get_result(note_id) == "second"


class FailingWriteNoteStore(SQLAlchemyNoteStore):
    """Store whose write fails after the history row has been flushed."""

    def _add_history(self, session, note_id, previous_result, edited_by):
        super()._add_history(session, note_id, previous_result, edited_by)
        session.flush()
        raise RuntimeError("disk full")


def test_failed_write_leaves_no_history(session_factory):
    store = FailingWriteNoteStore(session_factory, kind=KIND)
    note_id = store.create_note("doctor-1", "nota")
    store.write_result(note_id, "first")

    with pytest.raises(RuntimeError, match="disk full"):
        store.write_result(note_id, "second", edited_by="doctor-1")

    assert store.history(note_id) == []
    assert store.get_result(note_id) == "first"


def test_direct_flag_in_processing_parameters(note_store: SQLAlchemyNoteStore):
    note_id = note_store.create_note("doctor-1", "Receta", context_id="ctx-3", ai_direct=True)

    params = note_store.get_processing_parameters(note_id)

    assert params.direct is True
    assert params.context_id == "ctx-3"
