import pytest

from diagnosis_service import DiagnosisService
from errors import PersistenceError, ValidationError

service = DiagnosisService()


def test_save_diagnosis_echoes_inputs(session, user):
    record = service.save_diagnosis(
        session, user_id=user.id, image_path="p", disease="Late Blight", solution="s", confidence=0.92
    )

    assert record.id
    assert record.diagnosis_date is not None
    assert record.user_id == user.id
    assert record.image_path == "p"
    assert record.disease_detected == "Late Blight"
    assert record.solution == "s"
    assert record.confidence == 0.92


def test_duplicate_saves_create_separate_records(session, user):
    first = service.save_diagnosis(session, user.id, "p", "Late Blight", "s", 0.92)
    second = service.save_diagnosis(session, user.id, "p", "Late Blight", "s", 0.92)

    assert first.id != second.id
    assert len(service.list_diagnoses(session, user.id)) == 2


def test_unknown_user_is_a_persistence_error(session):
    with pytest.raises(PersistenceError):
        service.save_diagnosis(session, "u1", "p", "Late Blight", "s", 0.92)


def test_confidence_outside_unit_interval_is_rejected(session, user):
    with pytest.raises(ValidationError):
        service.save_diagnosis(session, user.id, "p", "Late Blight", "s", 1.5)


def test_list_search_and_owner_scope(session, user):
    service.save_diagnosis(session, user.id, "a", "Late Blight", "s", 0.92)
    service.save_diagnosis(session, user.id, "b", "Powdery Mildew", "s", 0.87)

    assert [d.image_path for d in service.list_diagnoses(session, user.id)] == ["b", "a"]
    assert [d.disease_detected for d in service.list_diagnoses(session, user.id, "mildew")] == ["Powdery Mildew"]
    assert service.list_diagnoses(session, "someone-else") == []


def test_delete_diagnosis(session, user):
    record = service.save_diagnosis(session, user.id, "p", "Late Blight", "s", 0.92)

    assert service.delete_diagnosis(session, "someone-else", record.id) is False
    assert service.delete_diagnosis(session, user.id, record.id) is True
    assert service.get_diagnosis(session, user.id, record.id) is None
