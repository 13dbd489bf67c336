from datetime import datetime

import pytest

from chat_models import DiagnosisResult, QueryType, Sender
from chat_service import IMAGE_ERROR_REPLY, TEXT_ERROR_REPLY, build_bot_reply, build_error_reply
from errors import PersistenceError, ValidationError
from models import Diagnosis, Query

IRRIGATION = (
    "Water your crops early in the morning to reduce evaporation. "
    "Use mulch to retain moisture and prevent weed growth."
)


def test_build_bot_reply_for_text():
    first = build_bot_reply("hello")
    second = build_bot_reply("hello")

    assert first.content == "hello"
    assert first.sender == Sender.BOT
    assert isinstance(first.timestamp, datetime)
    assert first.id != second.id
    assert first.diagnosis_result is None
    assert first.has_image is False


def test_build_bot_reply_summarizes_diagnosis():
    result = DiagnosisResult(disease="Late Blight", confidence=0.92, treatment="copper")
    reply = build_bot_reply(result, image_url="/local-files/u1/leaf.png", message_id="d-1")

    assert reply.id == "d-1"
    assert reply.content == "I've analyzed your crop image and detected Late Blight with 92.0% confidence."
    assert reply.has_image is True
    assert reply.image_url == "/local-files/u1/leaf.png"
    assert reply.diagnosis_result == result


def test_error_replies():
    assert build_error_reply().content == TEXT_ERROR_REPLY
    assert build_error_reply(QueryType.IMAGE).content == IMAGE_ERROR_REPLY


def test_handle_text_logs_query_and_replies_with_its_id(service, session, user):
    reply = service.handle_text(session, user.id, "When should I water my tomatoes?")

    assert reply.content == IRRIGATION
    query = session.query(Query).one()
    assert query.query_type == "text"
    assert query.response_text == IRRIGATION
    assert reply.id == query.id


def test_handle_text_replies_even_when_query_log_fails(service, session):
    # Unknown user makes the audit write fail; the answer is still delivered
    reply = service.handle_text(session, "not-a-user", "When should I water my tomatoes?")

    assert reply.content == IRRIGATION
    assert reply.id
    assert session.query(Query).count() == 0


def test_handle_text_requires_message(service, session, user):
    with pytest.raises(ValidationError):
        service.handle_text(session, user.id, "   ")


def test_handle_image_uploads_diagnoses_and_persists(service, storage, session, user, png_bytes):
    reply = service.handle_image(session, user.id, "leaf.png", png_bytes)

    diagnosis = session.query(Diagnosis).one()
    assert reply.id == diagnosis.id
    assert reply.image_url == diagnosis.image_path
    assert reply.image_url.startswith(f"/local-files/{user.id}/")
    assert reply.image_url.endswith("-leaf.png")
    assert reply.diagnosis_result.disease == diagnosis.disease_detected
    assert reply.diagnosis_result.treatment == diagnosis.solution
    assert f"{reply.diagnosis_result.confidence * 100:.1f}% confidence" in reply.content

    stored = reply.image_url[len("/local-files/"):]
    assert (storage.local_storage.storage_dir / stored).read_bytes() == png_bytes

    logged = session.query(Query).one()
    assert logged.query_type == "image"
    assert logged.response_text == reply.content


def test_handle_image_strips_directories_from_filename(service, session, user, png_bytes):
    reply = service.handle_image(session, user.id, "../../etc/leaf.png", png_bytes)
    assert "/etc/" not in reply.image_url


def test_handle_image_requires_image_and_user(service, session, user, png_bytes):
    with pytest.raises(ValidationError, match="Image and userId are required"):
        service.handle_image(session, user.id, "leaf.png", b"")
    with pytest.raises(ValidationError, match="Image and userId are required"):
        service.handle_image(session, None, "leaf.png", png_bytes)


def test_handle_image_unknown_user_leaves_no_upload_behind(service, storage, session, png_bytes):
    with pytest.raises(PersistenceError):
        service.handle_image(session, "ghost", "leaf.png", png_bytes)

    files = [p for p in storage.local_storage.storage_dir.rglob("*") if p.is_file()]
    assert files == []
    assert session.query(Diagnosis).count() == 0


@pytest.mark.parametrize("user_id", ["..", "/etc", "a/../b", "..\\evil"])
def test_handle_image_rejects_path_like_user_ids(service, storage, session, png_bytes, user_id):
    with pytest.raises(ValidationError, match="Invalid userId"):
        service.handle_image(session, user_id, "leaf.png", png_bytes)

    assert list(storage.local_storage.storage_dir.rglob("*")) == []
