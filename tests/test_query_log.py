import pytest

from chat_models import QueryType
from errors import PersistenceError
from query_log import QueryLog

log = QueryLog()


def test_log_query_persists_exchange(session, user):
    query = log.log_query(session, user.id, "When should I water?", QueryType.TEXT, "Early morning.")

    assert query.id
    assert query.created_at is not None
    assert query.query_type == "text"
    assert query.query_text == "When should I water?"
    assert query.response_text == "Early morning."


def test_log_query_requires_known_user(session):
    with pytest.raises(PersistenceError):
        log.log_query(session, "ghost", "hello", QueryType.TEXT, "hi")


def test_log_query_rejects_unknown_type(session, user):
    with pytest.raises(ValueError):
        log.log_query(session, user.id, "hello", "video", "hi")


def test_list_queries_newest_first_with_limit(session, user):
    for i in range(3):
        log.log_query(session, user.id, f"question {i}", QueryType.TEXT, "answer")

    queries = log.list_queries(session, user.id, limit=2)
    assert [q.query_text for q in queries] == ["question 2", "question 1"]
