import logging
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from models import Query, User
from chat_models import QueryType
from errors import PersistenceError

logger = logging.getLogger(__name__)

class QueryLog:
    """Append-only audit log of chat exchanges"""

    def log_query(
        self,
        db: Session,
        user_id: str,
        query_text: str,
        query_type: QueryType,
        response_text: str
    ) -> Query:
        try:
            if db.get(User, user_id) is None:
                raise PersistenceError(f"Unknown user: {user_id}")

            query = Query(
                user_id=user_id,
                query_text=query_text,
                query_type=QueryType(query_type).value,
                response_text=response_text
            )
            db.add(query)
            db.commit()
            db.refresh(query)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to log query for user {user_id}: {e}")
            raise PersistenceError("Failed to log query")

        return query

    def list_queries(self, db: Session, user_id: str, limit: int = 50) -> List[Query]:
        """Most recent queries for a user, newest first"""
        try:
            return db.query(Query)\
                     .filter(Query.user_id == user_id)\
                     .order_by(Query.created_at.desc())\
                     .limit(limit)\
                     .all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to list queries for user {user_id}: {e}")
            raise PersistenceError("Failed to load query history")

query_log = QueryLog()
