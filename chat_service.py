import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence, Union
from sqlalchemy.orm import Session

from assistant_rules import RULES, Rule, classify
from blob_storage import BlobStorageService
from chat_models import ChatMessage, DiagnosisResult, QueryType, Sender
from diagnosis_service import DiagnosisService
from errors import PersistenceError, ValidationError
from image_classifier import ImageClassifier
from image_processor import ImageProcessor, content_type_for
from query_log import QueryLog

logger = logging.getLogger(__name__)

TEXT_ERROR_REPLY = "Sorry, I encountered an error processing your request. Please try again."
IMAGE_ERROR_REPLY = "Sorry, I encountered an error analyzing your image. Please try again."

def create_message_id() -> str:
    """Generate a unique message ID"""
    return str(uuid.uuid4())

def describe_diagnosis(result: DiagnosisResult) -> str:
    return (
        f"I've analyzed your crop image and detected {result.disease} "
        f"with {result.confidence * 100:.1f}% confidence."
    )

def build_bot_reply(
    reply: Union[str, DiagnosisResult],
    image_url: Optional[str] = None,
    message_id: Optional[str] = None
) -> ChatMessage:
    """Assemble a bot ChatMessage from a classification or a diagnosis"""
    if isinstance(reply, DiagnosisResult):
        return ChatMessage(
            id=message_id or create_message_id(),
            content=describe_diagnosis(reply),
            sender=Sender.BOT,
            timestamp=datetime.now(timezone.utc),
            has_image=image_url is not None,
            image_url=image_url,
            diagnosis_result=reply
        )

    return ChatMessage(
        id=message_id or create_message_id(),
        content=reply,
        sender=Sender.BOT,
        timestamp=datetime.now(timezone.utc),
        has_image=image_url is not None,
        image_url=image_url
    )

def build_error_reply(query_type: QueryType = QueryType.TEXT) -> ChatMessage:
    """Generic bot message shown in place of a failed submission"""
    content = IMAGE_ERROR_REPLY if query_type == QueryType.IMAGE else TEXT_ERROR_REPLY
    return build_bot_reply(content)

class ChatService:
    def __init__(
        self,
        storage: BlobStorageService,
        classifier: ImageClassifier,
        diagnoses: Optional[DiagnosisService] = None,
        queries: Optional[QueryLog] = None,
        rules: Sequence[Rule] = RULES,
        processor: Optional[ImageProcessor] = None
    ):
        self.storage = storage
        self.classifier = classifier
        self.diagnoses = diagnoses or DiagnosisService()
        self.queries = queries or QueryLog()
        self.rules = rules
        self.processor = processor or ImageProcessor()

    def handle_text(self, db: Session, user_id: str, message: str) -> ChatMessage:
        """Classify a text message, log the exchange and build the reply"""
        if not user_id:
            raise ValidationError("userId is required")
        if not message or not message.strip():
            raise ValidationError("message is required")

        response_text = classify(message, self.rules)

        # A failed audit write must not cost the user their answer
        try:
            query = self.queries.log_query(db, user_id, message, QueryType.TEXT, response_text)
            message_id = query.id
        except PersistenceError as e:
            logger.error(f"Query log failed for user {user_id}, replying anyway: {e}")
            message_id = None

        return build_bot_reply(response_text, message_id=message_id)

    def handle_image(self, db: Session, user_id: str, filename: str, image_bytes: bytes) -> ChatMessage:
        """Upload a crop image, diagnose it and persist the diagnosis"""
        if not user_id or not filename or not image_bytes:
            raise ValidationError("Image and userId are required")
        if "/" in user_id or "\\" in user_id or ".." in user_id:
            raise ValidationError("Invalid userId")

        safe_name = Path(filename).name
        self.processor.process_upload(safe_name, image_bytes)

        result = self.classifier.diagnose(safe_name, image_bytes)

        upload_path = f"{user_id}/{int(time.time() * 1000)}-{safe_name}"
        stored_path = self.storage.upload(upload_path, image_bytes, content_type_for(safe_name))
        image_url = self.storage.public_url(stored_path)

        try:
            diagnosis = self.diagnoses.save_diagnosis(
                db,
                user_id=user_id,
                image_path=image_url,
                disease=result.disease,
                solution=result.treatment,
                confidence=result.confidence
            )
        except (PersistenceError, ValidationError):
            # No record will point at the upload, so drop it
            self.storage.delete(stored_path)
            raise

        reply = build_bot_reply(result, image_url=image_url, message_id=diagnosis.id)

        try:
            self.queries.log_query(db, user_id, image_url, QueryType.IMAGE, reply.content)
        except PersistenceError as e:
            logger.error(f"Query log failed for image diagnosis {diagnosis.id}: {e}")

        return reply
