from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from enum import Enum

class Sender(str, Enum):
    USER = "user"
    BOT = "bot"

class QueryType(str, Enum):
    TEXT = "text"
    IMAGE = "image"

class DiagnosisResult(BaseModel):
    disease: str
    confidence: float = Field(ge=0.0, le=1.0)
    treatment: str

class ChatMessage(BaseModel):
    id: str
    content: str
    sender: Sender
    timestamp: datetime
    has_image: bool = False
    image_url: Optional[str] = None
    diagnosis_result: Optional[DiagnosisResult] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True

class ChatRequest(BaseModel):
    message: str
    user_id: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class ChatReply(BaseModel):
    id: str
    content: str
    timestamp: datetime

class DiagnosisReply(BaseModel):
    id: str
    content: str
    image_url: str
    diagnosis_result: DiagnosisResult
    timestamp: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
