import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Float, Date
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import date

from chat_models import QueryType

Base = declarative_base()

def new_id() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

# SQLAlchemy ORM Models
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50))
    role = Column(String(20), nullable=False, default="farmer")
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    crops = relationship("Crop", back_populates="owner", cascade="all, delete-orphan")
    diagnoses = relationship("Diagnosis", back_populates="owner", cascade="all, delete-orphan")
    queries = relationship("Query", back_populates="owner", cascade="all, delete-orphan")

class Crop(Base):
    __tablename__ = "crops"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False)
    planting_date = Column(Date)
    expected_harvest = Column(Date)
    soil_type = Column(String(100))
    growth_stage = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    owner = relationship("User", back_populates="crops")

class Diagnosis(Base):
    __tablename__ = "diagnoses"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    image_path = Column(String(1000), nullable=False)  # public URL of the uploaded image
    disease_detected = Column(String(255), nullable=False)
    solution = Column(Text, nullable=False)
    confidence = Column(Float, nullable=False)
    diagnosis_date = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    owner = relationship("User", back_populates="diagnoses")

class Query(Base):
    __tablename__ = "queries"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    query_text = Column(Text, nullable=False)
    query_type = Column(String(10), nullable=False)  # 'text' or 'image'
    response_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    owner = relationship("User", back_populates="queries")

# Pydantic Models for API
class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class UserCreate(CamelModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None

class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

class Token(CamelModel):
    access_token: str
    token_type: str
    user: UserResponse

class LoginRequest(CamelModel):
    email: str
    password: str

class CropCreate(CamelModel):
    name: str
    type: str
    planting_date: Optional[date] = None
    expected_harvest: Optional[date] = None
    soil_type: Optional[str] = None
    growth_stage: Optional[str] = None

class CropUpdate(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None
    planting_date: Optional[date] = None
    expected_harvest: Optional[date] = None
    soil_type: Optional[str] = None
    growth_stage: Optional[str] = None

class CropResponse(CamelModel):
    id: str
    user_id: str
    name: str
    type: str
    planting_date: Optional[date] = None
    expected_harvest: Optional[date] = None
    soil_type: Optional[str] = None
    growth_stage: Optional[str] = None
    created_at: Optional[datetime] = None

class DiagnosisResponse(CamelModel):
    id: str
    user_id: str
    image_path: str
    disease_detected: str
    solution: str
    confidence: float = Field(ge=0.0, le=1.0)
    diagnosis_date: datetime

class QueryResponse(CamelModel):
    id: str
    user_id: str
    query_text: str
    query_type: QueryType
    response_text: str
    created_at: datetime
