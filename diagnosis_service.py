import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from models import Diagnosis, User
from errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

class DiagnosisService:
    def save_diagnosis(
        self,
        db: Session,
        user_id: str,
        image_path: str,
        disease: str,
        solution: str,
        confidence: float
    ) -> Diagnosis:
        """Persist one diagnosis outcome. Repeated calls create repeated records."""
        if not 0.0 <= confidence <= 1.0:
            raise ValidationError(f"Confidence must be within [0, 1], got {confidence}")

        try:
            if db.get(User, user_id) is None:
                raise PersistenceError(f"Unknown user: {user_id}")

            diagnosis = Diagnosis(
                user_id=user_id,
                image_path=image_path,
                disease_detected=disease,
                solution=solution,
                confidence=confidence
            )
            db.add(diagnosis)
            db.commit()
            db.refresh(diagnosis)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save diagnosis for user {user_id}: {e}")
            raise PersistenceError("Failed to save diagnosis")

        logger.info(f"Saved diagnosis {diagnosis.id}: {disease} for user {user_id}")
        return diagnosis

    def list_diagnoses(self, db: Session, user_id: str, search: Optional[str] = None) -> List[Diagnosis]:
        """Diagnoses owned by the user, newest first, optionally filtered by disease name"""
        try:
            query = db.query(Diagnosis).filter(Diagnosis.user_id == user_id)
            if search:
                query = query.filter(Diagnosis.disease_detected.ilike(f"%{search}%"))
            return query.order_by(Diagnosis.diagnosis_date.desc()).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to list diagnoses for user {user_id}: {e}")
            raise PersistenceError("Failed to load diagnosis history")

    def get_diagnosis(self, db: Session, user_id: str, diagnosis_id: str) -> Optional[Diagnosis]:
        try:
            return db.query(Diagnosis)\
                     .filter(Diagnosis.id == diagnosis_id, Diagnosis.user_id == user_id)\
                     .first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get diagnosis {diagnosis_id}: {e}")
            raise PersistenceError("Failed to load diagnosis")

    def delete_diagnosis(self, db: Session, user_id: str, diagnosis_id: str) -> bool:
        """Delete a diagnosis owned by the user. Not exposed over HTTP."""
        diagnosis = self.get_diagnosis(db, user_id, diagnosis_id)
        if diagnosis is None:
            return False
        try:
            db.delete(diagnosis)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete diagnosis {diagnosis_id}: {e}")
            raise PersistenceError("Failed to delete diagnosis")

        logger.info(f"Deleted diagnosis {diagnosis_id} for user {user_id}")
        return True

diagnosis_service = DiagnosisService()
