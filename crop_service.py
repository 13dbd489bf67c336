import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from models import Crop, CropCreate, CropUpdate
from errors import PersistenceError

logger = logging.getLogger(__name__)

class CropService:
    def list_crops(self, db: Session, user_id: str) -> List[Crop]:
        try:
            return db.query(Crop)\
                     .filter(Crop.user_id == user_id)\
                     .order_by(Crop.created_at.desc())\
                     .all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to list crops for user {user_id}: {e}")
            raise PersistenceError("Failed to load crops")

    def get_crop(self, db: Session, user_id: str, crop_id: str) -> Optional[Crop]:
        return db.query(Crop)\
                 .filter(Crop.id == crop_id, Crop.user_id == user_id)\
                 .first()

    def add_crop(self, db: Session, user_id: str, crop: CropCreate) -> Crop:
        db_crop = Crop(user_id=user_id, **crop.model_dump())
        try:
            db.add(db_crop)
            db.commit()
            db.refresh(db_crop)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to add crop for user {user_id}: {e}")
            raise PersistenceError("Failed to add crop")

        logger.info(f"Added crop {db_crop.id} ({db_crop.name}) for user {user_id}")
        return db_crop

    def update_crop(self, db: Session, user_id: str, crop_id: str, changes: CropUpdate) -> Optional[Crop]:
        db_crop = self.get_crop(db, user_id, crop_id)
        if db_crop is None:
            return None

        for field, value in changes.model_dump(exclude_unset=True).items():
            setattr(db_crop, field, value)
        try:
            db.commit()
            db.refresh(db_crop)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update crop {crop_id}: {e}")
            raise PersistenceError("Failed to update crop")

        return db_crop

    def delete_crop(self, db: Session, user_id: str, crop_id: str) -> bool:
        db_crop = self.get_crop(db, user_id, crop_id)
        if db_crop is None:
            return False
        try:
            db.delete(db_crop)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete crop {crop_id}: {e}")
            raise PersistenceError("Failed to delete crop")

        logger.info(f"Deleted crop {crop_id} for user {user_id}")
        return True

crop_service = CropService()
