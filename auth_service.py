import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
import bcrypt
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from models import User, UserCreate
from config import Config
from errors import Unauthenticated, ValidationError, PersistenceError

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self):
        self.config = Config()

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a plain password against its hash"""
        # bcrypt only looks at the first 72 bytes
        password_bytes = plain_password[:72].encode('utf-8')
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))

    def get_password_hash(self, password: str) -> str:
        """Generate password hash"""
        password_bytes = password[:72].encode('utf-8')
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode('utf-8')

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        encoded_jwt = jwt.encode(to_encode, self.config.SECRET_KEY, algorithm=self.config.ALGORITHM)
        return encoded_jwt

    def verify_token(self, token: str) -> Optional[dict]:
        """Verify and decode JWT token"""
        try:
            payload = jwt.decode(token, self.config.SECRET_KEY, algorithms=[self.config.ALGORITHM])
            user_id: str = payload.get("sub")
            if user_id is None:
                return None
            return {"user_id": user_id}
        except JWTError:
            return None

    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def get_user_by_id(self, db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def create_user(self, db: Session, user: UserCreate) -> User:
        """Create new user"""
        if not user.email or not user.password:
            raise ValidationError("Email and password are required")

        if self.get_user_by_email(db, user.email):
            raise ValidationError("Email already registered")

        db_user = User(
            email=user.email,
            name=user.name,
            phone=user.phone,
            password_hash=self.get_password_hash(user.password)
        )
        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create user {user.email}: {e}")
            raise PersistenceError("User registration failed")

        logger.info(f"Created new user: {user.email}")
        return db_user

    def authenticate_user(self, db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = self.get_user_by_email(db, email)
        if not user:
            return None
        if not self.verify_password(password, user.password_hash):
            return None
        return user

    def get_current_user(self, db: Session, token: Optional[str]) -> User:
        """Resolve the user behind a bearer token, raising Unauthenticated otherwise"""
        if not token:
            raise Unauthenticated("Not authenticated")

        payload = self.verify_token(token)
        if payload is None:
            raise Unauthenticated("Invalid authentication credentials")

        user = self.get_user_by_id(db, payload["user_id"])
        if user is None:
            raise Unauthenticated("Invalid authentication credentials")
        return user

# Global auth service instance
auth_service = AuthService()
