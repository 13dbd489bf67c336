import logging
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator, Optional
from config import Config
from models import Base

logger = logging.getLogger(__name__)

class FarmDatabase:
    def __init__(self, database_url: Optional[str] = None):
        self.config = Config()
        if database_url:
            self.database_url = database_url
        elif self.config.DATABASE_URL:
            self.database_url = self.config.DATABASE_URL
        else:
            # Use PostgreSQL when reachable, fall back to SQLite for local development
            try:
                test_engine = create_engine(self.config.postgres_url)
                test_engine.connect().close()
                self.database_url = self.config.postgres_url
                logger.info("Using PostgreSQL database")
            except Exception:
                self.database_url = self.config.SQLITE_FALLBACK_URL
                logger.info("PostgreSQL not available, using SQLite for development")

        engine_kwargs = {"pool_pre_ping": True, "echo": False}
        if self.database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                # A single shared connection keeps the in-memory database alive
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Create all tables"""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create tables: {e}")
            raise

    def get_session(self) -> Generator[Session, None, None]:
        """Get database session"""
        session = self.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    def health_check(self) -> bool:
        """Check database connectivity"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

# Global database instance
farm_db = FarmDatabase()
