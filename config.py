import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    # Database Configuration
    DATABASE_URL = os.getenv("DATABASE_URL")
    POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB = os.getenv("POSTGRES_DB", "farm_assistant")
    POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    SQLITE_FALLBACK_URL = os.getenv("SQLITE_FALLBACK_URL", "sqlite:///./farm_assistant.db")

    # JWT Configuration
    SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours
    ALGORITHM = "HS256"

    # Object Storage Configuration
    AZURE_STORAGE_ACCOUNT_NAME = os.getenv("AZURE_STORAGE_ACCOUNT_NAME")
    AZURE_STORAGE_CONNECTION_STRING = os.getenv("AZURE_STORAGE_CONNECTION_STRING")
    STORAGE_CONTAINER = os.getenv("STORAGE_CONTAINER", "crop-images")
    STORAGE_DIR = os.getenv("STORAGE_DIR", "./uploaded_images")
    LOCAL_FILES_PREFIX = "/local-files"

    # Weather Provider Configuration
    OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
    OPENWEATHER_URL = os.getenv("OPENWEATHER_URL", "https://api.openweathermap.org/data/2.5/weather")
    DEFAULT_LOCATION = os.getenv("DEFAULT_LOCATION", "London")

    # Timeout applied to every call to an external collaborator
    EXTERNAL_TIMEOUT_SECONDS = float(os.getenv("EXTERNAL_TIMEOUT_SECONDS", "10"))

    # File Upload Configuration
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
    ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

    # Map ValidationError -> 400 and Unauthenticated -> 401; uniform 500s when off
    STRICT_ERROR_STATUS = os.getenv("STRICT_ERROR_STATUS", "true").lower() in ("1", "true", "yes")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database URLs
    @property
    def postgres_url(self) -> str:
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @classmethod
    def validate(cls):
        instance = cls()
        required_vars = [
            instance.SECRET_KEY,
        ]
        if not all(required_vars):
            raise ValueError("Missing required environment variables")
        return True
