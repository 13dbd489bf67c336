import io
import os
import random
import tempfile

# Configure the environment before any application module reads it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="farm-assistant-test-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("AZURE_STORAGE_ACCOUNT_NAME", None)
os.environ.pop("OPENWEATHER_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from auth_service import auth_service
from blob_storage import BlobStorageService
from chat_service import ChatService
from database import FarmDatabase
from image_classifier import RandomImageClassifier
from models import UserCreate
from weather_service import WeatherService
import main


@pytest.fixture
def database():
    db = FarmDatabase("sqlite://")
    db.create_tables()
    yield db
    db.engine.dispose()


@pytest.fixture
def session(database):
    yield from database.get_session()


@pytest.fixture
def user(session):
    return auth_service.create_user(
        session,
        UserCreate(name="Asha Farmer", email="asha@example.com", password="s3cret-pass")
    )


@pytest.fixture
def storage(tmp_path):
    return BlobStorageService(storage_dir=str(tmp_path / "images"))


@pytest.fixture
def service(storage):
    return ChatService(storage=storage, classifier=RandomImageClassifier(rng=random.Random(7)))


@pytest.fixture
def weather():
    return WeatherService(api_key="test-key", base_url="https://weather.test/data/2.5/weather", timeout=2)


@pytest.fixture
def client(database, service, weather):
    def override_db():
        yield from database.get_session()

    main.app.dependency_overrides[main.get_db] = override_db
    main.app.dependency_overrides[main.get_chat_service] = lambda: service
    main.app.dependency_overrides[main.get_weather_service] = lambda: weather
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    token = auth_service.create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(40, 120, 40)).save(buffer, format="PNG")
    return buffer.getvalue()
