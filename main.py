import logging
import uvicorn
from fastapi import FastAPI, File, UploadFile, Form, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional, List
from contextlib import asynccontextmanager
from datetime import timedelta
from sqlalchemy.orm import Session

from config import Config
from database import farm_db
from errors import FarmAssistantError, Unauthenticated
from models import (
    User, UserCreate, UserResponse, Token, LoginRequest,
    CropCreate, CropUpdate, CropResponse, DiagnosisResponse, QueryResponse
)
from chat_models import ChatRequest, ChatReply, DiagnosisReply
from chat_service import ChatService
from auth_service import auth_service
from blob_storage import blob_storage
from image_classifier import RandomImageClassifier
from diagnosis_service import diagnosis_service
from query_log import query_log
from crop_service import crop_service
from weather_service import WeatherService, WeatherData, WeatherForecast, weather_service

# Configure logging
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize services
chat_service = ChatService(storage=blob_storage, classifier=RandomImageClassifier())
security = HTTPBearer(auto_error=False)

# Dependency to get database session
def get_db():
    yield from farm_db.get_session()

def get_chat_service() -> ChatService:
    return chat_service

def get_weather_service() -> WeatherService:
    return weather_service

# Dependency to get current user from JWT token
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    token = credentials.credentials if credentials else None
    return auth_service.get_current_user(db, token)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    try:
        Config.validate()
        farm_db.create_tables()
        logger.info("Application startup completed")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    # Shutdown
    farm_db.engine.dispose()
    logger.info("Application shutdown completed")

app = FastAPI(
    title="Farming Assistant API",
    description="Keyword farming advice, crop image diagnosis, crop records and weather",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

if blob_storage.is_local:
    # Serve locally stored crop images at the URLs handed out by public_url()
    app.mount(
        Config.LOCAL_FILES_PREFIX,
        StaticFiles(directory=str(blob_storage.local_storage.storage_dir)),
        name="local-files"
    )

def error_response(message: str, status_code: int) -> JSONResponse:
    if not Config.STRICT_ERROR_STATUS:
        status_code = 500
    return JSONResponse(status_code=status_code, content={"error": message})

@app.exception_handler(FarmAssistantError)
async def farm_assistant_error_handler(request: Request, exc: FarmAssistantError):
    logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.message, exc.status_code)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()]
    return error_response(f"Invalid or missing fields: {', '.join(fields)}", 400)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )

# ===== AUTHENTICATION ENDPOINTS =====

@app.post("/auth/register", response_model=UserResponse)
async def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    new_user = auth_service.create_user(db, user)
    return UserResponse.model_validate(new_user)

@app.post("/auth/login", response_model=Token)
async def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate user and return JWT token"""
    user = auth_service.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise Unauthenticated("Incorrect email or password")

    access_token_expires = timedelta(minutes=auth_service.config.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = auth_service.create_access_token(
        data={"sub": user.id}, expires_delta=access_token_expires
    )

    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )

@app.get("/auth/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return UserResponse.model_validate(current_user)

# ===== ASSISTANT ENDPOINTS =====

@app.post("/chat", response_model=ChatReply)
def chat(
    request: ChatRequest,
    db: Session = Depends(get_db),
    service: ChatService = Depends(get_chat_service)
):
    """Answer a farming question from the keyword rule table"""
    message = service.handle_text(db, request.user_id, request.message)
    return ChatReply(id=message.id, content=message.content, timestamp=message.timestamp)

@app.post("/diagnosis", response_model=DiagnosisReply)
def diagnose_crop_image(
    image: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    db: Session = Depends(get_db),
    service: ChatService = Depends(get_chat_service)
):
    """Upload a crop image and return a disease diagnosis"""
    image_bytes = image.file.read() if image is not None else b""
    filename = image.filename if image is not None else ""

    message = service.handle_image(db, user_id, filename, image_bytes)
    return DiagnosisReply(
        id=message.id,
        content=message.content,
        image_url=message.image_url,
        diagnosis_result=message.diagnosis_result,
        timestamp=message.timestamp
    )

# ===== WEATHER ENDPOINTS =====

@app.get("/weather", response_model=WeatherData)
def get_weather(
    location: Optional[str] = None,
    service: WeatherService = Depends(get_weather_service)
):
    return service.current_weather(location)

@app.get("/weather/forecast", response_model=WeatherForecast)
def get_weather_forecast(
    location: Optional[str] = None,
    service: WeatherService = Depends(get_weather_service)
):
    return service.forecast(location)

# ===== HISTORY ENDPOINTS =====

@app.get("/diagnoses", response_model=List[DiagnosisResponse])
def list_diagnoses(
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Diagnosis history of the current user, newest first"""
    return diagnosis_service.list_diagnoses(db, current_user.id, search)

@app.get("/diagnoses/{diagnosis_id}", response_model=DiagnosisResponse)
def get_diagnosis(
    diagnosis_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.get_diagnosis(db, current_user.id, diagnosis_id)
    if not diagnosis:
        raise StarletteHTTPException(status_code=404, detail="Diagnosis not found")
    return diagnosis

@app.get("/queries", response_model=List[QueryResponse])
def list_queries(
    limit: int = 50,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Chat exchanges logged for the current user, newest first"""
    return query_log.list_queries(db, current_user.id, limit)

# ===== CROP MANAGEMENT ENDPOINTS =====

@app.get("/crops", response_model=List[CropResponse])
def list_crops(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crop_service.list_crops(db, current_user.id)

@app.post("/crops", response_model=CropResponse)
def add_crop(
    crop: CropCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crop_service.add_crop(db, current_user.id, crop)

@app.put("/crops/{crop_id}", response_model=CropResponse)
def update_crop(
    crop_id: str,
    changes: CropUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    crop = crop_service.update_crop(db, current_user.id, crop_id, changes)
    if not crop:
        raise StarletteHTTPException(status_code=404, detail="Crop not found")
    return crop

@app.delete("/crops/{crop_id}")
def delete_crop(
    crop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not crop_service.delete_crop(db, current_user.id, crop_id):
        raise StarletteHTTPException(status_code=404, detail="Crop not found")
    return {"success": True}

# ===== SYSTEM ENDPOINTS =====

@app.get("/")
async def root():
    return {
        "message": "Farming Assistant API",
        "version": "1.0.0",
        "endpoints": {
            "chat": "/chat - Ask a farming question",
            "diagnosis": "/diagnosis - Upload a crop image for diagnosis",
            "weather": "/weather?location= - Current weather and growing conditions",
            "diagnoses": "/diagnoses - Diagnosis history",
            "crops": "/crops - Crop records",
            "health": "/health - System health check"
        }
    }

@app.get("/health")
def health_check():
    db_healthy = farm_db.health_check()
    weather_configured = bool(Config.OPENWEATHER_API_KEY)

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "database": "connected" if db_healthy else "disconnected",
            "weather": "configured" if weather_configured else "not_configured",
            "storage": blob_storage.get_storage_info(),
            "version": "1.0.0"
        }
    )

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
