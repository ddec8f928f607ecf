import logging
import time
from fastapi import FastAPI, Depends, status, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import schemas
from .db import engine, Base, get_db
from .errors import AuthServiceError, TokenInvalidError, ValidationError
from .service import authenticate_user, register_user
from .utils import verify_access_token

bearer_scheme = HTTPBearer(auto_error=False)

# Absent keys and blank strings both count as missing
MISSING_ERROR_TYPES = {"missing", "string_too_short"}

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Create tables on startup if they do not exist
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified/created.")
except Exception as e:
    logger.error(f"Error initializing database: {e}", exc_info=True)


app = FastAPI(
    title="Auth Service - Finance Dashboard",
    description="Handles user registration, authentication, and token verification.",
    version="1.0.0"
)

# --- Prometheus metrics ---
REQUEST_COUNT = Counter(
    "auth_requests_total",
    "Total requests processed by Auth Service",
    ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "auth_request_latency_seconds",
    "Request latency in seconds for Auth Service",
    ["endpoint"]
)

@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    response = None
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception as exc:
        logger.error(f"Unhandled exception during request processing: {exc}", exc_info=True)
        response = JSONResponse(status_code=500, content={"message": "Server error"})
    finally:
        latency = time.time() - start_time
        endpoint = request.url.path
        final_status_code = getattr(response, 'status_code', status_code)

        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=final_status_code
        ).inc()

    return response

# --- Error handlers ---
@app.exception_handler(AuthServiceError)
async def auth_error_handler(request: Request, exc: AuthServiceError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    missing, invalid = set(), set()
    for err in exc.errors():
        if len(err.get("loc", ())) < 2:
            continue
        field = str(err["loc"][-1])
        if err.get("type") in MISSING_ERROR_TYPES:
            missing.add(field)
        else:
            invalid.add(field)

    if missing or not invalid:
        message = ValidationError.message
        if missing:
            message = f"{message}: {', '.join(sorted(missing))}"
    else:
        message = f"Invalid fields: {', '.join(sorted(invalid))}"
    logger.warning(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(status_code=ValidationError.status_code, content={"message": message})

# --- Health and metrics endpoints ---
@app.get("/metrics", tags=["Monitoring"])
def metrics():
    """Exposes application metrics for Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "auth_service"}

# --- API endpoints ---

@app.post("/register", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED, tags=["Authentication"])
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Registers a new user.
    Fails with a single non-specific message when the email or user_id is taken.
    """
    register_user(db, user)
    return {"message": "User registered successfully"}


@app.post("/login", response_model=schemas.LoginResponse, tags=["Authentication"])
def login(credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    """
    Authenticates a user by email and password (JSON body).
    Returns a one-hour session token and the public profile.
    """
    token, user = authenticate_user(db, credentials.email, credentials.password)
    return {
        "token": token,
        "user": schemas.UserPublic.model_validate(user),
    }


@app.get("/verify", response_model=schemas.TokenPayload, tags=["Internal"])
def verify(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)):
    """
    Validates a bearer token and returns its claims.
    Used by the API Gateway before forwarding user-scoped requests.
    """
    if credentials is None:
        logger.warning("Verification attempt without bearer token.")
        raise TokenInvalidError("Missing or invalid Authorization header")
    return verify_access_token(credentials.credentials)
