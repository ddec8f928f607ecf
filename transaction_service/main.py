"""Transaction Service: read access to the transactions collection."""

import logging
import time
from typing import List

from fastapi import FastAPI, Depends, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import crud, schemas
from .db import engine, Base, get_db

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified/created.")
except Exception as e:
    logger.error(f"Error initializing database: {e}", exc_info=True)

app = FastAPI(
    title="Transaction Service - Finance Dashboard",
    description="Serves the revenue/expense transactions shown on the dashboard.",
    version="1.0.0"
)

REQUEST_COUNT = Counter("transactions_requests_total", "Total requests", ["method", "endpoint", "status_code"])
REQUEST_LATENCY = Histogram("transactions_request_latency_seconds", "Request latency", ["endpoint"])

@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    response = None
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception as exc:
        logger.error(f"Middleware error: {exc}", exc_info=True)
        response = JSONResponse(status_code=500, content={"message": "Server error"})
    finally:
        latency = time.time() - start_time
        endpoint = request.url.path
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        final_code = getattr(response, 'status_code', status_code)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status_code=final_code).inc()
    return response

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(status_code=422, content={"message": f"Invalid request: {', '.join(fields)}"})

@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"message": "Server error"})

@app.get("/metrics", tags=["Monitoring"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "transaction_service"}

# --- Endpoints ---

@app.get("/transactions", response_model=List[schemas.TransactionResponse], tags=["Transactions"])
def get_all_transactions(db: Session = Depends(get_db)):
    """
    Returns every transaction, unfiltered by owner.
    Internal only: the gateway never exposes this route publicly.
    """
    transactions = crud.list_all(db)
    logger.info(f"Listing all transactions ({len(transactions)} rows)")
    return transactions

@app.get("/transactions/me", response_model=List[schemas.TransactionResponse], tags=["Transactions"])
def get_my_transactions(x_user_id: str = Header(..., alias="X-User-Id"), db: Session = Depends(get_db)):
    """
    Returns the transactions owned by the user in X-User-Id.
    The header is injected by the gateway from a verified token.
    """
    transactions = crud.list_for_user(db, x_user_id)
    logger.info(f"Listing {len(transactions)} transactions for user_id: {x_user_id}")
    return transactions
