"""API Gateway for the finance dashboard. Single entry point, handles authentication and routing."""

import os
import httpx
import logging
import time
import json
from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, HTTPException, status, Depends
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Internal service URLs ---
AUTH_URL = os.getenv("AUTH_SERVICE_URL")
TRANSACTION_URL = os.getenv("TRANSACTION_SERVICE_URL")

required_urls = {"AUTH_SERVICE_URL", "TRANSACTION_SERVICE_URL"}
missing_urls = required_urls - set(os.environ)
if missing_urls:
    logger.critical(f"Missing internal service URLs in environment: {', '.join(sorted(missing_urls))}")
    raise EnvironmentError(f"Missing internal service URLs: {', '.join(sorted(missing_urls))}")

app = FastAPI(
    title="API Gateway - Finance Dashboard",
    description="Single entry point for the finance dashboard services.",
    version="1.0.0"
)

# --- CORS ---
origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost,http://localhost:5173").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Public routes (no token required) ---
PUBLIC_ROUTES = [
    "/api/users/login",
    "/api/users/register",
    "/health",
    "/metrics",
    "/docs",
    "/openapi.json"
]

# --- Shared async HTTP client ---
client = httpx.AsyncClient(timeout=15.0)

# --- Prometheus metrics ---
REQUEST_COUNT = Counter(
    "gateway_requests_total",
    "Total requests processed by API Gateway",
    ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "gateway_request_latency_seconds",
    "Request latency in seconds for API Gateway",
    ["endpoint"]
)

# --- Middleware (security and metrics) ---

@app.middleware("http")
async def combined_middleware(request: Request, call_next):
    """Authenticates non-public routes and records metrics."""
    start_time = time.time()
    response = None
    status_code = 500

    endpoint = request.url.path

    try:
        if request.method == "OPTIONS":
            response = await call_next(request)
            status_code = response.status_code
            return response

        request.state.user_id = None
        is_public = any(endpoint.startswith(p) for p in PUBLIC_ROUTES)

        if not is_public:
            token = request.headers.get("Authorization")
            if not token or not token.startswith("Bearer "):
                raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing or invalid Authorization header")

            try:
                verify_response = await client.get(f"{AUTH_URL}/verify", headers={"Authorization": token})
            except httpx.RequestError:
                raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Authentication service unavailable")

            if verify_response.status_code != 200:
                try:
                    detail = verify_response.json().get("message", "Invalid token")
                except json.JSONDecodeError:
                    detail = "Invalid token"
                raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail)

            user_id = verify_response.json().get("user_id")
            if not user_id:
                raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token payload (no 'user_id')")
            request.state.user_id = str(user_id)

        response = await call_next(request)
        status_code = response.status_code

    except HTTPException as http_exc:
        status_code = http_exc.status_code
        response = JSONResponse(status_code=status_code, content={"message": http_exc.detail})

    except Exception as exc:
        logger.error(f"Unexpected middleware error on {endpoint}: {exc}", exc_info=True)
        response = JSONResponse(status_code=500, content={"message": "Server error"})
        status_code = 500
    finally:
        latency = time.time() - start_time
        final_status_code = getattr(response, 'status_code', status_code)
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=final_status_code
        ).inc()

    if response is None:
        response = JSONResponse(status_code=500, content={"message": "Server error"})

    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


# --- Security dependency ---

async def get_current_user_id(request: Request) -> str:
    """
    Returns the user_id verified by the middleware.
    Used by every protected endpoint.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        logger.error(f"get_current_user_id called on a route without an authenticated user ({request.url.path})")
        raise HTTPException(status.HTTP_403_FORBIDDEN, "User ID not available")
    return user_id


# --- Health and metrics ---
@app.get("/metrics", tags=["Monitoring"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "gateway_service"}

# --- Proxy helper ---
async def forward_request(request: Request, target_url: str):
    """Forwards the request to an internal service and relays its answer."""
    user_id = getattr(request.state, "user_id", None)

    headers_to_forward = {}
    if user_id:
        headers_to_forward["X-User-Id"] = user_id

    try:
        if request.method in ["POST", "PUT", "PATCH"]:
            content_type = request.headers.get("content-type", "")
            if content_type:
                headers_to_forward["Content-Type"] = content_type
            response = await client.request(request.method, target_url, content=await request.body(), headers=headers_to_forward)
        else:
            response = await client.request(request.method, target_url, headers=headers_to_forward)

        try:
            return JSONResponse(status_code=response.status_code, content=response.json())
        except json.JSONDecodeError:
            return Response(status_code=response.status_code, content=response.text)

    except httpx.RequestError as e:
        logger.error(f"Connection error forwarding to {target_url}: {e}", exc_info=True)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Internal service unavailable")


# --- Public endpoints (auth proxy) ---

@app.post("/api/users/register", tags=["Authentication"])
async def proxy_register(request: Request):
    """Forwards a registration request to the auth service."""
    logger.info("Proxying request to /register")
    return await forward_request(request, f"{AUTH_URL}/register")

@app.post("/api/users/login", tags=["Authentication"])
async def proxy_login(request: Request):
    """Forwards a login request (JSON body) to the auth service."""
    logger.info("Proxying request to /login")
    return await forward_request(request, f"{AUTH_URL}/login")

# --- Private endpoints (transactions proxy) ---

@app.get("/api/transactions", tags=["Transactions"])
async def proxy_get_my_transactions(request: Request, user_id: str = Depends(get_current_user_id)):
    """Returns the transactions of the authenticated user only."""
    logger.info(f"Proxying request to /transactions/me for user_id: {user_id}")
    return await forward_request(request, f"{TRANSACTION_URL}/transactions/me")

# --- Shutdown handler ---
@app.on_event("shutdown")
async def shutdown_event():
    """Closes the HTTP client when the application stops."""
    await client.aclose()
    logger.info("Gateway HTTP client closed.")
