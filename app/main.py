from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time
import logging
import uuid

from .api.v1.auth import router as auth_router
from .api.v1.calendar import router as calendar_router
from .core.config import settings
from .core.database import init_db
from .core.exceptions import APIError
from .core.security import AuthenticationError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables before serving."""
    logger.info(f"Starting {settings.APP_NAME} {settings.VERSION}")
    init_db()
    logger.info("Tables ready")
    yield
    logger.info(f"Stopping {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Hospital appointment booking on doctors' daily calendars",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


# Request correlation, logging and timing
@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request.state.request_id

    logger.info(
        f"{request.state.request_id} {request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.4f}s"
    )

    return response


# Exception handlers
@app.exception_handler(AuthenticationError)
async def unauthorized_handler(request: Request, exc: AuthenticationError):
    logger.warning(f"{_request_id(request)} {exc.detail}")
    # No detail for unauthenticated callers
    return Response(status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    logger.warning(f"{_request_id(request)} {exc}")
    content = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    reason = first.get("msg", "invalid")
    logger.warning(f"{_request_id(request)} {field}: {reason}")
    return JSONResponse(status_code=400, content={"field": field, "reason": reason})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"{_request_id(request)} Internal server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(calendar_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Heartbeat."""
    return {"status": "ok", "version": settings.VERSION}


@app.get("/")
@app.get("/api/v1/info")
async def api_info():
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "auth": "/api/v1/auth",
        "calendar": "/api/v1/calendar",
        "openapi": app.openapi_url,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
