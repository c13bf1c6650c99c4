import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import CORS_ORIGINS
from .database import create_tables
from .errors import TaskTrackerError, category_for_status, error_response
from .logging_setup import setup_logging
from .routers import auth, tasks, users
from .schemas.error import ErrorResponse

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    logger.info("Task tracker API started")
    yield


# Create FastAPI app
app = FastAPI(
    title="Task Tracker API",
    description="Task tracking API with per-task audit history and JWT authentication",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json_error(body: ErrorResponse, headers=None) -> JSONResponse:
    return JSONResponse(status_code=body.status, content=body.model_dump(), headers=headers)


@app.exception_handler(TaskTrackerError)
async def service_error_handler(request: Request, exc: TaskTrackerError):
    status_code, body = error_response(exc)
    if status_code >= 500:
        logger.error(
            "Request %s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return _json_error(body, headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    body = ErrorResponse(error="Validation Error", message="; ".join(problems), status=400)
    return _json_error(body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = ErrorResponse(
        error=category_for_status(exc.status_code),
        message=str(exc.detail),
        status=exc.status_code,
    )
    return _json_error(body, getattr(exc, "headers", None))


# Prevent internal details from leaking
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    _, body = error_response(exc)
    return _json_error(body)


# Include routers; auth first so /api/users/me wins over /api/users/{user_id}
app.include_router(auth.router, prefix="/api/users", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])


def _health() -> dict:
    return {
        "status": "UP",
        "message": "Task tracker API is running",
        "timestamp": int(time.time() * 1000),
    }


@app.get("/")
def read_root():
    return {"message": "Task Tracker API"}


@app.get("/health")
def health_check():
    return _health()


@app.get("/api/health")
def api_health_check():
    return _health()
