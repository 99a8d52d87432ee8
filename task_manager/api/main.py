"""
FastAPI app assembly: logging, middleware, error mapping and router wiring.
"""
import logging
import os

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from task_manager.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    TaskManagerError,
    ValidationError,
)
from task_manager.utils.settings import get_settings

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from task_manager.api.messages import router as messages_router  # noqa: E402
from task_manager.api.profiles import router as profiles_router  # noqa: E402
from task_manager.api.task_transactions import router as task_transactions_router  # noqa: E402
from task_manager.api.task_types import router as task_types_router  # noqa: E402
from task_manager.api.tasks import router as tasks_router  # noqa: E402

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Task Manager",
    description="API for managing collaborative tasks, their types, transactions and messages.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: TaskManagerError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=status_code)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.debug(f"Rejected {request.method} {request.url.path}: {exc.code}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    logger.debug(f"Rejected {request.method} {request.url.path}: {exc.code}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        {"code": exc.code, "message": "Cannot access the stored data, try again later."},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.exception_handler(TaskManagerError)
async def task_manager_error_handler(request: Request, exc: TaskManagerError):
    logger.error(f"Unexpected failure on {request.method} {request.url.path}: {exc!r}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


app.include_router(tasks_router)
app.include_router(task_types_router)
app.include_router(task_transactions_router)
app.include_router(messages_router)
app.include_router(profiles_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "task-manager"}
