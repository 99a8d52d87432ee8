"""
App assembly entry point.

Re-exports the FastAPI `app` from `task_manager.api.main` so the service can
be started with ``uvicorn app:app``.
"""

from task_manager.api.main import app  # noqa: F401
