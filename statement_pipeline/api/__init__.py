"""API package: provides FastAPI dependencies, error handlers and route definitions."""

from .dependencies import get_aggregation_engine, get_gateway, get_pipeline  # noqa: F401
from .handlers import register_error_handlers  # noqa: F401
from .routes import router  # noqa: F401
