"""Main entrypoint and application factory for the Statement Pipeline API.

This module initializes the FastAPI application, configures logging, creates the database tables on
startup, and exposes the Scalar API reference endpoint for interactive OpenAPI documentation. It
also includes the main entrypoint for running the app with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from statement_pipeline.api.dependencies import get_db_engine
from statement_pipeline.api.handlers import register_error_handlers
from statement_pipeline.api.routes import router
from statement_pipeline.core.db import init_db
from statement_pipeline.core.settings import get_settings
from statement_pipeline.core.utils import ROOT_LOGGER_NAME, get_logger


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure logging to file and console, and ensure the log directory exists."""
    settings = get_settings()
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger = get_logger(ROOT_LOGGER_NAME)
    logger.setLevel(settings.log_level.upper())
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(log_dir / "pipeline.log")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    logger.propagate = False


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler that creates the statements, transactions and chunk tables."""
    _ = app  # Silence unused argument warning
    try:
        init_db(get_db_engine())
    except SQLAlchemyError as exc:
        get_logger(ROOT_LOGGER_NAME).exception(f"Failed to create pipeline tables: {exc}")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Statement Pipeline API",
    description="""
    The Statement Pipeline API turns pasted bank statement text or extracted statement documents into
    verified, categorized transactions, and serves spending aggregates over them.

    **Flow:**
    - `POST /statements`: register a PENDING statement.
    - `POST /statements/{id}/verification/text` or `/verification/document`: extract and classify candidates.
    - `POST /statements/{id}/verification/toggle/{candidate_id}`: include or exclude a candidate.
    - `POST /statements/{id}/verification/commit`: persist the selected candidates and totals.

    **Dashboards:** `/statements/{id}/breakdown`, `/users/{user_id}/trends`, `/users/{user_id}/habits`.
    """,
    version="1.0.0",
)
register_error_handlers(app)
app.include_router(router)


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> HTMLResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
