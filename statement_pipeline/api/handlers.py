"""Map pipeline failures onto HTTP responses.

Extraction-empty and persistence failures stay distinguishable for the client; classifier
failures never reach this layer.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from statement_pipeline.core.errors import (
    ExtractionEmptyError,
    ExtractionFailedError,
    InvalidCategoryError,
    PersistenceError,
    StatementAlreadyCommittedError,
    StatementNotFoundError,
    TransactionNotFoundError,
    UnknownTransactionError,
    VerificationSessionNotFoundError,
)
from statement_pipeline.core.utils import get_logger

logger = get_logger("statement-pipeline.api")

ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (ExtractionEmptyError, 422, "extraction_empty"),
    (ExtractionFailedError, 502, "extraction_failed"),
    (StatementNotFoundError, 404, "statement_not_found"),
    (TransactionNotFoundError, 404, "transaction_not_found"),
    (VerificationSessionNotFoundError, 404, "verification_not_found"),
    (UnknownTransactionError, 404, "candidate_not_found"),
    (StatementAlreadyCommittedError, 409, "already_committed"),
    (InvalidCategoryError, 422, "invalid_category"),
    (PersistenceError, 500, "persistence_failed"),
]


def _detail(exc: Exception) -> str:
    if isinstance(exc, KeyError) and exc.args:
        return f"Unknown candidate: {exc.args[0]}"
    return str(exc)


def register_error_handlers(app: FastAPI) -> None:
    """Install one JSON exception handler per pipeline error type."""

    def make_handler(status_code: int, code: str):  # noqa: ANN202
        async def handler(request: Request, exc: Exception) -> JSONResponse:
            log = logger.error if status_code >= 500 else logger.warning
            log(f"{request.method} {request.url.path} -> {status_code} {code}: {exc}")
            return JSONResponse(status_code=status_code, content={"detail": _detail(exc), "code": code})

        return handler

    for exc_type, status_code, code in ERROR_STATUS:
        app.add_exception_handler(exc_type, make_handler(status_code, code))
