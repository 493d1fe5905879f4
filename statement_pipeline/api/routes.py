"""FastAPI endpoints for the statement pipeline API.

This module defines the routes for creating statements, running the text or document extraction
into a verification session, toggling and committing candidates, manual recategorization, and the
read-side dashboards (breakdown, trends, habits, insights).
"""

from fastapi import APIRouter, Depends, Path, Query, Response

from statement_pipeline.agents.base import BaseInsightWriter
from statement_pipeline.api.dependencies import get_aggregation_engine, get_gateway, get_insight_writer, get_pipeline
from statement_pipeline.core.models import (
    CategoryTotal,
    CategoryUpdate,
    CommitResult,
    DocumentVerificationRequest,
    ExpenseLine,
    HabitSummaryResponse,
    InsightResponse,
    StatementCreate,
    StatementDetail,
    StatementOut,
    TextVerificationRequest,
    TrendBucket,
    VerificationView,
)
from statement_pipeline.core.utils import get_logger
from statement_pipeline.services.aggregation import AggregationEngine
from statement_pipeline.services.pipeline import StatementPipeline
from statement_pipeline.services.repository import PersistenceGateway

router = APIRouter()
logger = get_logger("statement-pipeline.api")


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.post(
    "/statements",
    status_code=201,
    response_model=StatementOut,
    summary="Create a pending statement",
    description=(
        "Register a statement for a user and month. The statement starts as `PENDING` with zero totals "
        "until its verification session is committed."
    ),
)
def create_statement(body: StatementCreate, pipeline: StatementPipeline = Depends(get_pipeline)) -> StatementOut:
    """Create a PENDING statement."""
    logger.info(f"Creating statement for user={body.user_id} {body.month}/{body.year}")
    return pipeline.create_statement(body)


@router.get("/users/{user_id}/statements", response_model=list[StatementOut], summary="List a user's statements")
def list_statements(user_id: str, gateway: PersistenceGateway = Depends(get_gateway)) -> list[StatementOut]:
    """List statements, newest first."""
    return gateway.list_statements(user_id)


@router.get(
    "/statements/{statement_id}",
    response_model=StatementDetail,
    summary="Statement detail",
    description="Statement header, net savings, and its transactions ordered by amount descending.",
)
def get_statement(statement_id: str, engine: AggregationEngine = Depends(get_aggregation_engine)) -> StatementDetail:
    """Return one statement with its transactions."""
    return engine.statement_detail(statement_id)


@router.delete("/statements/{statement_id}", status_code=204, summary="Delete a statement and its transactions")
def delete_statement(statement_id: str, pipeline: StatementPipeline = Depends(get_pipeline)) -> Response:
    """Delete a statement; its transactions are removed with it."""
    pipeline.delete_statement(statement_id)
    return Response(status_code=204)


@router.post(
    "/statements/{statement_id}/verification/text",
    response_model=VerificationView,
    summary="Parse pasted statement text into a verification session",
    description=(
        "Parse free-form statement text line by line, classify every candidate, and open a verification "
        "session. `year` defaults to the statement's year.\n\n"
        "- 422 `extraction_empty`: no transaction lines were found.\n"
        "- 409 `already_committed`: the statement is already COMPLETED."
    ),
)
def verify_text(
    statement_id: str, body: TextVerificationRequest, pipeline: StatementPipeline = Depends(get_pipeline)
) -> VerificationView:
    """Open a verification session from pasted text."""
    return pipeline.verify_text(statement_id, body.text, body.year)


@router.post(
    "/statements/{statement_id}/verification/document",
    response_model=VerificationView,
    summary="Extract a statement document into a verification session",
    description=(
        "Hand the file reference to the document extractor, classify transactions that arrive without a "
        "category, and open a verification session.\n\n"
        "- 422 `extraction_empty`: the extractor returned no transactions; callers may retry with pasted text.\n"
        "- 502 `extraction_failed`: the extractor failed or returned unusable output."
    ),
)
def verify_document(
    statement_id: str, body: DocumentVerificationRequest, pipeline: StatementPipeline = Depends(get_pipeline)
) -> VerificationView:
    """Open a verification session from a document."""
    return pipeline.verify_document(statement_id, body.file_ref, body.year)


@router.get(
    "/statements/{statement_id}/verification",
    response_model=VerificationView,
    summary="Current verification session",
)
def get_verification(statement_id: str, pipeline: StatementPipeline = Depends(get_pipeline)) -> VerificationView:
    """Return candidates and running totals."""
    return pipeline.view(statement_id)


@router.post(
    "/statements/{statement_id}/verification/toggle/{candidate_id}",
    response_model=VerificationView,
    summary="Include or exclude one candidate",
)
def toggle_candidate(
    statement_id: str, candidate_id: str, pipeline: StatementPipeline = Depends(get_pipeline)
) -> VerificationView:
    """Flip one candidate's inclusion flag."""
    return pipeline.toggle(statement_id, candidate_id)


@router.post(
    "/statements/{statement_id}/verification/commit",
    response_model=CommitResult,
    summary="Commit the selected candidates",
    description=(
        "Insert the selected candidates and update the statement totals in a single unit of work, then mark "
        "the statement COMPLETED.\n\n"
        "- 500 `persistence_failed`: nothing was written; the session stays open for a retry."
    ),
)
def commit_verification(statement_id: str, pipeline: StatementPipeline = Depends(get_pipeline)) -> CommitResult:
    """Persist the verified batch."""
    return pipeline.commit(statement_id)


@router.patch(
    "/transactions/{transaction_id}/category",
    summary="Manually recategorize a transaction",
    responses={422: {"description": "Category is not part of the vocabulary."}},
)
def update_category(
    transaction_id: str, body: CategoryUpdate, pipeline: StatementPipeline = Depends(get_pipeline)
) -> dict:
    """Overwrite one committed transaction's category."""
    return {"id": transaction_id, "category": pipeline.recategorize(transaction_id, body.category)}


@router.get(
    "/statements/{statement_id}/breakdown",
    response_model=list[CategoryTotal],
    summary="Expense breakdown by category",
)
def statement_breakdown(
    statement_id: str, engine: AggregationEngine = Depends(get_aggregation_engine)
) -> list[CategoryTotal]:
    """Where the money went for one statement."""
    return engine.statement_breakdown(statement_id)


@router.get("/users/{user_id}/trends", response_model=list[TrendBucket], summary="Monthly expense trend")
def monthly_trends(user_id: str, engine: AggregationEngine = Depends(get_aggregation_engine)) -> list[TrendBucket]:
    """Expense totals for the trailing months, oldest first."""
    return engine.monthly_trends(user_id)


@router.get(
    "/users/{user_id}/habits",
    response_model=HabitSummaryResponse,
    summary="Rolling habit summary",
    description="Category totals over the trailing window. `summary` is null when there is not enough data.",
)
def recent_habits(
    user_id: str,
    months: int | None = Query(default=None, ge=1, le=24),
    engine: AggregationEngine = Depends(get_aggregation_engine),
) -> HabitSummaryResponse:
    """Rolling N-month habit summary."""
    return HabitSummaryResponse(summary=engine.recent_habits(user_id, months))


@router.get("/users/{user_id}/habits/{year}", response_model=HabitSummaryResponse, summary="Yearly habit summary")
def yearly_habits(
    user_id: str,
    year: int = Path(ge=1900, le=9999),
    engine: AggregationEngine = Depends(get_aggregation_engine),
) -> HabitSummaryResponse:
    """Habit summary over one calendar year."""
    return HabitSummaryResponse(summary=engine.yearly_habits(user_id, year))


@router.get(
    "/users/{user_id}/previous-month",
    response_model=list[ExpenseLine],
    summary="Largest expenses of the previous month",
)
def previous_month(user_id: str, engine: AggregationEngine = Depends(get_aggregation_engine)) -> list[ExpenseLine]:
    """Top expenses of the previous calendar month."""
    return engine.previous_month_expenses(user_id)


@router.get("/users/{user_id}/insight", response_model=InsightResponse, summary="Last month's spending insight")
def monthly_insight(
    user_id: str,
    engine: AggregationEngine = Depends(get_aggregation_engine),
    writer: BaseInsightWriter = Depends(get_insight_writer),
) -> InsightResponse:
    """Short LLM summary of last month's top expenses."""
    return InsightResponse(insight=writer.monthly_insight(engine.previous_month_expenses(user_id)))


@router.get("/users/{user_id}/habits-insight", response_model=InsightResponse, summary="Money personality")
def habits_insight(
    user_id: str,
    engine: AggregationEngine = Depends(get_aggregation_engine),
    writer: BaseInsightWriter = Depends(get_insight_writer),
) -> InsightResponse:
    """LLM "money personality" from the rolling habit summary."""
    return InsightResponse(insight=writer.money_personality(engine.recent_habits(user_id) or []))
