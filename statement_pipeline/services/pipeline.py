"""StatementPipeline: orchestrates extraction, classification, verification and commit.

All collaborators (classifier, document extractor, persistence gateway, task queue) are passed in
by the caller. The flow for one statement is strictly sequential:

1. parse pasted text or extract a document into candidates (empty results raise);
2. resolve categories, fanning the classifier calls out concurrently;
3. open a verification session in which the user toggles candidates;
4. commit the selected subset and the statement totals as one unit of work;
5. queue the advisory statement digest, whose outcome never affects the commit.
"""

from statement_pipeline.agents.base import BaseClassifier, BaseExtractor
from statement_pipeline.core.errors import PersistenceError, StatementAlreadyCommittedError
from statement_pipeline.core.models import (
    CandidateTransaction,
    CommitResult,
    ExtractionMetadata,
    ProcessingStatus,
    StatementCreate,
    StatementOut,
    VerificationView,
)
from statement_pipeline.core.utils import get_logger
from statement_pipeline.services.category_resolver import DEFAULT_CONCURRENCY, override_category, resolve_categories
from statement_pipeline.services.normalizer import normalize_extraction, normalize_parsed
from statement_pipeline.services.parser import parse_bank_text
from statement_pipeline.services.repository import PersistenceGateway
from statement_pipeline.services.selection_ledger import SelectionLedger, VerificationSessionStore
from statement_pipeline.workers.digest_job import build_statement_digest
from statement_pipeline.workers.task_queue import InlineTaskQueue, TaskQueue

logger = get_logger("statement-pipeline.pipeline")


def ledger_view(statement_id: str, ledger: SelectionLedger) -> VerificationView:
    """Snapshot of a verification session."""
    return VerificationView(statement_id=statement_id, candidates=ledger.candidates, totals=ledger.totals)


class StatementPipeline:
    """Statement ingestion and verification workflow."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        classifier: BaseClassifier,
        extractor: BaseExtractor | None = None,
        task_queue: TaskQueue | None = None,
        sessions: VerificationSessionStore | None = None,
        classifier_concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        """Wire the pipeline to its collaborators."""
        self.gateway = gateway
        self.classifier = classifier
        self.extractor = extractor
        self.task_queue = task_queue or InlineTaskQueue()
        self.sessions = sessions if sessions is not None else VerificationSessionStore()
        self.classifier_concurrency = classifier_concurrency

    def create_statement(self, data: StatementCreate) -> StatementOut:
        """Register a new PENDING statement."""
        return self.gateway.create_statement(data)

    def _pending_statement(self, statement_id: str) -> StatementOut:
        statement = self.gateway.get_statement(statement_id)
        if statement.processing_status == ProcessingStatus.COMPLETED:
            raise StatementAlreadyCommittedError(statement_id)
        return statement

    def _open_session(
        self, statement_id: str, candidates: list[CandidateTransaction], metadata: ExtractionMetadata | None = None
    ) -> VerificationView:
        resolved = resolve_categories(candidates, self.classifier, max_workers=self.classifier_concurrency)
        ledger = self.sessions.open(statement_id, resolved, metadata)
        logger.info(f"Opened verification for statement {statement_id} with {len(resolved)} candidates")
        return ledger_view(statement_id, ledger)

    def verify_text(self, statement_id: str, text: str, year: int | None = None) -> VerificationView:
        """Parse pasted statement text and open a verification session over the candidates."""
        statement = self._pending_statement(statement_id)
        candidates = normalize_parsed(parse_bank_text(text, year or statement.year))
        return self._open_session(statement_id, candidates)

    def verify_document(self, statement_id: str, file_ref: str, year: int | None = None) -> VerificationView:
        """Run the document extractor and open a verification session over its transactions."""
        if self.extractor is None:
            msg = "No document extractor configured"
            raise RuntimeError(msg)
        statement = self._pending_statement(statement_id)
        extraction = self.extractor.extract(file_ref)
        candidates = normalize_extraction(extraction, year or statement.year)
        return self._open_session(statement_id, candidates, extraction.metadata)

    def view(self, statement_id: str) -> VerificationView:
        """Current candidates and running totals."""
        return ledger_view(statement_id, self.sessions.get(statement_id))

    def toggle(self, statement_id: str, candidate_id: str) -> VerificationView:
        """Flip one candidate's inclusion and return the updated session."""
        return ledger_view(statement_id, self.sessions.toggle(statement_id, candidate_id))

    def commit(self, statement_id: str) -> CommitResult:
        """Persist the selected candidates and the statement totals; then queue the digest.

        The session is taken out of the store for the duration of the commit, so a concurrent commit
        of the same session finds none. A persistence failure puts it back so the commit can be retried.
        """
        ledger = self.sessions.take(statement_id)
        records, income_minor, expense_minor = ledger.build_records(statement_id)
        metadata = ledger.metadata
        try:
            self.gateway.commit_statement(
                statement_id,
                records,
                income_minor,
                expense_minor,
                origin_bank=metadata.bank if metadata else None,
                account_number=metadata.account if metadata else None,
            )
        except PersistenceError:
            self.sessions.restore(statement_id, ledger)
            raise
        self.task_queue.submit(build_statement_digest, self.gateway, statement_id)
        return CommitResult(
            statement_id=statement_id,
            transaction_count=len(records),
            total_income_minor=income_minor,
            total_expenses_minor=expense_minor,
        )

    def recategorize(self, transaction_id: str, category: str) -> str:
        """Manually reassign one committed transaction's category."""
        return override_category(self.gateway, transaction_id, category)

    def delete_statement(self, statement_id: str) -> None:
        """Delete a statement with its transactions and drop any open verification session."""
        self.gateway.delete_statement(statement_id)
        self.sessions.close(statement_id)
