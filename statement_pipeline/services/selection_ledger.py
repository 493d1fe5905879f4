"""Per-session inclusion flags and running totals for the verification phase.

Every candidate starts selected. Totals are recomputed from scratch after each toggle, so they
always equal the sum over the currently selected candidates, split by type. Only the selected
subset is ever converted into persisted records.
"""

import threading
import time
from collections.abc import Callable

from statement_pipeline.core.categories import UNCATEGORIZED
from statement_pipeline.core.errors import UnknownTransactionError, VerificationSessionNotFoundError
from statement_pipeline.core.models import (
    CandidateTransaction,
    ExtractionMetadata,
    LedgerTotals,
    TransactionRecord,
    TransactionType,
)
from statement_pipeline.core.utils import get_logger, to_minor_units

logger = get_logger("statement-pipeline.ledger")


class SelectionLedger:
    """Verification-phase state machine over one batch of candidates."""

    def __init__(self, candidates: list[CandidateTransaction], metadata: ExtractionMetadata | None = None) -> None:
        """Start a session with every candidate selected."""
        self.metadata = metadata
        self._items = [c.model_copy(update={"selected": True}) for c in candidates]
        self._index = {c.id: pos for pos, c in enumerate(self._items)}
        self._totals = self._compute_totals()

    @property
    def candidates(self) -> list[CandidateTransaction]:
        """Candidates in their original order, with current selection flags."""
        return list(self._items)

    @property
    def totals(self) -> LedgerTotals:
        """Display-only running totals over the selected candidates."""
        return self._totals

    def selected(self) -> list[CandidateTransaction]:
        """Candidates currently included in totals and in the commit."""
        return [c for c in self._items if c.selected]

    def toggle(self, candidate_id: str) -> LedgerTotals:
        """Flip one candidate's inclusion flag and return the recomputed totals."""
        pos = self._index.get(candidate_id)
        if pos is None:
            raise UnknownTransactionError(candidate_id)
        current = self._items[pos]
        self._items[pos] = current.model_copy(update={"selected": not current.selected})
        self._totals = self._compute_totals()
        logger.debug(f"Toggled {candidate_id} -> selected={not current.selected}")
        return self._totals

    def _compute_totals(self) -> LedgerTotals:
        income = sum(c.amount for c in self._items if c.selected and c.type is TransactionType.INCOME)
        expense = sum(c.amount for c in self._items if c.selected and c.type is TransactionType.EXPENSE)
        return LedgerTotals(income=income, expense=expense)

    def build_records(self, statement_id: str) -> tuple[list[TransactionRecord], int, int]:
        """Convert the selected subset to persisted records plus income/expense totals in minor units.

        The totals are summed from the very records returned, so the statement totals can never
        disagree with the inserted batch.
        """
        records = [
            TransactionRecord(
                statement_id=statement_id,
                date=c.date,
                description=c.description,
                amount=to_minor_units(c.amount),
                type=c.type,
                category=c.category or UNCATEGORIZED,
            )
            for c in self.selected()
        ]
        income_minor = sum(r.amount for r in records if r.type is TransactionType.INCOME)
        expense_minor = sum(r.amount for r in records if r.type is TransactionType.EXPENSE)
        return records, income_minor, expense_minor


DEFAULT_SESSION_TTL_SECONDS = 24 * 60 * 60


class VerificationSessionStore:
    """In-process registry of open verification sessions, keyed by statement id.

    Sessions idle for longer than ``ttl_seconds`` are evicted lazily on the next store access.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create an empty store."""
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, tuple[SelectionLedger, float]] = {}
        self._lock = threading.Lock()

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self.ttl_seconds
        expired = [sid for sid, (_, touched) in self._sessions.items() if touched < cutoff]
        for statement_id in expired:
            del self._sessions[statement_id]
        if expired:
            logger.info(f"Evicted {len(expired)} idle verification sessions")

    def _lookup(self, statement_id: str) -> SelectionLedger:
        self._evict_expired()
        entry = self._sessions.get(statement_id)
        if entry is None:
            raise VerificationSessionNotFoundError(statement_id)
        ledger = entry[0]
        self._sessions[statement_id] = (ledger, self._clock())
        return ledger

    def open(
        self, statement_id: str, candidates: list[CandidateTransaction], metadata: ExtractionMetadata | None = None
    ) -> SelectionLedger:
        """Start (or restart) the verification session for a statement."""
        ledger = SelectionLedger(candidates, metadata)
        with self._lock:
            self._evict_expired()
            self._sessions[statement_id] = (ledger, self._clock())
        return ledger

    def get(self, statement_id: str) -> SelectionLedger:
        """Return the open session for a statement."""
        with self._lock:
            return self._lookup(statement_id)

    def toggle(self, statement_id: str, candidate_id: str) -> SelectionLedger:
        """Toggle one candidate inside a session under the store lock."""
        with self._lock:
            ledger = self._lookup(statement_id)
            ledger.toggle(candidate_id)
        return ledger

    def take(self, statement_id: str) -> SelectionLedger:
        """Remove and return the session, so only one caller can commit it."""
        with self._lock:
            ledger = self._lookup(statement_id)
            del self._sessions[statement_id]
        return ledger

    def restore(self, statement_id: str, ledger: SelectionLedger) -> None:
        """Put a taken session back, unless a newer one was opened meanwhile."""
        with self._lock:
            self._sessions.setdefault(statement_id, (ledger, self._clock()))

    def close(self, statement_id: str) -> None:
        """Discard a session, if one is open."""
        with self._lock:
            self._sessions.pop(statement_id, None)
