"""Persistence gateway for statements and their transactions.

``PersistenceGateway`` is the operation contract the pipeline depends on; ``SqlAlchemyGateway``
implements it over a SQLAlchemy session factory. Every SQLAlchemy failure leaves the gateway as a
``PersistenceError`` and the session is rolled back, so no partial write survives.
"""

import datetime as dt
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from statement_pipeline.core.db import Statement, StatementChunk, Transaction
from statement_pipeline.core.errors import (
    PersistenceError,
    StatementAlreadyCommittedError,
    StatementNotFoundError,
    TransactionNotFoundError,
)
from statement_pipeline.core.models import (
    ProcessingStatus,
    StatementCreate,
    StatementOut,
    TransactionOut,
    TransactionRecord,
    TransactionType,
)
from statement_pipeline.core.utils import get_logger

logger = get_logger("statement-pipeline.repository")


class PersistenceGateway(ABC):
    """Storage operations used by the pipeline and the read-side aggregations."""

    @abstractmethod
    def create_statement(self, data: StatementCreate) -> StatementOut:
        """Insert a statement with status PENDING and zero totals."""

    @abstractmethod
    def get_statement(self, statement_id: str) -> StatementOut:
        """Fetch one statement header."""

    @abstractmethod
    def list_statements(self, user_id: str) -> list[StatementOut]:
        """List a user's statements, newest first."""

    @abstractmethod
    def commit_statement(
        self,
        statement_id: str,
        records: list[TransactionRecord],
        income_minor: int,
        expense_minor: int,
        origin_bank: str | None = None,
        account_number: str | None = None,
    ) -> None:
        """Bulk-insert transactions and set the statement totals and COMPLETED status as one unit of work."""

    @abstractmethod
    def update_transaction_category(self, transaction_id: str, category: str) -> None:
        """Overwrite a single persisted transaction's category."""

    @abstractmethod
    def delete_statement(self, statement_id: str) -> None:
        """Delete a statement together with everything it owns."""

    @abstractmethod
    def query_transactions(
        self,
        *,
        statement_id: str | None = None,
        user_id: str | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
        txn_type: TransactionType | None = None,
        order_by_amount: bool = False,
        limit: int | None = None,
    ) -> list[TransactionOut]:
        """Query persisted transactions; every filter is optional and the date range is inclusive."""

    @abstractmethod
    def save_statement_chunk(self, statement_id: str, content: str) -> None:
        """Store a plain-text digest of a statement."""


class SqlAlchemyGateway(PersistenceGateway):
    """PersistenceGateway backed by SQLAlchemy ORM tables."""

    def __init__(self, session_factory: sessionmaker) -> None:
        """Initialize the gateway with a session factory."""
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session: Session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            msg = f"{operation} failed: {exc}"
            logger.exception(msg)
            raise PersistenceError(msg) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _require_statement(session: Session, statement_id: str) -> Statement:
        statement = session.get(Statement, statement_id)
        if statement is None:
            raise StatementNotFoundError(statement_id)
        return statement

    def create_statement(self, data: StatementCreate) -> StatementOut:
        """Insert a statement with status PENDING and zero totals."""
        with self._session("create statement") as session:
            statement = Statement(
                user_id=data.user_id,
                month=data.month,
                year=data.year,
                raw_text=data.raw_text,
                file_ref=data.file_ref,
                origin_bank=data.origin_bank,
                account_number=data.account_number,
                total_income_minor=0,
                total_expenses_minor=0,
                processing_status=ProcessingStatus.PENDING,
            )
            session.add(statement)
            session.flush()
            out = StatementOut.model_validate(statement)
        logger.info(f"Created statement {out.id} for user {out.user_id} ({out.month}/{out.year})")
        return out

    def get_statement(self, statement_id: str) -> StatementOut:
        """Fetch one statement header."""
        with self._session("get statement") as session:
            return StatementOut.model_validate(self._require_statement(session, statement_id))

    def list_statements(self, user_id: str) -> list[StatementOut]:
        """List a user's statements, newest first."""
        with self._session("list statements") as session:
            stmt = (
                select(Statement)
                .where(Statement.user_id == user_id)
                .order_by(Statement.year.desc(), Statement.month.desc(), Statement.created_at.desc())
            )
            return [StatementOut.model_validate(row) for row in session.scalars(stmt)]

    def commit_statement(
        self,
        statement_id: str,
        records: list[TransactionRecord],
        income_minor: int,
        expense_minor: int,
        origin_bank: str | None = None,
        account_number: str | None = None,
    ) -> None:
        """Bulk-insert transactions and set the statement totals and COMPLETED status in one transaction.

        The PENDING -> COMPLETED update runs first and is conditional on the PENDING status, so of two
        concurrent commits exactly one claims the statement and the other inserts nothing.
        """
        with self._session("commit statement") as session:
            self._require_statement(session, statement_id)
            values = {
                "total_income_minor": income_minor,
                "total_expenses_minor": expense_minor,
                "processing_status": ProcessingStatus.COMPLETED,
            }
            if origin_bank:
                values["origin_bank"] = origin_bank
            if account_number:
                values["account_number"] = account_number
            claimed = session.execute(
                update(Statement)
                .where(Statement.id == statement_id, Statement.processing_status == ProcessingStatus.PENDING)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount == 0:
                raise StatementAlreadyCommittedError(statement_id)
            if records:
                session.execute(insert(Transaction), [r.model_dump() for r in records])
        logger.info(
            f"Committed {len(records)} transactions to statement {statement_id} "
            f"(income={income_minor}, expenses={expense_minor})"
        )

    def update_transaction_category(self, transaction_id: str, category: str) -> None:
        """Overwrite a single persisted transaction's category."""
        with self._session("update category") as session:
            transaction = session.get(Transaction, transaction_id)
            if transaction is None:
                raise TransactionNotFoundError(transaction_id)
            transaction.category = category

    def delete_statement(self, statement_id: str) -> None:
        """Delete a statement; its transactions and chunks cascade."""
        with self._session("delete statement") as session:
            session.delete(self._require_statement(session, statement_id))
        logger.info(f"Deleted statement {statement_id}")

    def query_transactions(
        self,
        *,
        statement_id: str | None = None,
        user_id: str | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
        txn_type: TransactionType | None = None,
        order_by_amount: bool = False,
        limit: int | None = None,
    ) -> list[TransactionOut]:
        """Query persisted transactions; the date range is inclusive on both ends."""
        stmt = select(Transaction)
        if user_id is not None:
            stmt = stmt.join(Statement, Transaction.statement_id == Statement.id).where(Statement.user_id == user_id)
        if statement_id is not None:
            stmt = stmt.where(Transaction.statement_id == statement_id)
        if start is not None:
            stmt = stmt.where(Transaction.date >= start)
        if end is not None:
            stmt = stmt.where(Transaction.date <= end)
        if txn_type is not None:
            stmt = stmt.where(Transaction.type == txn_type)
        stmt = stmt.order_by(Transaction.amount.desc()) if order_by_amount else stmt.order_by(Transaction.date)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session("query transactions") as session:
            return [TransactionOut.model_validate(row) for row in session.scalars(stmt)]

    def save_statement_chunk(self, statement_id: str, content: str) -> None:
        """Store a plain-text digest of a statement."""
        with self._session("save statement chunk") as session:
            self._require_statement(session, statement_id)
            session.add(StatementChunk(statement_id=statement_id, chunk_content=content))
