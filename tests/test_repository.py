"""Tests for the SQLAlchemy persistence gateway."""

import datetime as dt
import threading

import pytest
from sqlalchemy import func, select

from statement_pipeline.core.db import StatementChunk
from statement_pipeline.core.errors import (
    PersistenceError,
    StatementAlreadyCommittedError,
    StatementNotFoundError,
    TransactionNotFoundError,
)
from statement_pipeline.core.models import ProcessingStatus, StatementCreate, TransactionRecord, TransactionType


def _record(
    statement_id: str, day: int, amount: int, kind: TransactionType = TransactionType.EXPENSE
) -> TransactionRecord:
    return TransactionRecord(
        statement_id=statement_id,
        date=dt.date(2025, 11, day),
        description=f"Txn {day}",
        amount=amount,
        type=kind,
        category="Food",
    )


def test_create_statement_is_pending(gateway) -> None:  # noqa: ANN001
    """A new statement starts PENDING with zero totals."""
    statement = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025, origin_bank="FNB"))
    fetched = gateway.get_statement(statement.id)
    if fetched.processing_status != ProcessingStatus.PENDING:
        msg = f"Expected PENDING, got {fetched.processing_status}"
        raise AssertionError(msg)
    if (fetched.total_income_minor, fetched.total_expenses_minor) != (0, 0):
        msg = "Expected zero totals on a new statement"
        raise AssertionError(msg)


def test_commit_sets_totals_and_status(gateway) -> None:  # noqa: ANN001
    """Commit inserts the batch and completes the statement with its totals and metadata."""
    statement = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    records = [_record(statement.id, 1, 1500000, TransactionType.INCOME), _record(statement.id, 2, 540)]
    gateway.commit_statement(statement.id, records, 1500000, 540, origin_bank="FNB", account_number="6200")
    fetched = gateway.get_statement(statement.id)
    actual = (
        fetched.processing_status,
        fetched.total_income_minor,
        fetched.total_expenses_minor,
        fetched.origin_bank,
        fetched.account_number,
    )
    if actual != (ProcessingStatus.COMPLETED, 1500000, 540, "FNB", "6200"):
        msg = f"Unexpected statement after commit: {actual}"
        raise AssertionError(msg)
    if len(gateway.query_transactions(statement_id=statement.id)) != len(records):
        msg = "Expected every record to be inserted"
        raise AssertionError(msg)


def test_second_commit_is_rejected(gateway) -> None:  # noqa: ANN001
    """A COMPLETED statement cannot be committed again."""
    statement = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    gateway.commit_statement(statement.id, [_record(statement.id, 1, 100)], 0, 100)
    with pytest.raises(StatementAlreadyCommittedError):
        gateway.commit_statement(statement.id, [_record(statement.id, 2, 200)], 0, 200)
    if len(gateway.query_transactions(statement_id=statement.id)) != 1:
        msg = "Expected the rejected commit to insert nothing"
        raise AssertionError(msg)


def test_commit_to_missing_statement(gateway) -> None:  # noqa: ANN001
    """Committing against an unknown statement id fails without writing anything."""
    with pytest.raises(StatementNotFoundError):
        gateway.commit_statement("missing", [], 0, 0)


def test_failed_commit_leaves_no_partial_write(gateway) -> None:  # noqa: ANN001
    """If any insert fails, neither the transactions nor the statement update survive."""
    statement = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    records = [_record(statement.id, 1, 100), _record("no-such-statement", 2, 200)]
    with pytest.raises(PersistenceError):
        gateway.commit_statement(statement.id, records, 0, 300)
    fetched = gateway.get_statement(statement.id)
    if fetched.processing_status != ProcessingStatus.PENDING or fetched.total_expenses_minor != 0:
        msg = f"Expected the statement to be untouched, got {fetched}"
        raise AssertionError(msg)
    if gateway.query_transactions(statement_id=statement.id):
        msg = "Expected no transactions after a failed commit"
        raise AssertionError(msg)


def test_update_category(gateway) -> None:  # noqa: ANN001
    """Category updates hit one row; unknown ids are reported."""
    statement = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    gateway.commit_statement(statement.id, [_record(statement.id, 1, 100)], 0, 100)
    (txn,) = gateway.query_transactions(statement_id=statement.id)
    gateway.update_transaction_category(txn.id, "Health")
    if gateway.query_transactions(statement_id=statement.id)[0].category != "Health":
        msg = "Expected the category to be updated"
        raise AssertionError(msg)
    with pytest.raises(TransactionNotFoundError):
        gateway.update_transaction_category("missing", "Health")


def test_delete_cascades(gateway, session_factory) -> None:  # noqa: ANN001
    """Deleting a statement removes its transactions and digest chunks."""
    statement = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    gateway.commit_statement(statement.id, [_record(statement.id, 1, 100), _record(statement.id, 2, 200)], 0, 300)
    gateway.save_statement_chunk(statement.id, "digest")
    gateway.delete_statement(statement.id)
    with pytest.raises(StatementNotFoundError):
        gateway.get_statement(statement.id)
    if gateway.query_transactions(statement_id=statement.id):
        msg = "Expected transactions to be deleted with their statement"
        raise AssertionError(msg)
    with session_factory() as session:
        chunks = session.scalar(select(func.count()).select_from(StatementChunk))
    if chunks != 0:
        msg = f"Expected chunks to be deleted with their statement, found {chunks}"
        raise AssertionError(msg)


def test_query_filters(gateway) -> None:  # noqa: ANN001
    """User, date range, type, ordering and limit filters combine."""
    mine = gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    theirs = gateway.create_statement(StatementCreate(user_id="u2", month=11, year=2025))
    gateway.commit_statement(
        mine.id,
        [
            _record(mine.id, 1, 300),
            _record(mine.id, 10, 900),
            _record(mine.id, 20, 500),
            _record(mine.id, 25, 100000, TransactionType.INCOME),
        ],
        100000,
        1700,
    )
    gateway.commit_statement(theirs.id, [_record(theirs.id, 10, 5000)], 0, 5000)

    result = gateway.query_transactions(
        user_id="u1",
        start=dt.date(2025, 11, 1),
        end=dt.date(2025, 11, 20),
        txn_type=TransactionType.EXPENSE,
        order_by_amount=True,
        limit=2,
    )
    if [t.amount for t in result] != [900, 500]:
        msg = f"Expected [900, 500], got {[t.amount for t in result]}"
        raise AssertionError(msg)
    by_date = gateway.query_transactions(statement_id=mine.id)
    if [t.date.day for t in by_date] != [1, 10, 20, 25]:
        msg = "Expected date ordering by default"
        raise AssertionError(msg)


def test_list_statements_newest_first(gateway) -> None:  # noqa: ANN001
    """Statements are listed newest period first and only for the given user."""
    for month in (9, 11, 10):
        gateway.create_statement(StatementCreate(user_id="u1", month=month, year=2025))
    gateway.create_statement(StatementCreate(user_id="u2", month=12, year=2025))
    months = [s.month for s in gateway.list_statements("u1")]
    if months != [11, 10, 9]:
        msg = f"Expected [11, 10, 9], got {months}"
        raise AssertionError(msg)


def test_concurrent_commits_claim_the_statement_once(file_gateway) -> None:  # noqa: ANN001
    """Of two simultaneous commits one wins; the stored totals match the rows actually inserted."""
    statement = file_gateway.create_statement(StatementCreate(user_id="u1", month=11, year=2025))
    records = [_record(statement.id, 1, 540), _record(statement.id, 2, 8000)]
    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    lock = threading.Lock()

    def commit() -> None:
        barrier.wait()
        try:
            file_gateway.commit_statement(statement.id, records, 0, 8540)
            outcome = "committed"
        except StatementAlreadyCommittedError:
            outcome = "rejected"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=commit) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    if sorted(outcomes) != ["committed", "rejected"]:
        msg = f"Expected exactly one commit to win, got {outcomes}"
        raise AssertionError(msg)
    rows = file_gateway.query_transactions(statement_id=statement.id)
    stored = file_gateway.get_statement(statement.id).total_expenses_minor
    if len(rows) != len(records) or sum(t.amount for t in rows) != stored:
        msg = f"Expected {len(records)} rows summing to {stored}, got {[t.amount for t in rows]}"
        raise AssertionError(msg)
