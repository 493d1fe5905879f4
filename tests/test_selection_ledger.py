"""Tests for the verification-phase ledger and session store."""

import datetime as dt

import pytest

from statement_pipeline.core.errors import UnknownTransactionError, VerificationSessionNotFoundError
from statement_pipeline.core.models import CandidateTransaction, LedgerTotals, TransactionType
from statement_pipeline.services.selection_ledger import SelectionLedger, VerificationSessionStore


def _candidates() -> list[CandidateTransaction]:
    rows = [
        ("temp-0", "Salary", 15000.00, TransactionType.INCOME, "Salary"),
        ("temp-1", "Starbucks", 5.40, TransactionType.EXPENSE, "Food"),
        ("temp-2", "Uber", 80.10, TransactionType.EXPENSE, "Transport"),
        ("temp-3", "Mystery", 12.00, TransactionType.EXPENSE, None),
    ]
    return [
        CandidateTransaction(
            id=cid, date=dt.date(2025, 11, 1), description=desc, amount=amount, type=kind, category=category
        )
        for cid, desc, amount, kind, category in rows
    ]


def test_all_candidates_start_selected() -> None:
    """A new session includes everything, even candidates that arrived unselected."""
    candidates = _candidates()
    candidates[1] = candidates[1].model_copy(update={"selected": False})
    ledger = SelectionLedger(candidates)
    if len(ledger.selected()) != len(candidates):
        msg = "Expected every candidate to start selected"
        raise AssertionError(msg)
    if ledger.totals.income != 15000.00 or ledger.totals.expense != pytest.approx(97.50):
        msg = f"Unexpected initial totals {ledger.totals}"
        raise AssertionError(msg)


def test_toggle_excludes_and_restores() -> None:
    """Toggling twice returns the totals to their original values."""
    ledger = SelectionLedger(_candidates())
    before = ledger.totals
    excluded = ledger.toggle("temp-2")
    if excluded.expense != pytest.approx(17.40):
        msg = f"Expected expense 17.40 after excluding Uber, got {excluded.expense}"
        raise AssertionError(msg)
    restored = ledger.toggle("temp-2")
    if restored != before:
        msg = f"Expected totals {before} after toggling back, got {restored}"
        raise AssertionError(msg)


def test_toggle_income_only_moves_income() -> None:
    """Excluding an income candidate leaves the expense total alone."""
    ledger = SelectionLedger(_candidates())
    totals = ledger.toggle("temp-0")
    if totals.income != 0 or totals.expense != pytest.approx(97.50):
        msg = f"Unexpected totals {totals}"
        raise AssertionError(msg)


def test_unknown_candidate_id() -> None:
    """Toggling an id that is not in the session fails loudly."""
    ledger = SelectionLedger(_candidates())
    with pytest.raises(UnknownTransactionError):
        ledger.toggle("temp-99")


def test_build_records_only_selected() -> None:
    """Only selected candidates become records and the totals are exact minor units."""
    ledger = SelectionLedger(_candidates())
    ledger.toggle("temp-2")
    records, income_minor, expense_minor = ledger.build_records("stmt-1")
    descriptions = [r.description for r in records]
    if descriptions != ["Salary", "Starbucks", "Mystery"]:
        msg = f"Expected Uber to be excluded, got {descriptions}"
        raise AssertionError(msg)
    if (income_minor, expense_minor) != (1500000, 1740):
        msg = f"Expected (1500000, 1740), got {(income_minor, expense_minor)}"
        raise AssertionError(msg)
    if records[2].category != "Uncategorized" or records[1].amount != 540:
        msg = f"Unexpected record contents {records}"
        raise AssertionError(msg)


def test_empty_selection() -> None:
    """Excluding everything yields no records and zero totals."""
    ledger = SelectionLedger(_candidates())
    for candidate in ledger.candidates:
        ledger.toggle(candidate.id)
    records, income_minor, expense_minor = ledger.build_records("stmt-1")
    if records or income_minor or expense_minor or ledger.totals != LedgerTotals():
        msg = "Expected an empty selection to produce nothing"
        raise AssertionError(msg)


def test_session_store_lifecycle() -> None:
    """Sessions are opened, toggled and closed by statement id."""
    store = VerificationSessionStore()
    store.open("stmt-1", _candidates())
    store.toggle("stmt-1", "temp-1")
    if store.get("stmt-1").totals.expense != pytest.approx(92.10):
        msg = "Expected the toggle to be applied to the stored session"
        raise AssertionError(msg)
    store.close("stmt-1")
    with pytest.raises(VerificationSessionNotFoundError):
        store.get("stmt-1")
    with pytest.raises(VerificationSessionNotFoundError):
        store.toggle("stmt-1", "temp-1")


def test_idle_sessions_are_evicted() -> None:
    """A session untouched for longer than the TTL is gone; touching it keeps it alive."""
    now = [1000.0]
    store = VerificationSessionStore(ttl_seconds=10, clock=lambda: now[0])
    store.open("stale", _candidates())
    store.open("active", _candidates())
    now[0] += 6
    store.get("active")
    now[0] += 6
    with pytest.raises(VerificationSessionNotFoundError):
        store.get("stale")
    if store.get("active").totals.income != 15000.00:
        msg = "Expected the recently used session to survive eviction"
        raise AssertionError(msg)


def test_taken_session_can_be_restored() -> None:
    """A taken session is invisible until restored, and restoring never replaces a newer session."""
    store = VerificationSessionStore()
    store.open("stmt-1", _candidates())
    ledger = store.take("stmt-1")
    with pytest.raises(VerificationSessionNotFoundError):
        store.take("stmt-1")
    store.restore("stmt-1", ledger)
    if store.get("stmt-1") is not ledger:
        msg = "Expected the restored session to be the taken one"
        raise AssertionError(msg)

    taken = store.take("stmt-1")
    newer = store.open("stmt-1", _candidates()[:1])
    store.restore("stmt-1", taken)
    if store.get("stmt-1") is not newer:
        msg = "Expected restore to leave the newer session in place"
        raise AssertionError(msg)
