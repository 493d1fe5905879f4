"""Pydantic models for the statement pipeline.

This module defines the in-memory candidate transaction used during extraction and verification,
the payload shape returned by the document extraction collaborator, and the read models returned
by the aggregation and API layers.
"""

import datetime as dt
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TransactionType(StrEnum):
    """Direction of a transaction. The sign of a transaction lives here, never in its amount."""

    INCOME = "income"
    EXPENSE = "expense"


class ProcessingStatus(StrEnum):
    """Lifecycle of a statement: PENDING until the verification commit, then COMPLETED."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class CandidateTransaction(BaseModel):
    """A not-yet-persisted transaction produced by parsing or extraction."""

    id: str
    date: dt.date
    description: str
    amount: float = Field(ge=0)
    type: TransactionType
    category: str | None = None
    selected: bool = True


class ExtractedTransaction(BaseModel):
    """One transaction as reported by the document extraction collaborator. Nothing here is trusted."""

    model_config = ConfigDict(extra="ignore")

    date: str | None = None
    desc: str | None = Field(default=None, validation_alias=AliasChoices("desc", "description"))
    amount: float | str | None = None
    type: str | None = None
    category: str | None = None


class ExtractionMetadata(BaseModel):
    """Statement-level metadata reported by the document extraction collaborator."""

    model_config = ConfigDict(extra="ignore")

    bank: str | None = None
    account: str | None = None


class ExtractionResult(BaseModel):
    """Full response of the document extraction collaborator."""

    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)
    transactions: list[ExtractedTransaction] = Field(default_factory=list)


class TransactionRecord(BaseModel):
    """A selected candidate converted to its persisted shape (amount in integer minor units)."""

    statement_id: str
    date: dt.date
    description: str
    amount: int = Field(ge=0)
    type: TransactionType
    category: str


class LedgerTotals(BaseModel):
    """Running income/expense totals over the currently selected candidates (major units)."""

    income: float = 0.0
    expense: float = 0.0


class StatementCreate(BaseModel):
    """Request body for creating a PENDING statement."""

    user_id: str
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
    raw_text: str | None = None
    file_ref: str | None = None
    origin_bank: str | None = None
    account_number: str | None = None


class StatementOut(BaseModel):
    """Persisted statement header."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    month: int
    year: int
    total_income_minor: int
    total_expenses_minor: int
    processing_status: ProcessingStatus
    origin_bank: str | None = None
    account_number: str | None = None
    file_ref: str | None = None


class TransactionOut(BaseModel):
    """Persisted transaction; ``amount`` is in integer minor units."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    statement_id: str
    date: dt.date
    description: str
    amount: int
    type: TransactionType
    category: str | None = None


class StatementDetail(BaseModel):
    """Statement header, net savings in major units, and its transactions by amount descending."""

    statement: StatementOut
    net_savings: float
    transactions: list[TransactionOut]


class CategoryTotal(BaseModel):
    """One row of a statement's expense breakdown."""

    category: str
    total: float
    total_minor: int
    count: int
    share: float


class TrendBucket(BaseModel):
    """Expense total for one calendar month of the trend window."""

    label: str
    month: int
    year: int
    total: float


class HabitSummaryItem(BaseModel):
    """Rolling-window spend for one category, rounded to whole currency units."""

    category: str
    total: int
    count: int


class HabitSummaryResponse(BaseModel):
    """Habit summary envelope; ``summary`` is None when the window holds no transactions."""

    summary: list[HabitSummaryItem] | None = None


class ExpenseLine(BaseModel):
    """A single expense in major units, as fed to the insight collaborator."""

    description: str
    amount: float
    category: str
    date: dt.date


class TextVerificationRequest(BaseModel):
    """Raw pasted statement text to parse into candidates."""

    text: str
    year: int | None = Field(default=None, ge=1900, le=9999)


class DocumentVerificationRequest(BaseModel):
    """Opaque file reference handed to the document extraction collaborator."""

    file_ref: str
    year: int | None = Field(default=None, ge=1900, le=9999)


class VerificationView(BaseModel):
    """Current state of a verification session."""

    statement_id: str
    candidates: list[CandidateTransaction]
    totals: LedgerTotals


class CommitResult(BaseModel):
    """Outcome of a verification commit."""

    statement_id: str
    transaction_count: int
    total_income_minor: int
    total_expenses_minor: int


class CategoryUpdate(BaseModel):
    """Manual category reassignment for one persisted transaction."""

    category: str


class InsightResponse(BaseModel):
    """Free-text insight produced by the insight collaborator."""

    insight: str
