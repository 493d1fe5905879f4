"""Bring parser output and document-extractor output into one candidate transaction shape."""

import datetime as dt
from collections.abc import Iterable

from statement_pipeline.core.categories import match_category
from statement_pipeline.core.errors import ExtractionEmptyError
from statement_pipeline.core.models import CandidateTransaction, ExtractedTransaction, ExtractionResult, TransactionType
from statement_pipeline.core.utils import get_logger, is_storable_amount
from statement_pipeline.services.parser import UNKNOWN_DESCRIPTION, parse_amount

logger = get_logger("statement-pipeline.normalizer")

INCOME_LABELS = frozenset({"income", "credit", "deposit"})


def normalize_type(label: object) -> TransactionType:
    """Case-fold an upstream type label onto the two-value enum; anything unrecognised is an expense."""
    if isinstance(label, str) and label.strip().casefold() in INCOME_LABELS:
        return TransactionType.INCOME
    return TransactionType.EXPENSE


def normalize_date(raw: object, default_year: int) -> dt.date:
    """Parse an ISO ``YYYY-MM-DD`` date, defaulting to January 1st of ``default_year``."""
    if isinstance(raw, dt.date):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            return dt.date.fromisoformat(raw.strip()[:10])
        except ValueError:
            logger.warning(f"Unparseable extracted date {raw!r}, defaulting to {default_year}-01-01")
    return dt.date(default_year, 1, 1)


def normalize_extracted(item: ExtractedTransaction, index: int, default_year: int) -> CandidateTransaction | None:
    """Convert one extractor item to a candidate, or None when its amount is unusable."""
    raw_amount = item.amount
    amount = parse_amount(raw_amount) if isinstance(raw_amount, str) else raw_amount
    if amount is None or not is_storable_amount(float(amount)):
        logger.warning(f"Skipping extracted item {index}: no usable amount ({item.amount!r})")
        return None
    category = None
    if item.category:
        category = match_category(item.category)
        if category is None:
            logger.info(f"Extracted category {item.category!r} is outside the vocabulary; will classify")
    return CandidateTransaction(
        id=f"doc-{index}",
        date=normalize_date(item.date, default_year),
        description=(item.desc or "").strip() or UNKNOWN_DESCRIPTION,
        amount=abs(float(amount)),
        type=normalize_type(item.type),
        category=category,
        selected=True,
    )


def normalize_extraction(result: ExtractionResult, default_year: int) -> list[CandidateTransaction]:
    """Normalize a document extraction payload. Raises ExtractionEmptyError when nothing survives."""
    candidates = []
    for index, item in enumerate(result.transactions):
        candidate = normalize_extracted(item, index, default_year)
        if candidate is not None:
            candidates.append(candidate)
    return require_candidates(candidates, source="document")


def normalize_parsed(candidates: Iterable[CandidateTransaction]) -> list[CandidateTransaction]:
    """Normalize text-parser output. Raises ExtractionEmptyError when the parser found nothing."""
    normalized = [
        c.model_copy(update={"amount": abs(c.amount), "category": match_category(c.category) if c.category else None})
        for c in candidates
    ]
    return require_candidates(normalized, source="text")


def require_candidates(candidates: list[CandidateTransaction], source: str) -> list[CandidateTransaction]:
    """Surface an empty extraction as an explicit failure instead of an empty batch."""
    if not candidates:
        logger.warning(f"Extraction from {source} produced no transactions")
        raise ExtractionEmptyError(source)
    return candidates
