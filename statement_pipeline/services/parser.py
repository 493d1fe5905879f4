"""Line-based heuristic parser for pasted bank statement text.

Each non-blank line that carries at least one monetary-looking token becomes one candidate
transaction. The last monetary token on the line is taken as the amount, since statement lines
put the amount after the description and earlier numbers tend to be dates or references.
Lines whose amount cannot be parsed or is zero are dropped without error.
"""

import datetime as dt
import re

from statement_pipeline.core.models import CandidateTransaction, TransactionType
from statement_pipeline.core.utils import get_logger, is_storable_amount

logger = get_logger("statement-pipeline.parser")

UNKNOWN_DESCRIPTION = "Unknown Transaction"
INCOME_KEYWORDS = ("deposit", "salary", "credit")
CURRENCY_MARKERS = "R$€£"

MONEY_RE = re.compile(rf"[-+]?[{re.escape(CURRENCY_MARKERS)}]?\d[\d,]*(?:\.\d{{1,2}})?")
TEXT_DATE_RE = re.compile(r"\b([A-Za-z]{3})\s+(\d{1,2})\b")
NUMERIC_DATE_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})\b")
LEADING_TEXT_DATE_RE = re.compile(r"^[A-Za-z]{3}\s+\d{1,2}\b")
LEADING_NUMERIC_DATE_RE = re.compile(r"^\d{1,2}[/-]\d{1,2}\b")

MONTH_ABBREVIATIONS = {
    name: index
    for index, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"), start=1
    )
}


def _safe_date(year: int, month: int, day: int) -> dt.date | None:
    try:
        return dt.date(year, month, day)
    except ValueError:
        return None


def extract_date(line: str, year: int) -> dt.date | None:
    """Find a "Nov 12" style date, else an "11/12" or "11-12" month/day date, in ``year``."""
    for match in TEXT_DATE_RE.finditer(line):
        month = MONTH_ABBREVIATIONS.get(match.group(1).lower())
        if month is None:
            continue
        found = _safe_date(year, month, int(match.group(2)))
        if found:
            return found
    for match in NUMERIC_DATE_RE.finditer(line):
        found = _safe_date(year, int(match.group(1)), int(match.group(2)))
        if found:
            return found
    return None


def parse_amount(token: str) -> float | None:
    """Parse a money token, or None when it is not a finite amount that fits the transactions table."""
    cleaned = token.replace(",", "")
    for marker in CURRENCY_MARKERS:
        cleaned = cleaned.replace(marker, "")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if is_storable_amount(value) else None


def classify_type(token: str, line: str) -> TransactionType:
    """Expense unless the amount carries an explicit plus sign or the line reads like income."""
    lowered = line.lower()
    if "+" in token or any(keyword in lowered for keyword in INCOME_KEYWORDS):
        return TransactionType.INCOME
    return TransactionType.EXPENSE


def derive_description(line: str, money: re.Match) -> str:
    """Remove the amount token and a leading date from the line."""
    desc = (line[: money.start()] + line[money.end() :]).strip()
    desc = LEADING_TEXT_DATE_RE.sub("", desc).strip()
    desc = LEADING_NUMERIC_DATE_RE.sub("", desc).strip()
    return desc or UNKNOWN_DESCRIPTION


def parse_line(line: str, year: int, index: int) -> CandidateTransaction | None:
    """Parse one statement line, or return None when it is not a transaction line."""
    clean_line = line.strip()
    if not clean_line:
        return None
    matches = list(MONEY_RE.finditer(clean_line))
    if not matches:
        return None
    money = matches[-1]
    amount = parse_amount(money.group(0))
    if amount is None or amount == 0:
        logger.debug(f"Dropping line {index}: unusable amount {money.group(0)!r}")
        return None
    date = extract_date(clean_line, year) or dt.date(year, 1, 1)
    return CandidateTransaction(
        id=f"temp-{index}",
        date=date,
        description=derive_description(clean_line, money),
        amount=abs(amount),
        type=classify_type(money.group(0), clean_line),
        selected=True,
    )


def parse_bank_text(raw_text: str, year: int) -> list[CandidateTransaction]:
    """Turn a pasted statement into candidate transactions, in input line order."""
    results = []
    for index, line in enumerate(raw_text.splitlines()):
        candidate = parse_line(line, year, index)
        if candidate is not None:
            results.append(candidate)
    logger.info(f"Parsed {len(results)} candidate transactions from {len(raw_text.splitlines())} lines")
    return results
