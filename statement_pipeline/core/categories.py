"""Closed category vocabulary shared by the classifier, the resolver and manual overrides."""

import string

UNCATEGORIZED = "Uncategorized"

CATEGORIES: tuple[str, ...] = (
    "Housing",
    "Food",
    "Transport",
    "Shopping",
    "Utilities",
    "Health",
    "Entertainment",
    "Salary",
    "Cash/ATM",
    "Savings/Investments",
    "Loans",
    "EFT/Transfer",
    UNCATEGORIZED,
)

_BY_FOLDED = {name.casefold(): name for name in CATEGORIES}
_STRIP_CHARS = string.whitespace + "\"'`.,;:!?*"


def match_category(label: object) -> str | None:
    """Return the canonical vocabulary label for ``label``, or None if it is not a member."""
    if not isinstance(label, str):
        return None
    return _BY_FOLDED.get(label.strip(_STRIP_CHARS).casefold())


def coerce_category(label: object) -> str:
    """Map any classifier reply onto the vocabulary, falling back to Uncategorized."""
    return match_category(label) or UNCATEGORIZED
