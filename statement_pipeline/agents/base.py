"""Abstract collaborator interfaces used by the statement pipeline.

The pipeline never constructs these itself: concrete implementations (LLM-backed or test stubs)
are injected by the caller.
"""

from abc import ABC, abstractmethod

from statement_pipeline.core.models import ExpenseLine, ExtractionResult, HabitSummaryItem


class BaseClassifier(ABC):
    """Single-transaction classifier returning one category label."""

    @abstractmethod
    def classify(self, description: str, amount: float) -> str:
        """Return a category label for one transaction. Any string may come back."""


class BaseExtractor(ABC):
    """Document extraction collaborator."""

    @abstractmethod
    def extract(self, file_ref: str) -> ExtractionResult:
        """Extract statement metadata and transactions from an opaque file reference."""


class BaseInsightWriter(ABC):
    """Produces short natural-language spending insights."""

    @abstractmethod
    def monthly_insight(self, expenses: list[ExpenseLine]) -> str:
        """Summarize last month's largest expenses."""

    @abstractmethod
    def money_personality(self, summary: list[HabitSummaryItem]) -> str:
        """Describe spending habits from a rolling category summary."""
