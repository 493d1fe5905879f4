"""Shared fixtures: in-memory database, stub collaborators and an API client with overrides."""

import threading
from collections.abc import Callable, Iterator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from main import app
from statement_pipeline.agents.base import BaseClassifier, BaseExtractor, BaseInsightWriter
from statement_pipeline.api import dependencies
from statement_pipeline.core.db import create_session_factory, get_engine, init_db
from statement_pipeline.core.models import ExpenseLine, ExtractionResult, HabitSummaryItem
from statement_pipeline.services.repository import SqlAlchemyGateway
from statement_pipeline.services.selection_ledger import VerificationSessionStore


class StubClassifier(BaseClassifier):
    """Classifier that answers from a keyword table and records every call."""

    def __init__(self, replies: dict[str, str] | None = None, default: str = "Shopping") -> None:
        """Store the canned replies."""
        self.replies = replies or {}
        self.default = default
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def classify(self, description: str, amount: float) -> str:
        """Return the reply for the first keyword found in the description."""
        with self._lock:
            self.calls.append(description)
        for keyword, reply in self.replies.items():
            if keyword.lower() in description.lower():
                if reply == "<raise>":
                    msg = f"classifier exploded on {description}"
                    raise RuntimeError(msg)
                return reply
        return self.default


class StubExtractor(BaseExtractor):
    """Extractor that returns a fixed result."""

    def __init__(self, result: ExtractionResult) -> None:
        """Store the canned result."""
        self.result = result
        self.file_refs: list[str] = []

    def extract(self, file_ref: str) -> ExtractionResult:
        """Return the canned result."""
        self.file_refs.append(file_ref)
        return self.result


class StubInsightWriter(BaseInsightWriter):
    """Insight writer that echoes the size of its input."""

    def monthly_insight(self, expenses: list[ExpenseLine]) -> str:
        """Describe the number of expenses seen."""
        return f"{len(expenses)} expenses"

    def money_personality(self, summary: list[HabitSummaryItem]) -> str:
        """Describe the number of categories seen."""
        return f"{len(summary)} categories"


class FakeLLMClient:
    """Minimal stand-in for the Groq client's ``chat.completions.create``."""

    def __init__(self, reply: str | Callable[[list[dict]], str]) -> None:
        """Store the canned reply (or a function of the messages)."""
        self.reply = reply
        self.requests: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: object) -> SimpleNamespace:
        self.requests.append(kwargs)
        content = self.reply(kwargs["messages"]) if callable(self.reply) else self.reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def session_factory():  # noqa: ANN201
    """Session factory over a fresh in-memory SQLite database."""
    engine = get_engine("sqlite://")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def gateway(session_factory) -> SqlAlchemyGateway:  # noqa: ANN001
    """SQLAlchemy gateway over the in-memory database."""
    return SqlAlchemyGateway(session_factory)


@pytest.fixture
def file_gateway(tmp_path) -> Iterator[SqlAlchemyGateway]:  # noqa: ANN001
    """Gateway over a file-backed SQLite database, so each thread gets its own connection."""
    engine = get_engine(f"sqlite:///{tmp_path / 'statements.db'}")
    init_db(engine)
    yield SqlAlchemyGateway(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def classifier() -> StubClassifier:
    """Keyword classifier used across the pipeline and API tests."""
    return StubClassifier({"starbucks": "Food", "salary": "Salary", "uber": "Transport", "mystery": "banana"})


@pytest.fixture
def extractor() -> StubExtractor:
    """Extractor returning two transactions, one of them pre-categorized."""
    return StubExtractor(
        ExtractionResult.model_validate(
            {
                "metadata": {"bank": "FNB", "account": "62000000001"},
                "transactions": [
                    {
                        "date": "2025-11-03",
                        "desc": "Woolworths",
                        "amount": -320.5,
                        "type": "EXPENSE",
                        "category": "food",
                    },
                    {"date": "2025-11-25", "desc": "ACME Salary", "amount": 15000, "type": "Income"},
                ],
            }
        )
    )


@pytest.fixture
def client(gateway, classifier, extractor) -> Iterator[TestClient]:  # noqa: ANN001
    """API client with every collaborator overridden."""
    store = VerificationSessionStore()
    app.dependency_overrides[dependencies.get_gateway] = lambda: gateway
    app.dependency_overrides[dependencies.get_classifier] = lambda: classifier
    app.dependency_overrides[dependencies.get_extractor] = lambda: extractor
    app.dependency_overrides[dependencies.get_insight_writer] = lambda: StubInsightWriter()
    app.dependency_overrides[dependencies.get_session_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
