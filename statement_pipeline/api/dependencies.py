"""FastAPI dependencies for DI (settings, persistence, collaborators, pipeline).

Every collaborator the pipeline uses is built here and handed in explicitly, so tests can swap any
of them through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import BackgroundTasks, Depends
from groq import Groq
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from statement_pipeline.agents.base import BaseClassifier, BaseExtractor, BaseInsightWriter
from statement_pipeline.agents.category_agent import CategoryAgent
from statement_pipeline.agents.extraction_agent import ExtractionAgent
from statement_pipeline.agents.insight_agent import InsightAgent
from statement_pipeline.core.db import create_session_factory, get_engine
from statement_pipeline.core.settings import Settings, get_settings
from statement_pipeline.services.aggregation import AggregationEngine
from statement_pipeline.services.pipeline import StatementPipeline
from statement_pipeline.services.repository import PersistenceGateway, SqlAlchemyGateway
from statement_pipeline.services.selection_ledger import VerificationSessionStore
from statement_pipeline.workers.task_queue import BackgroundTasksQueue


@lru_cache
def get_db_engine() -> Engine:
    """Provide the process-wide SQLAlchemy engine."""
    return get_engine()


@lru_cache
def get_session_factory() -> sessionmaker:
    """Provide the session factory bound to the engine."""
    return create_session_factory(get_db_engine())


@lru_cache
def get_session_store() -> VerificationSessionStore:
    """Provide the in-process verification session store."""
    return VerificationSessionStore(ttl_seconds=get_settings().verification_session_ttl_seconds)


def get_gateway() -> PersistenceGateway:
    """Provide a SQLAlchemy-backed persistence gateway."""
    return SqlAlchemyGateway(get_session_factory())


def get_llm_client(settings: Settings = Depends(get_settings)) -> Groq:
    """Provide a Groq client."""
    return Groq(api_key=settings.groq_api_key)


def get_classifier(
    client: Groq = Depends(get_llm_client), settings: Settings = Depends(get_settings)
) -> BaseClassifier:
    """Provide the LLM transaction classifier."""
    return CategoryAgent(client, settings)


def get_extractor(
    client: Groq = Depends(get_llm_client), settings: Settings = Depends(get_settings)
) -> BaseExtractor:
    """Provide the LLM document extractor."""
    return ExtractionAgent(client, settings)


def get_insight_writer(
    client: Groq = Depends(get_llm_client), settings: Settings = Depends(get_settings)
) -> BaseInsightWriter:
    """Provide the LLM insight writer."""
    return InsightAgent(client, settings)


def get_pipeline(
    background_tasks: BackgroundTasks,
    gateway: PersistenceGateway = Depends(get_gateway),
    classifier: BaseClassifier = Depends(get_classifier),
    extractor: BaseExtractor = Depends(get_extractor),
    sessions: VerificationSessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> StatementPipeline:
    """Provide a StatementPipeline wired to the request's collaborators."""
    return StatementPipeline(
        gateway=gateway,
        classifier=classifier,
        extractor=extractor,
        task_queue=BackgroundTasksQueue(background_tasks),
        sessions=sessions,
        classifier_concurrency=settings.classifier_concurrency,
    )


def get_aggregation_engine(
    gateway: PersistenceGateway = Depends(get_gateway), settings: Settings = Depends(get_settings)
) -> AggregationEngine:
    """Provide the read-side aggregation engine."""
    return AggregationEngine(
        gateway,
        trend_months=settings.trend_window_months,
        habit_months=settings.habit_window_months,
        previous_month_limit=settings.previous_month_limit,
    )
