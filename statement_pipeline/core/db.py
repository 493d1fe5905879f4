"""Database tables and engine helpers for the statement pipeline.

A statement exclusively owns its transactions and digest chunks: both relationships cascade on
delete at the ORM level and through ``ON DELETE CASCADE`` foreign keys.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from statement_pipeline.core.models import ProcessingStatus, TransactionType

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class Statement(Base):
    """A monthly bank statement uploaded by a user; aggregate root of its transactions."""

    __tablename__ = "statements"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String, nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    total_income_minor = Column(Integer, nullable=False, default=0)
    total_expenses_minor = Column(Integer, nullable=False, default=0)
    processing_status = Column(
        Enum(ProcessingStatus, name="processing_status"), nullable=False, default=ProcessingStatus.PENDING
    )
    origin_bank = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    raw_text = Column(Text, nullable=True)
    file_ref = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    transactions = relationship("Transaction", back_populates="statement", cascade="all, delete-orphan")
    chunks = relationship("StatementChunk", back_populates="statement", cascade="all, delete-orphan")


class Transaction(Base):
    """A committed transaction. ``amount`` is stored in integer minor units."""

    __tablename__ = "transactions"
    id = Column(String(36), primary_key=True, default=_new_id)
    statement_id = Column(String(36), ForeignKey("statements.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    type = Column(Enum(TransactionType, name="transaction_type"), nullable=False)
    category = Column(String, nullable=True)

    statement = relationship("Statement", back_populates="transactions")


class StatementChunk(Base):
    """Plain-text digest of a committed statement, written by the advisory background job."""

    __tablename__ = "statement_chunks"
    id = Column(Integer, primary_key=True, autoincrement=True)
    statement_id = Column(String(36), ForeignKey("statements.id", ondelete="CASCADE"), nullable=False, index=True)
    chunk_content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    statement = relationship("Statement", back_populates="chunks")


def get_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using the given or configured database URL."""
    if url is None:
        from statement_pipeline.core.settings import get_settings

        url = get_settings().database_url
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise each pooled connection gets its own empty database
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection: object, _record: object) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(engine: Engine) -> sessionmaker:
    """Build a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all pipeline tables that do not exist yet."""
    Base.metadata.create_all(engine)
