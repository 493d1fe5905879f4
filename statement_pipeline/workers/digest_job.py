"""Advisory job that writes a plain-text digest of a committed statement."""

from statement_pipeline.core.categories import UNCATEGORIZED
from statement_pipeline.core.models import TransactionOut
from statement_pipeline.core.utils import get_logger, to_major_units
from statement_pipeline.services.repository import PersistenceGateway

logger = get_logger("statement-pipeline.worker")


def format_digest(transactions: list[TransactionOut]) -> str:
    """One sentence per transaction: ``On 2025-11-02, spent R5.40 at Starbucks for Food.``."""
    return "\n".join(
        f"On {t.date.isoformat()}, spent R{to_major_units(t.amount):.2f} at {t.description} "
        f"for {t.category or UNCATEGORIZED}."
        for t in transactions
    )


def build_statement_digest(gateway: PersistenceGateway, statement_id: str) -> str | None:
    """Store the digest of a statement's transactions; returns None when there is nothing to digest."""
    transactions = gateway.query_transactions(statement_id=statement_id)
    if not transactions:
        logger.info(f"No transactions to digest for statement {statement_id}")
        return None
    digest = format_digest(transactions)
    gateway.save_statement_chunk(statement_id, digest)
    logger.info(f"Stored digest for statement {statement_id} ({len(transactions)} transactions)")
    return digest
