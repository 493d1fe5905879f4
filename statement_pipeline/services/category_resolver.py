"""Fill in categories for candidate transactions.

A category already supplied upstream is authoritative and never re-classified. Every other
candidate is classified independently; the calls fan out over a bounded thread pool and any
failure or out-of-vocabulary reply resolves that one candidate to "Uncategorized".
"""

import concurrent.futures

from statement_pipeline.agents.base import BaseClassifier
from statement_pipeline.core.categories import UNCATEGORIZED, coerce_category, match_category
from statement_pipeline.core.errors import InvalidCategoryError
from statement_pipeline.core.models import CandidateTransaction
from statement_pipeline.core.utils import get_logger
from statement_pipeline.services.repository import PersistenceGateway

logger = get_logger("statement-pipeline.resolver")

DEFAULT_CONCURRENCY = 6


def classify_one(classifier: BaseClassifier, candidate: CandidateTransaction) -> str:
    """Classify a single candidate, degrading to Uncategorized on any classifier failure."""
    try:
        reply = classifier.classify(candidate.description, candidate.amount)
    except Exception:
        logger.warning(f"Classifier failed for {candidate.id} ({candidate.description!r})", exc_info=True)
        return UNCATEGORIZED
    category = coerce_category(reply)
    if category == UNCATEGORIZED and match_category(reply) is None:
        logger.warning(f"Classifier reply {reply!r} for {candidate.id} is outside the vocabulary")
    return category


def resolve_categories(
    candidates: list[CandidateTransaction],
    classifier: BaseClassifier,
    max_workers: int = DEFAULT_CONCURRENCY,
) -> list[CandidateTransaction]:
    """Return the candidates, in order, each carrying a vocabulary category."""
    results: list[CandidateTransaction | None] = [None] * len(candidates)
    pending: list[tuple[int, CandidateTransaction]] = []
    for idx, candidate in enumerate(candidates):
        existing = match_category(candidate.category) if candidate.category else None
        if existing is not None:
            results[idx] = candidate.model_copy(update={"category": existing})
        else:
            pending.append((idx, candidate))

    if pending:
        logger.info(f"Classifying {len(pending)} of {len(candidates)} transactions ({max_workers} workers)")
        with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {executor.submit(classify_one, classifier, candidate): idx for idx, candidate in pending}
            for future in concurrent.futures.as_completed(futures):
                idx = futures[future]
                results[idx] = candidates[idx].model_copy(update={"category": future.result()})
    return results


def resolve_category(candidate: CandidateTransaction, classifier: BaseClassifier) -> CandidateTransaction:
    """Resolve the category of one candidate."""
    return resolve_categories([candidate], classifier, max_workers=1)[0]


def override_category(gateway: PersistenceGateway, transaction_id: str, category: str) -> str:
    """Point-update one persisted transaction's category, bypassing the classifier."""
    canonical = match_category(category)
    if canonical is None:
        msg = f"Unknown category: {category!r}"
        raise InvalidCategoryError(msg)
    gateway.update_transaction_category(transaction_id, canonical)
    logger.info(f"Transaction {transaction_id} manually recategorized as {canonical!r}")
    return canonical
