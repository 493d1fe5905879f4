"""Core package: provides models, database tables, settings, errors and shared utilities."""

from .categories import CATEGORIES, UNCATEGORIZED, coerce_category  # noqa: F401
from .models import CandidateTransaction, ProcessingStatus, TransactionType  # noqa: F401
from .settings import Settings, get_settings  # noqa: F401
from .utils import get_logger  # noqa: F401
