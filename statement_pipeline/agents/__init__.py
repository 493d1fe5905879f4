"""Agents package: collaborator interfaces and their LLM-backed implementations."""

from .base import BaseClassifier, BaseExtractor, BaseInsightWriter  # noqa: F401
from .category_agent import CategoryAgent  # noqa: F401
from .extraction_agent import ExtractionAgent  # noqa: F401
from .insight_agent import InsightAgent  # noqa: F401
