"""ExtractionAgent: LLM-based document extraction of statement transactions.

The file reference is resolved to text by an injected loader, truncated, and sent to the LLM with
a JSON-only extraction prompt. Both a bare JSON array of transactions and the full
``{"metadata": ..., "transactions": [...]}`` envelope are accepted.
"""

import json
import re
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from statement_pipeline.agents.base import BaseExtractor
from statement_pipeline.agents.llm import LLMAgent, logger
from statement_pipeline.agents.prompts import EXTRACTION_SYSTEM_PROMPT
from statement_pipeline.core.errors import ExtractionFailedError
from statement_pipeline.core.models import ExtractionResult
from statement_pipeline.core.settings import Settings

FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def read_statement_text(file_ref: str) -> str:
    """Default loader: treat the file reference as a local text file path."""
    return Path(file_ref).read_text(encoding="utf-8", errors="ignore")


def parse_extraction_output(raw_output: str) -> ExtractionResult:
    """Parse the LLM reply (markdown fences tolerated) into an ExtractionResult."""
    clean = FENCE_RE.sub("", raw_output).strip()
    try:
        data = json.loads(clean)
    except json.JSONDecodeError:
        match = re.search(r"(\{.*\}|\[.*\])", clean, re.DOTALL)
        if not match:
            msg = "Extraction output contained no JSON"
            raise ExtractionFailedError(msg) from None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            msg = f"Failed to parse extraction JSON: {exc}"
            raise ExtractionFailedError(msg) from exc
    if isinstance(data, list):
        data = {"transactions": data}
    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as exc:
        msg = f"Extraction JSON has an unexpected shape: {exc}"
        raise ExtractionFailedError(msg) from exc


class ExtractionAgent(LLMAgent, BaseExtractor):
    """Extracts transactions from a statement document via the LLM."""

    name = "extractor"

    def __init__(
        self,
        llm_client: object,
        settings: Settings,
        loader: Callable[[str], str] = read_statement_text,
    ) -> None:
        """Initialize the agent with an LLM client, settings and a file-reference loader."""
        super().__init__(llm_client, settings)
        self.loader = loader

    def extract(self, file_ref: str) -> ExtractionResult:
        """Extract metadata and transactions from the referenced document."""
        try:
            text = self.loader(file_ref)
        except OSError as exc:
            msg = f"Could not read statement document {file_ref!r}: {exc}"
            logger.exception(msg)
            raise ExtractionFailedError(msg) from exc
        logger.info(f"Extracting from {file_ref!r} ({len(text)} chars)")
        try:
            raw_output = self.complete(
                EXTRACTION_SYSTEM_PROMPT, text[: self.settings.extraction_max_chars], temperature=0
            )
        except RuntimeError as exc:
            raise ExtractionFailedError(str(exc)) from exc
        return parse_extraction_output(raw_output)
