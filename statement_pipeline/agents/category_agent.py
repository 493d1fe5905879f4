"""CategoryAgent: single-transaction classification through an LLM.

The raw reply is returned as-is; mapping it onto the category vocabulary (and falling back to
"Uncategorized") is the category resolver's job, not the agent's.
"""

from statement_pipeline.agents.base import BaseClassifier
from statement_pipeline.agents.llm import LLMAgent
from statement_pipeline.agents.prompts import CATEGORY_LIST, CLASSIFIER_SYSTEM_PROMPT, CLASSIFIER_USER_TEMPLATE


class CategoryAgent(LLMAgent, BaseClassifier):
    """Classifies one transaction description into the category vocabulary."""

    name = "classifier"

    def classify(self, description: str, amount: float) -> str:
        """Ask the LLM for exactly one category label."""
        prompt = CLASSIFIER_USER_TEMPLATE.format(description=description, amount=amount, categories=CATEGORY_LIST)
        return self.complete(CLASSIFIER_SYSTEM_PROMPT, prompt).strip()
