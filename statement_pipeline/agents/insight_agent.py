"""InsightAgent: short natural-language insights over aggregated spending."""

from statement_pipeline.agents.base import BaseInsightWriter
from statement_pipeline.agents.llm import LLMAgent
from statement_pipeline.agents.prompts import (
    MONTHLY_INSIGHT_SYSTEM_PROMPT,
    MONTHLY_INSIGHT_USER_TEMPLATE,
    PERSONALITY_SYSTEM_PROMPT,
)
from statement_pipeline.core.models import ExpenseLine, HabitSummaryItem

NO_MONTHLY_DATA = "No data available for last month."
NO_HABIT_DATA = "Not enough data yet to describe your spending habits."


def format_expense_context(expenses: list[ExpenseLine]) -> str:
    """One bullet per expense: ``- Starbucks: R5.40 (Food)``."""
    return "\n".join(f"- {e.description}: R{e.amount:.2f} ({e.category})" for e in expenses)


def format_habit_context(summary: list[HabitSummaryItem]) -> str:
    """One line per category: ``Food: Spent R5000 across 20 transactions.``."""
    return "\n".join(f"{s.category}: Spent R{s.total} across {s.count} transactions." for s in summary)


class InsightAgent(LLMAgent, BaseInsightWriter):
    """Writes spending insights with the LLM."""

    name = "insight"

    def monthly_insight(self, expenses: list[ExpenseLine]) -> str:
        """Two-sentence summary of last month's top expenses."""
        if not expenses:
            return NO_MONTHLY_DATA
        prompt = MONTHLY_INSIGHT_USER_TEMPLATE.format(summary=format_expense_context(expenses))
        return self.complete(MONTHLY_INSIGHT_SYSTEM_PROMPT, prompt).strip()

    def money_personality(self, summary: list[HabitSummaryItem]) -> str:
        """A "money personality" drawn from the rolling habit summary."""
        if not summary:
            return NO_HABIT_DATA
        return self.complete(PERSONALITY_SYSTEM_PROMPT, format_habit_context(summary)).strip()
