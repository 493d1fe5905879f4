"""Shared Groq chat-completion plumbing for the LLM-backed agents."""

from statement_pipeline.core.settings import Settings
from statement_pipeline.core.utils import get_logger

logger = get_logger("statement-pipeline.agent")

MAX_PROMPT_LOG_LEN = 300


def _get_color(color: str) -> str:
    try:
        from colorlog.escape_codes import escape_codes as _codes

        return _codes.get(color, "")
    except ImportError:
        return ""


def _truncate(text: str) -> str:
    return text if len(text) <= MAX_PROMPT_LOG_LEN else text[: MAX_PROMPT_LOG_LEN - 3] + "..."


class LLMAgent:
    """Base for agents that talk to a Groq-compatible chat completions client."""

    name = "llm"

    def __init__(self, llm_client: object, settings: Settings) -> None:
        """Initialize the agent with an LLM client and settings."""
        self.llm_client = llm_client
        self.settings = settings

    def complete(self, system_prompt: str, user_prompt: str, temperature: float | None = None) -> str:
        """Send one system+user exchange and return the raw text reply."""
        yellow = _get_color("yellow")
        green = _get_color("green")
        reset = _get_color("reset")
        logger.info(f"{yellow}[{self.name}] PROMPT: {_truncate(user_prompt)}{reset}")
        try:
            completion = self.llm_client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.settings.llm_temperature if temperature is None else temperature,
                max_completion_tokens=self.settings.llm_max_completion_tokens,
                top_p=self.settings.llm_top_p,
                stream=self.settings.llm_stream,
            )
        except Exception as exc:
            msg = f"Groq API call failed: {exc}"
            logger.exception(msg)
            raise RuntimeError(msg) from exc
        raw_output = self._collect_llm_output(completion)
        logger.info(f"{green}[{self.name}] OUTPUT: {_truncate(raw_output)}{reset}")
        return raw_output

    def _collect_llm_output(self, completion: object) -> str:
        """Collect the full output from a streamed or a single-shot completion."""
        if not self.settings.llm_stream:
            return completion.choices[0].message.content or ""
        raw_output = ""
        try:
            for chunk in completion:
                raw_output += chunk.choices[0].delta.content or ""
        except Exception as exc:
            msg = f"Groq streaming error: {exc}"
            logger.exception(msg)
            raise RuntimeError(msg) from exc
        return raw_output
