"""Summary service base: truncation policy shared by every backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_PROMPT = (
    "Summarize the following code or text. Describe the main functions, "
    "classes and methods and what they are for. Keep the important details "
    "but make the text compact and structured."
)
DEFAULT_TRUNCATE_MESSAGE = "\n\n[... text truncated ...]"


def truncate_text(text: str, max_length: int, marker: str) -> str:
    """Cut *text* to *max_length* characters and append *marker* if it was longer."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + marker


class LLMSummarizer(ABC):
    """Summarizes text with an LLM, truncating oversized input first.

    Truncation is decided here and nowhere else, so every caller gets the
    same behavior.
    """

    def __init__(
        self,
        max_input_length: int = 8000,
        truncate_message: str = DEFAULT_TRUNCATE_MESSAGE,
        default_prompt: str = DEFAULT_PROMPT,
    ) -> None:
        if max_input_length < 1:
            raise ValueError("max_input_length must be positive")
        self._max_input_length = max_input_length
        self._truncate_message = truncate_message
        self._default_prompt = default_prompt

    @property
    def max_input_length(self) -> int:
        return self._max_input_length

    def build_prompt(self, text: str, prompt: str | None = None) -> str:
        body = truncate_text(text, self._max_input_length, self._truncate_message)
        return f"{prompt or self._default_prompt}\n\n{body}"

    async def summarize(self, text: str, prompt: str | None = None) -> str:
        full_prompt = self.build_prompt(text, prompt)
        log = logger.bind(input_length=len(text), truncated=len(text) > self._max_input_length)
        log.debug("summarizer.start")
        summary = (await self._complete(full_prompt)).strip()
        log.debug("summarizer.complete", summary_length=len(summary))
        return summary

    @abstractmethod
    async def _complete(self, prompt: str) -> str:
        """Send *prompt* to the model and return its raw answer."""
        ...
