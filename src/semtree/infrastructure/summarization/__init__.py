"""Text summarizer adapters."""

from semtree.infrastructure.summarization.base import LLMSummarizer, truncate_text
from semtree.infrastructure.summarization.ollama import OllamaSummarizer
from semtree.infrastructure.summarization.openai_compatible import OpenAICompatibleSummarizer

__all__ = ["LLMSummarizer", "OllamaSummarizer", "OpenAICompatibleSummarizer", "truncate_text"]
