"""OpenAI GPT-based tagging provider."""

from __future__ import annotations

import logging
import os

from openai import OpenAI, OpenAIError

from exceptions import MissingCredentialError, TaggingError
from models import Book
from tagging import SEQUENTIAL_POLICY, TaggingProvider, build_hosted_tag_prompt

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.1"))
MAX_COMPLETION_TOKENS = 128

LOGGER = logging.getLogger(__name__)


class OpenAITaggingProvider(TaggingProvider):
    """Hosted provider backed by the OpenAI chat completions API."""

    name = "openai"
    default_policy = SEQUENTIAL_POLICY

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise MissingCredentialError("OPENAI_API_KEY environment variable is required")

        self.model = model or OPENAI_MODEL
        self.client = OpenAI(api_key=api_key)

    def tag(self, book: Book) -> str:
        LOGGER.debug("Tagging with OpenAI model=%s: %s", self.model, book.title)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=OPENAI_TEMPERATURE,
                max_completion_tokens=MAX_COMPLETION_TOKENS,
                messages=[{"role": "user", "content": build_hosted_tag_prompt(book)}],
            )
        except OpenAIError as exc:
            raise TaggingError(f"OpenAI request failed for book '{book.title}': {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise TaggingError(f"Unexpected OpenAI response shape for book '{book.title}'") from exc

        # A response with no text yields no tags rather than a failure.
        return content or ""
