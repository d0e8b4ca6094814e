"""Thin wrapper around the Anthropic Messages API, plus the Claude tagging provider."""

from __future__ import annotations

import logging
import os

import anthropic

from exceptions import MissingCredentialError, TaggingError
from models import Book
from tagging import SEQUENTIAL_POLICY, TaggingProvider, build_hosted_tag_prompt

CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-3-5-haiku-latest")

LOGGER = logging.getLogger(__name__)


def claude_chat(
    client: anthropic.Anthropic,
    prompt: str,
    model: str = CLAUDE_MODEL,
    max_tokens: int = 128,
) -> str:
    """Call the Claude API and return the assistant reply as a string.

    Args:
        client: Configured Anthropic client.
        prompt: Single user-turn prompt.
        model: Claude model name.
        max_tokens: Hard cap on output tokens (a tag list is short).
    """
    LOGGER.debug("Calling Claude model=%s max_tokens=%s", model, max_tokens)
    response = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
    )
    if not response.content:
        return ""
    return response.content[0].text


class ClaudeTaggingProvider(TaggingProvider):
    """Hosted provider backed by Claude."""

    name = "claude"
    default_policy = SEQUENTIAL_POLICY

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise MissingCredentialError("ANTHROPIC_API_KEY environment variable is required")

        self.model = model or CLAUDE_MODEL
        self.client = anthropic.Anthropic(api_key=api_key)

    def tag(self, book: Book) -> str:
        try:
            return claude_chat(self.client, build_hosted_tag_prompt(book), model=self.model)
        except anthropic.AnthropicError as exc:
            raise TaggingError(f"Claude request failed for book '{book.title}': {exc}") from exc
