"""Tagging provider contract, prompts, and provider selection."""

from __future__ import annotations

from abc import ABC, abstractmethod

from models import Book

CONCURRENT_POLICY = "concurrent"
SEQUENTIAL_POLICY = "sequential"
POLICIES = (CONCURRENT_POLICY, SEQUENTIAL_POLICY)

PROVIDER_NAMES = ("openai", "claude", "ollama")


_LOCAL_PROMPT_TEMPLATE = (
    "Analyze the following book and return a comma-separated list of 3-5 descriptive tags "
    "(e.g., 'Historical Fiction,War,Coming-of-Age'). "
    "DO NOT include any other text, quotes, or explanations.\n"
    "Title: {title}\n"
    "Author(s): {author} ({author_lf})\n"
    "Additional Authors: {additional_authors}"
)

_HOSTED_PROMPT_TEMPLATE = """Analyze the following book details and determine a concise list of primary, single-word genre or subject tags.
Return ONLY the comma-separated list of tags (e.g., "Programming,InterviewPrep,Dystopian"). DO NOT include any other text, quotes, or formatting.

Title: {title}
Author: {author}
Additional Authors: {additional_authors}"""


class TaggingProvider(ABC):
    """Something that turns one book into raw, comma-separated tag text.

    Implementations raise TaggingError when a single call fails. Splitting the
    raw text into tags is left to the caller.
    """

    name: str = "provider"
    default_policy: str = CONCURRENT_POLICY

    @abstractmethod
    def tag(self, book: Book) -> str:
        """Return the provider's raw tag text for one book."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def build_tag_prompt(book: Book) -> str:
    """Prompt for local models: 3-5 descriptive tags."""
    return _LOCAL_PROMPT_TEMPLATE.format(
        title=book.title,
        author=book.author,
        author_lf=book.author_lf,
        additional_authors=book.additional_authors,
    )


def build_hosted_tag_prompt(book: Book) -> str:
    """Prompt for hosted APIs: single-word genre or subject tags."""
    return _HOSTED_PROMPT_TEMPLATE.format(
        title=book.title,
        author=book.author,
        additional_authors=book.additional_authors,
    )


def get_provider(name: str, model: str | None = None) -> TaggingProvider:
    """Build the provider registered under ``name``.

    Hosted providers raise MissingCredentialError here, before any request is
    made, when their API key is not configured.
    """
    if name == "openai":
        from llm_client import OpenAITaggingProvider  # noqa: PLC0415

        return OpenAITaggingProvider(model=model)
    if name == "claude":
        from anthropic_client import ClaudeTaggingProvider  # noqa: PLC0415

        return ClaudeTaggingProvider(model=model)
    if name == "ollama":
        from ollama_client import OllamaTaggingProvider  # noqa: PLC0415

        return OllamaTaggingProvider(model=model)

    raise ValueError(f"Unknown tagging provider {name!r}; expected one of {', '.join(PROVIDER_NAMES)}")
