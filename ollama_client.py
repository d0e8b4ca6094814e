"""Local Ollama tagging provider over the /api/generate endpoint."""

from __future__ import annotations

import logging
import os

import requests

from exceptions import TaggingError
from models import Book
from tagging import CONCURRENT_POLICY, TaggingProvider, build_tag_prompt

OLLAMA_API_URL = os.getenv("OLLAMA_API_URL", "http://localhost:11434/api/generate")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3")
REQUEST_TIMEOUT_SECONDS = 120

LOGGER = logging.getLogger(__name__)


class OllamaTaggingProvider(TaggingProvider):
    """Provider for a locally hosted model served by Ollama.

    Sends one non-streaming generate request per book and returns the
    ``response`` field of the JSON body.
    """

    name = "ollama"
    default_policy = CONCURRENT_POLICY

    def __init__(self, model: str | None = None, api_url: str | None = None) -> None:
        self.model = model or OLLAMA_MODEL
        self.api_url = api_url or OLLAMA_API_URL

    def tag(self, book: Book) -> str:
        payload = {
            "model": self.model,
            "prompt": build_tag_prompt(book),
            "stream": False,
        }

        try:
            response = requests.post(self.api_url, json=payload, timeout=REQUEST_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise TaggingError(
                f"Failed to connect to local LLM API at {self.api_url}. "
                f"Ensure Ollama is running and the model '{self.model}' is available: {exc}"
            ) from exc

        if response.status_code != 200:
            raise TaggingError(
                f"LLM API returned non-200 status code {response.status_code}. Response: {response.text}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TaggingError(f"Failed to decode LLM response: {exc}") from exc

        if not isinstance(body, dict):
            raise TaggingError(f"Unexpected LLM response shape: {body}")

        text = body.get("response", "")
        if not isinstance(text, str):
            raise TaggingError(f"Unexpected LLM response field type: {type(text).__name__}")

        LOGGER.debug("Ollama model=%s returned %s chars for %s", self.model, len(text), book.title)
        return text
