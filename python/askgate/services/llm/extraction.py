"""Text extraction from provider responses.

The same logical provider has shipped several wire formats (native
Workers AI, REST via gateway, OpenAI-compatible gateway endpoint). Each
strategy below is a pure function ``data -> str | None`` that returns the
answer text if its shape matches and None otherwise. Adapters list the
strategies that apply to them in priority order; extract_text returns the
first match.

Shapes:
- result_response:   {"result": {"response": "..."}}
- bare_response:     {"response": "..."}
- openai_choices:    {"choices": [{"message": {"content": "..."}}]}
- gemini_candidates: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
"""

from collections.abc import Sequence
from typing import Any

from askgate.errors import ProviderError
from askgate.services.llm.types import ExtractionStrategy

GEMINI_PART_SEPARATOR = "\n\n"


def result_response(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    result = data.get("result")
    if isinstance(result, dict) and isinstance(result.get("response"), str):
        return result["response"]
    return None


def bare_response(data: Any) -> str | None:
    if isinstance(data, dict) and isinstance(data.get("response"), str):
        return data["response"]
    return None


def openai_choices(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    return None


def gemini_candidates(data: Any) -> str | None:
    """Join the non-empty text parts of the first candidate with a blank line."""
    if not isinstance(data, dict):
        return None
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None
    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and part["text"]
    ]
    return GEMINI_PART_SEPARATOR.join(texts)


def extract_text(
    data: Any,
    strategies: Sequence[ExtractionStrategy],
    *,
    provider: str,
) -> str:
    """Apply strategies in order and return the first match.

    Raises:
        ProviderError: If no strategy matches the response shape.
    """
    for strategy in strategies:
        text = strategy(data)
        if text is not None:
            return text

    raise ProviderError(
        f"Unrecognized response format from {provider}",
        details={"tried": [s.__name__ for s in strategies]},
    )
