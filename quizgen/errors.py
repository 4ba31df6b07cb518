from __future__ import annotations

import json
from typing import Any, Optional

from quizgen.constants import RAW_SNIPPET_MAX


class GenerationError(Exception):
    """Base for every failure that ends a generation attempt."""

    kind = "generation_error"


class ConstraintError(GenerationError):
    """Bad local input. Raised before any network call."""

    kind = "constraint"


class ProviderError(GenerationError):
    kind = "provider"

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        label = f"Provider error ({status})" if status is not None else "Provider unreachable"
        super().__init__(f"{label}: {message}")


class MalformedOutputError(GenerationError):
    kind = "malformed_output"

    def __init__(self, raw: str, reason: str = "AI returned invalid JSON"):
        self.snippet = (raw or "")[:RAW_SNIPPET_MAX]
        super().__init__(f"{reason}. Response content: {self.snippet}")


class SchemaError(GenerationError):
    kind = "schema"

    def __init__(self, message: str, *, index: Optional[int] = None, item: Any = None):
        self.index = index
        self.item = item
        if index is not None:
            message = f"AI output has unexpected structure at index {index}: {message}. Item: {_dump(item)}"
        super().__init__(message)


class SessionStateError(Exception):
    """A session operation was requested in the wrong state."""


def _dump(value: Any) -> str:
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(value)
    return text[:RAW_SNIPPET_MAX]
