"""Explicit validators for tool arguments.

Each validator returns ``Valid(value)`` or ``Invalid(message)``; callers
branch on the type instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

MINIMUM_TOKENS = 1000
DEFAULT_TOKENS = 5000


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    message: str


ValidationResult = Valid[T] | Invalid


@dataclass(frozen=True, slots=True)
class DocsRequest:
    """Normalized arguments of ``get-library-docs``."""

    library_id: str
    tokens: int
    topic: str | None = None


def parse_tokens(raw: object) -> ValidationResult[int | None]:
    """Parse a token budget given as an integer or numeric text.

    ``None`` and blank text mean "not given".
    """
    if raw is None:
        return Valid(None)
    if isinstance(raw, bool):
        return Invalid("tokens must be a number")
    if isinstance(raw, int):
        return Valid(raw)
    if isinstance(raw, float):
        if raw.is_integer():
            return Valid(int(raw))
        return Invalid(f"tokens must be a whole number, got {raw}")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return Valid(None)
        try:
            return Valid(int(text))
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return Invalid(f"tokens must be a number, got {raw!r}")
        if number.is_integer():
            return Valid(int(number))
        return Invalid(f"tokens must be a whole number, got {raw!r}")
    return Invalid(f"tokens must be a number, got {type(raw).__name__}")


def clamp_tokens(tokens: int | None) -> int:
    """Apply the default, then the floor."""
    if tokens is None:
        tokens = DEFAULT_TOKENS
    return max(tokens, MINIMUM_TOKENS)


def validate_library_name(raw: object) -> ValidationResult[str]:
    if not isinstance(raw, str) or not raw.strip():
        return Invalid("libraryName must be a non-empty string")
    return Valid(raw.strip())


def validate_docs_request(
    library_id: object,
    topic: object = None,
    tokens: object = None,
) -> ValidationResult[DocsRequest]:
    if not isinstance(library_id, str) or not library_id.strip():
        return Invalid("libraryId must be a non-empty string")
    if topic is not None and not isinstance(topic, str):
        return Invalid("topic must be a string")

    parsed = parse_tokens(tokens)
    if isinstance(parsed, Invalid):
        return parsed

    return Valid(
        DocsRequest(
            library_id=library_id.strip(),
            tokens=clamp_tokens(parsed.value),
            topic=(topic or "").strip() or None,
        )
    )
