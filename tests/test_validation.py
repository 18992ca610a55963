"""Unit tests for tool argument validators."""

from __future__ import annotations

import pytest

from context7_mcp.validation import (
    DEFAULT_TOKENS,
    MINIMUM_TOKENS,
    DocsRequest,
    Invalid,
    Valid,
    clamp_tokens,
    parse_tokens,
    validate_docs_request,
    validate_library_name,
)


class TestTokens:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("50", 1000),
            (None, 5000),
            ("20000", 20000),
            (0, 1000),
            (-5, 1000),
            ("-100", 1000),
            (1000, 1000),
            (2500, 2500),
            (" 3000 ", 3000),
            ("", 5000),
            ("1e4", 10000),
            (7000.0, 7000),
        ],
    )
    def test_effective_tokens(self, raw: object, expected: int) -> None:
        result = validate_docs_request("/vercel/next.js", tokens=raw)
        assert isinstance(result, Valid)
        assert result.value.tokens == expected

    def test_default_respects_floor(self) -> None:
        assert DEFAULT_TOKENS >= MINIMUM_TOKENS
        assert clamp_tokens(None) == DEFAULT_TOKENS

    @pytest.mark.parametrize("raw", ["abc", "12.5", 12.5, True, [100]])
    def test_rejects_non_numeric(self, raw: object) -> None:
        assert isinstance(parse_tokens(raw), Invalid)

    def test_parse_keeps_raw_value_before_clamp(self) -> None:
        assert parse_tokens("50") == Valid(50)


class TestLibraryName:
    def test_strips_whitespace(self) -> None:
        assert validate_library_name("  react ") == Valid("react")

    @pytest.mark.parametrize("raw", ["", "   ", None, 42])
    def test_rejects_empty_or_non_string(self, raw: object) -> None:
        assert isinstance(validate_library_name(raw), Invalid)


class TestDocsRequest:
    def test_normalizes_fields(self) -> None:
        result = validate_docs_request(" /mongodb/docs ", topic=" aggregation ", tokens="8000")
        assert result == Valid(DocsRequest(library_id="/mongodb/docs", tokens=8000, topic="aggregation"))

    def test_blank_topic_is_dropped(self) -> None:
        result = validate_docs_request("/mongodb/docs", topic="  ")
        assert isinstance(result, Valid)
        assert result.value.topic is None

    def test_rejects_empty_library_id(self) -> None:
        result = validate_docs_request("")
        assert isinstance(result, Invalid)
        assert "libraryId" in result.message

    def test_rejects_bad_tokens(self) -> None:
        result = validate_docs_request("/mongodb/docs", tokens="lots")
        assert isinstance(result, Invalid)
        assert "tokens" in result.message

    def test_does_not_validate_id_format(self) -> None:
        # Unknown IDs are the backend's call, not a validation failure.
        assert isinstance(validate_docs_request("not-an-id"), Valid)
