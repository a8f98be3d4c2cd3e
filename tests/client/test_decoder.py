"""Tests for lenient response decoding."""

import json

import httpx
import pytest

from syncthing_monitor.client.decoder import (
    NORMALIZATION_STEPS,
    check_status,
    collapse_whitespace,
    convert_single_quotes,
    decode_response,
    empty_result,
    normalize_json,
    parse_lenient,
    quote_bare_keys,
    strip_trailing_commas,
    text_result,
)
from syncthing_monitor.client.errors import HttpError


def make_response(status_code: int = 200, text: str = "") -> httpx.Response:
    """Create a response with a text body."""
    return httpx.Response(status_code, text=text)


class TestNormalizationSteps:
    """Tests for the individual normalization functions."""

    def test_collapse_whitespace(self) -> None:
        """Should replace whitespace runs with a single space."""
        assert collapse_whitespace('{\n  "a":\t1\r\n}') == '{ "a": 1 }'

    def test_quote_bare_keys(self) -> None:
        """Should double-quote unquoted keys."""
        assert quote_bare_keys("{a: 1, b_2: 2}") == '{"a": 1, "b_2": 2}'

    def test_quote_single_quoted_keys(self) -> None:
        """Should turn single-quoted keys into double-quoted ones."""
        assert quote_bare_keys("{'version': 1}") == '{"version": 1}'

    def test_quote_keeps_quoted_keys(self) -> None:
        """Should leave double-quoted keys valid."""
        assert quote_bare_keys('{"a": 1}') == '{"a": 1}'

    def test_convert_single_quotes(self) -> None:
        """Should double-quote single-quoted values."""
        assert convert_single_quotes("{\"a\": 'x'}") == '{"a":"x"}'

    def test_strip_trailing_commas(self) -> None:
        """Should drop commas before closing braces and brackets."""
        assert strip_trailing_commas('{"a": [1, 2, ], }') == '{"a": [1, 2]}'

    def test_pipeline_order(self) -> None:
        """Should run whitespace, keys, quotes, commas in that order."""
        assert NORMALIZATION_STEPS == (
            collapse_whitespace,
            quote_bare_keys,
            convert_single_quotes,
            strip_trailing_commas,
        )

    def test_normalize_json(self) -> None:
        """Should repair a body combining several defects."""
        text = "{\n  version: 'v1.27.0',\n  'os': 'linux',\n}"
        assert json.loads(normalize_json(text)) == {"version": "v1.27.0", "os": "linux"}


class TestParseLenient:
    """Tests for parse_lenient."""

    def test_valid_json(self) -> None:
        """Should parse valid JSON as-is."""
        assert parse_lenient('{"inSyncFiles": 3}') == {"inSyncFiles": 3}

    def test_valid_json_list(self) -> None:
        """Should return non-object JSON unchanged."""
        assert parse_lenient("[1, 2]") == [1, 2]

    def test_empty_body(self) -> None:
        """Should report success for an empty body."""
        assert parse_lenient("") == {"success": True}

    def test_repairs_malformed_json(self) -> None:
        """Should parse a body with bare keys and trailing commas."""
        assert parse_lenient("{version: 'v1.2.3',}") == {"version": "v1.2.3"}

    def test_unrepairable_body(self) -> None:
        """Should fall back to the raw text."""
        assert parse_lenient("pong") == {"text": "pong", "success": True}

    def test_truncated_body(self) -> None:
        """Should not fail on a body cut off mid-read."""
        result = parse_lenient('{"inSyncFiles": 3, "globalFi')
        assert result == text_result('{"inSyncFiles": 3, "globalFi')

    def test_deeply_nested_body(self) -> None:
        """Should fall back to the raw text when nesting exhausts the decoder."""
        text = "[" * 100000
        assert parse_lenient(text) == text_result(text)

    def test_deeply_nested_response(self) -> None:
        """Should not raise from decode_response on a 2xx status."""
        response = make_response(text='{"a":' * 100000)
        assert decode_response(response)["success"] is True

    def test_result_helpers(self) -> None:
        """Should build the fallback results."""
        assert empty_result() == {"success": True}
        assert text_result("x") == {"text": "x", "success": True}


class TestCheckStatus:
    """Tests for check_status."""

    def test_success_passes_through(self) -> None:
        """Should return a 2xx response unchanged."""
        response = make_response(204)
        assert check_status(response) is response

    @pytest.mark.parametrize("status_code", [301, 401, 403, 404, 500])
    def test_non_2xx_raises(self, status_code: int) -> None:
        """Should raise HttpError carrying the status code."""
        with pytest.raises(HttpError) as exc_info:
            check_status(make_response(status_code))
        assert exc_info.value.status_code == status_code


class TestDecodeResponse:
    """Tests for decode_response."""

    def test_decodes_json(self) -> None:
        """Should decode a JSON body."""
        response = make_response(text='{"version": "v1.27.0"}')
        assert decode_response(response) == {"version": "v1.27.0"}

    def test_empty_body(self) -> None:
        """Should report success for an empty body."""
        assert decode_response(make_response()) == {"success": True}

    def test_text_body(self) -> None:
        """Should wrap a non-JSON body."""
        assert decode_response(make_response(text="OK")) == {"text": "OK", "success": True}

    def test_error_status_raises(self) -> None:
        """Should raise before looking at the body."""
        response = make_response(403, text='{"error": "forbidden"}')
        with pytest.raises(HttpError, match="HTTP 403 Forbidden"):
            decode_response(response)

    def test_unread_stream(self) -> None:
        """Should treat an unread streamed body as success."""
        response = httpx.Response(200, stream=httpx.ByteStream(b'{"a": 1}'))
        assert decode_response(response) == {"success": True}
