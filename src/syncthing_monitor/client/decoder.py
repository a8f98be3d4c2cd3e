"""Lenient decoding of Syncthing REST responses.

This module provides:
- check_status: Reject non-2xx responses with HttpError
- decode_response: Best-effort JSON decoding that never fails on bad bodies
- A small normalization pipeline for malformed JSON, one function per step

A truncated or malformed body (e.g. a connection reset mid-read) must never
crash the poller, so every parse failure degrades to a fallback value.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from typing import Any

import httpx

from syncthing_monitor.client.errors import HttpError

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_BARE_KEY_RE = re.compile(r"(?P<prefix>[{,]\s*)['\"]?(?P<key>[A-Za-z0-9_]+)['\"]?\s*:")
_SINGLE_QUOTED_VALUE_RE = re.compile(r":\s*'(?P<value>[^']*)'")
_TRAILING_COMMA_RE = re.compile(r",\s*(?P<close>[}\]])")


def empty_result() -> dict[str, Any]:
    """Result for a successful response without a body."""
    return {"success": True}


def text_result(text: str) -> dict[str, Any]:
    """Result for a successful response whose body is not JSON."""
    return {"text": text, "success": True}


def collapse_whitespace(text: str) -> str:
    """Replace every run of whitespace with a single space."""
    return _WHITESPACE_RE.sub(" ", text)


def quote_bare_keys(text: str) -> str:
    """Quote property names that are unquoted or single-quoted.

    Example: ``{a: 1, 'b': 2}`` becomes ``{"a": 1, "b": 2}``.
    """
    return _BARE_KEY_RE.sub(r'\g<prefix>"\g<key>":', text)


def convert_single_quotes(text: str) -> str:
    """Turn single-quoted string values into double-quoted ones."""
    return _SINGLE_QUOTED_VALUE_RE.sub(r':"\g<value>"', text)


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before a closing brace or bracket."""
    return _TRAILING_COMMA_RE.sub(r"\g<close>", text)


NORMALIZATION_STEPS: tuple[Callable[[str], str], ...] = (
    collapse_whitespace,
    quote_bare_keys,
    convert_single_quotes,
    strip_trailing_commas,
)


def normalize_json(text: str) -> str:
    """Run the full normalization pipeline over a malformed JSON body."""
    for step in NORMALIZATION_STEPS:
        text = step(text)
    return text


def parse_lenient(text: str) -> Any:
    """Parse a JSON body, repairing it if needed.

    Args:
        text: Raw response body.

    Returns:
        The parsed value, or a text fallback if the body cannot be repaired.
    """
    if not text:
        return empty_result()

    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        pass

    try:
        return json.loads(normalize_json(text))
    except (json.JSONDecodeError, RecursionError) as e:
        logger.debug("Could not decode response body (%s): %.100r", e, text)
        return text_result(text)


def check_status(response: httpx.Response) -> httpx.Response:
    """Raise HttpError if the response status is not 2xx."""
    if not response.is_success:
        raise HttpError(response.status_code, response.reason_phrase)
    return response


def decode_response(response: httpx.Response) -> Any:
    """Decode a Syncthing API response.

    Args:
        response: HTTP response from the daemon.

    Returns:
        The decoded body, ``{"success": True}`` for an empty body, or
        ``{"text": ..., "success": True}`` when the body is not JSON.

    Raises:
        HttpError: If the status is not 2xx. The body is not decoded.
    """
    check_status(response)

    try:
        text = response.text
    except httpx.ResponseNotRead:
        logger.debug("Response body was not read, assuming success")
        return empty_result()

    return parse_lenient(text)
