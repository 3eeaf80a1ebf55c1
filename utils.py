"""
Utility Functions

Contains helpers for timestamps and request body decoding.
"""

import json
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_urlencoded(raw: bytes) -> dict[str, Any]:
    """
    Decode an application/x-www-form-urlencoded body.

    Repeated keys are collected into a list.

    Args:
        raw: Raw request body

    Returns:
        Dict of field names to values
    """
    result: dict[str, Any] = {}
    for key, value in parse_qsl(raw.decode("utf-8"), keep_blank_values=True):
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    return result


def parse_json(raw: bytes) -> Any:
    """
    Decode a JSON body.

    Args:
        raw: Raw request body

    Returns:
        Decoded JSON value, or an empty dict for an empty body

    Raises:
        ValueError: If the body is not valid JSON
    """
    if not raw.strip():
        return {}
    return json.loads(raw)
