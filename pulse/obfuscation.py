"""Reversible encoding for stored blobs.

This only keeps journal data from being readable at a glance (a shared
computer, a database browser left open). It is not encryption: anyone who
knows the format can decode it.

Format: ``enc_v1_`` + reversed(base64(json)).
"""
import base64
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

PREFIX = "enc_v1_"


def encode(data: Any) -> str:
    payload = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    return PREFIX + encoded[::-1]


def decode(value: str | None) -> Any | None:
    """Inverse of :func:`encode`.

    Values without the prefix predate obfuscation and are parsed as plain
    JSON. Returns None for empty or undecodable input.
    """
    if not value:
        return None

    if not value.startswith(PREFIX):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Stored value is neither obfuscated nor JSON; ignoring it")
            return None

    reversed_b64 = value[len(PREFIX):]
    try:
        payload = base64.b64decode(reversed_b64[::-1], validate=True).decode("utf-8")
        return json.loads(payload)
    except ValueError as e:
        logger.warning("Failed to decode stored value: %s", e)
        return None


def is_obfuscated(value: str | None) -> bool:
    return bool(value) and value.startswith(PREFIX)
