"""Canonical forms for matching phone numbers and external identifiers.

Both helpers are total: they never raise, they only return a value or
``None`` for absent input.
"""

from __future__ import annotations

import re

_NON_DIGIT = re.compile(r"\D")
_EXTERNAL_ID_NOISE = re.compile(r"[\s.\-/]")


def normalize_phone(raw: str | None) -> str | None:
    """Strip one leading ``+`` and every non-digit.

    No country-code validation is done, so the result is not guaranteed
    to be dialable.

    >>> normalize_phone("+55 11 91234-5678")
    '5511912345678'
    """
    if not raw:
        return None
    text = str(raw).strip()
    if text.startswith("+"):
        text = text[1:]
    digits = _NON_DIGIT.sub("", text)
    return digits or None


def normalize_external_id(raw: str | None) -> str | None:
    """Remove whitespace, dots, dashes and slashes from a source identifier.

    Used as a matching key only.

    >>> normalize_external_id("123.456-7")
    '1234567'
    """
    if raw is None:
        return None
    key = _EXTERNAL_ID_NOISE.sub("", str(raw))
    return key or None
