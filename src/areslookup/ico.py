"""Normalisation of Czech company identification numbers (IČO)."""

from __future__ import annotations

import re

from .errors import ValidationError

_WHITESPACE = re.compile(r"\s+")
_ICO_PATTERN = re.compile(r"[0-9]{8}")


def normalize_ico(raw: str) -> str:
    """Return the canonical 8-digit form of *raw*.

    Whitespace is removed and the value is re-padded with leading zeros, so
    ``"123"``, ``" 123 "`` and ``"00000123"`` all become ``"00000123"``.
    """

    ico = _WHITESPACE.sub("", raw).lstrip("0").rjust(8, "0")
    if not _ICO_PATTERN.fullmatch(ico):
        raise ValidationError(
            f"Invalid IČO '{raw}': an IČO must consist of 8 digits.",
            subject=raw,
        )
    return ico


__all__ = ["normalize_ico"]
