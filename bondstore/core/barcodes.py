"""Barcode normalisation for inventory items.

Scanners report the same EAN/UPC code in slightly different shapes (a UPC-A
without its leading zero, stray spaces, lower-case Code 39). Items store the
canonical form and lookups try every equivalent alias.
"""

from __future__ import annotations

import re
from typing import Iterable

__all__ = ["normalize_barcode", "barcode_aliases", "normalize_barcode_list"]


_ALPHA_RE = re.compile(r"[A-Za-z]")
_NON_DIGIT_RE = re.compile(r"\D")
_WHITESPACE_RE = re.compile(r"\s+")


def _clean(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.strip())


def normalize_barcode(raw: str | None) -> str | None:
    """Return the canonical form of ``raw`` or ``None`` when it is blank.

    Numeric codes lose their punctuation and 12-digit UPC-A codes are widened to
    EAN-13 with a leading zero. Anything containing letters is upper-cased.
    """

    if raw is None:
        return None
    cleaned = _clean(raw)
    if not cleaned:
        return None
    if not _ALPHA_RE.search(cleaned):
        digits = _NON_DIGIT_RE.sub("", cleaned)
        if digits:
            return "0" + digits if len(digits) == 12 else digits
    return cleaned.upper()


def barcode_aliases(raw: str | None) -> list[str]:
    """All stored forms that should match a scanned ``raw`` value, canonical first."""

    canonical = normalize_barcode(raw)
    if canonical is None:
        return []
    aliases = [canonical]
    cleaned = _clean(raw or "")
    candidates: list[str] = []
    if not _ALPHA_RE.search(cleaned):
        digits = _NON_DIGIT_RE.sub("", cleaned)
        candidates.append(digits)
        if len(digits) == 13 and digits.startswith("0"):
            candidates.append(digits[1:])
    candidates.append(cleaned.upper())
    for candidate in candidates:
        if candidate and candidate not in aliases:
            aliases.append(candidate)
    return aliases


def normalize_barcode_list(values: Iterable[str | None] | None) -> list[str]:
    """Normalise a list of barcodes, dropping blanks and repeats but keeping order."""

    result: list[str] = []
    for value in values or []:
        code = normalize_barcode(value)
        if code and code not in result:
            result.append(code)
    return result
