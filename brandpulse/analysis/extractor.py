"""Brand/name extraction from raw LLM answers.

Priority order:
  1. Embedded ``{"brands": [...]}`` object that providers are asked to append.
  2. Capitalized-word patterns over the answer text (fallback).

The outcome of step 1 is an explicit ``ParseResult``: ``Ok(names)`` or
``Fallback(reason)``. The pipeline records which branch was taken, so a
silent fallback is still visible in execution metadata and metrics.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Union

from brandpulse.analysis.lexicon import Lexicon, get_lexicon

logger = logging.getLogger(__name__)

_BRANDS_JSON_RE = re.compile(r'\{[^{}]*"brands"[^{}]*\}', re.DOTALL)
_FENCE_RE = re.compile(r"```(?:json)?\s*(\{[^{}]*\"brands\"[^{}]*\})\s*```", re.DOTALL)

_TWO_WORD_RE = re.compile(r"\b[A-Z][A-Za-z0-9]+ [A-Z][A-Za-z0-9]+\b")
_SINGLE_WORD_RE = re.compile(r"\b[A-Z][A-Za-z0-9]{2,}\b")


# ---------------------------------------------------------------------------
# Parse result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok:
    names: list[str]


@dataclass(frozen=True)
class Fallback:
    reason: str  # empty_text | no_json | malformed_json | missing_brands | empty_brands


ParseResult = Union[Ok, Fallback]


@dataclass
class Extraction:
    """Candidate names plus how they were obtained."""

    names: list[str] = field(default_factory=list)
    parse: ParseResult = field(default_factory=lambda: Fallback("empty_text"))

    @property
    def method(self) -> str:
        return "json" if isinstance(self.parse, Ok) else "pattern"

    @property
    def fallback_reason(self) -> str | None:
        return self.parse.reason if isinstance(self.parse, Fallback) else None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _dedupe(names: list[str]) -> list[str]:
    """Case-insensitive dedupe, keeping the first spelling and its position."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        key = name.casefold()
        if key not in seen:
            seen.add(key)
            result.append(name)
    return result


def parse_embedded_brands(text: str) -> ParseResult:
    """Find and parse the trailing ``{"brands": [...]}`` object in an answer."""
    if not text or not text.strip():
        return Fallback("empty_text")

    matches = list(_BRANDS_JSON_RE.finditer(text))
    if not matches:
        return Fallback("no_json")

    # Providers append the object after the answer; the last one wins
    try:
        payload = json.loads(matches[-1].group(0))
    except json.JSONDecodeError:
        return Fallback("malformed_json")

    brands = payload.get("brands") if isinstance(payload, dict) else None
    if not isinstance(brands, list):
        return Fallback("missing_brands")

    names = [b.strip() for b in brands if isinstance(b, str) and b.strip()]
    if brands and not names:
        return Fallback("empty_brands")
    return Ok(_dedupe(names))


def strip_embedded_json(text: str) -> str:
    """Remove the appended brands object (and its code fence) from an answer."""
    if not text:
        return ""
    cleaned = _FENCE_RE.sub("", text)
    cleaned = _BRANDS_JSON_RE.sub("", cleaned)
    return cleaned.strip()


def extract_by_pattern(text: str, lexicon: Lexicon | None = None) -> list[str]:
    """Capitalized-word fallback extraction, ordered by first occurrence."""
    if not text:
        return []
    lex = lexicon or get_lexicon()
    common = lex.common_capitalized_words

    found: list[tuple[int, int, str]] = []
    for m in _TWO_WORD_RE.finditer(text):
        first, second = m.group(0).split(" ", 1)
        if first in common or second in common:
            continue
        found.append((m.start(), 0, m.group(0)))
    for m in _SINGLE_WORD_RE.finditer(text):
        if m.group(0) in common:
            continue
        found.append((m.start(), 1, m.group(0)))

    found.sort(key=lambda item: (item[0], item[1]))
    return _dedupe([name for _, _, name in found])


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def extract(text: str, lexicon: Lexicon | None = None) -> Extraction:
    """Turn answer text into an ordered, de-duplicated list of candidate names."""
    if not text or not text.strip():
        return Extraction(names=[], parse=Fallback("empty_text"))

    parsed = parse_embedded_brands(text)
    if isinstance(parsed, Ok):
        return Extraction(names=list(parsed.names), parse=parsed)

    logger.debug("Embedded brands JSON unavailable (%s), using pattern extraction", parsed.reason)
    names = extract_by_pattern(strip_embedded_json(text), lexicon)
    return Extraction(names=names, parse=parsed)
