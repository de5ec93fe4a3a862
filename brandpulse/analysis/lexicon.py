"""Swappable word lists used by extraction and classification.

The defaults live in ``brandpulse.data.lexicon``. A deployment can replace or
extend any list with a JSON file:

    {
        "extend": true,
        "generic_terms": ["webinar"],
        "known_brands": ["zendesk"]
    }

With ``"extend": true`` the file's entries are added to the defaults,
otherwise each list present in the file replaces its default.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from brandpulse.analysis.text import normalize_name
from brandpulse.data import lexicon as defaults

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("common_capitalized_words", "generic_terms", "noise_phrases", "known_brands", "corporate_suffixes")


@dataclass(frozen=True)
class Lexicon:
    common_capitalized_words: frozenset[str] = field(default_factory=frozenset)
    generic_terms: frozenset[str] = field(default_factory=frozenset)
    noise_phrases: tuple[str, ...] = ()
    known_brands: frozenset[str] = field(default_factory=frozenset)
    structural_patterns: tuple[tuple[str, re.Pattern[str]], ...] = ()
    corporate_suffixes: tuple[str, ...] = ()

    @classmethod
    def from_lists(
        cls,
        *,
        common_capitalized_words: list[str],
        generic_terms: list[str],
        noise_phrases: list[str],
        known_brands: list[str],
        structural_patterns: dict[str, str],
        corporate_suffixes: list[str],
    ) -> Lexicon:
        return cls(
            # Kept case-sensitive: the extractor filters raw matches
            common_capitalized_words=frozenset(w.strip() for w in common_capitalized_words if w.strip()),
            generic_terms=frozenset(normalize_name(t) for t in generic_terms if normalize_name(t)),
            noise_phrases=tuple(normalize_name(p) for p in noise_phrases if normalize_name(p)),
            known_brands=frozenset(normalize_name(b) for b in known_brands if normalize_name(b)),
            structural_patterns=tuple((name, re.compile(rx)) for name, rx in structural_patterns.items()),
            corporate_suffixes=tuple(s.lower() for s in corporate_suffixes),
        )


def default_lexicon() -> Lexicon:
    return Lexicon.from_lists(
        common_capitalized_words=defaults.COMMON_CAPITALIZED_WORDS,
        generic_terms=defaults.GENERIC_TERMS,
        noise_phrases=defaults.NOISE_PHRASES,
        known_brands=defaults.KNOWN_BRANDS,
        structural_patterns=defaults.STRUCTURAL_PATTERNS,
        corporate_suffixes=defaults.CORPORATE_SUFFIXES,
    )


def load_lexicon(path: str | None = None) -> Lexicon:
    """Build a lexicon from the defaults, optionally overridden by a JSON file."""
    if not path:
        return default_lexicon()

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    extend = bool(raw.get("extend", False))

    lists: dict[str, list[str]] = {
        "common_capitalized_words": list(defaults.COMMON_CAPITALIZED_WORDS),
        "generic_terms": list(defaults.GENERIC_TERMS),
        "noise_phrases": list(defaults.NOISE_PHRASES),
        "known_brands": list(defaults.KNOWN_BRANDS),
        "corporate_suffixes": list(defaults.CORPORATE_SUFFIXES),
    }
    for key in _LIST_FIELDS:
        if key in raw:
            lists[key] = lists[key] + list(raw[key]) if extend else list(raw[key])

    patterns = dict(defaults.STRUCTURAL_PATTERNS)
    if "structural_patterns" in raw:
        patterns = {**patterns, **raw["structural_patterns"]} if extend else dict(raw["structural_patterns"])

    logger.info("Lexicon loaded from %s (extend=%s)", path, extend)
    return Lexicon.from_lists(structural_patterns=patterns, **lists)


@lru_cache(maxsize=4)
def get_lexicon(path: str = "") -> Lexicon:
    """Process-wide lexicon for a given override path (immutable, safe to share)."""
    return load_lexicon(path or None)
