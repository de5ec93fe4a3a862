"""Brand classifier: ordered rule engine over candidate names.

Each candidate is normalized and run through ``RULES`` in order; the first
rule whose predicate matches decides the label and confidence:

  own_brand_exact    -> org_brand   (1.0)
  own_brand          -> org_brand   (0.8, containment)
  excluded           -> discard     (operator exclusion)
  forced_competitor  -> competitor  (0.9, operator override)
  generic_term       -> discard
  invalid_shape      -> discard
  known_brand        -> competitor  (0.9, allowlist or catalog competitor)
  structural_pattern -> competitor  (0.7, CamelCase / domain / software suffix)
  (no rule)          -> discard

Ambiguous candidates are dropped on purpose: precision over recall.
The engine is pure: same inputs, same result.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from brandpulse.analysis.lexicon import Lexicon, get_lexicon
from brandpulse.analysis.text import contains_phrase, normalize_name
from brandpulse.analysis.types import BrandProfile, CatalogBrand, OverlaySnapshot

logger = logging.getLogger(__name__)

MIN_CONTAINMENT_LENGTH = 3
_BRACKETS_QUOTES_RE = re.compile(r"[<>{}\[\]()\"`'‘’“”„‚]")
_HAS_LETTER_RE = re.compile(r"[^\W\d_]", re.UNICODE)


class Label(str, Enum):
    ORG_BRAND = "org_brand"
    COMPETITOR = "competitor"
    DISCARD = "discard"


@dataclass(frozen=True)
class Candidate:
    raw: str  # trimmed original spelling
    normalized: str


@dataclass(frozen=True)
class ClassificationContext:
    """Normalized lookup sets built once per classify() call."""

    own_names: frozenset[str]
    excluded: frozenset[str]
    forced: frozenset[str]
    catalog_competitors: frozenset[str]
    lexicon: Lexicon

    @classmethod
    def build(
        cls,
        profile: BrandProfile,
        catalog: list[CatalogBrand] | None,
        overlay: OverlaySnapshot | None,
        lexicon: Lexicon,
    ) -> ClassificationContext:
        competitors: set[str] = set()
        for entry in catalog or []:
            if not entry.is_org_brand:
                competitors |= entry.normalized_names()
        return cls(
            own_names=profile.normalized(),
            excluded=overlay.excluded() if overlay else frozenset(),
            forced=overlay.forced() if overlay else frozenset(),
            catalog_competitors=frozenset(competitors),
            lexicon=lexicon,
        )


@dataclass(frozen=True)
class Decision:
    name: str
    normalized: str
    label: Label
    rule: str
    confidence: float


@dataclass
class ClassificationResult:
    org_brands: list[str] = field(default_factory=list)
    competitors: list[str] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "org_brands": list(self.org_brands),
            "competitors": list(self.competitors),
            "decisions": [
                {"name": d.name, "label": d.label.value, "rule": d.rule, "confidence": d.confidence}
                for d in self.decisions
            ],
        }


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _compact(value: str) -> str:
    return value.replace(" ", "")


def _is_common_word(c: Candidate, ctx: ClassificationContext) -> bool:
    return any(w.casefold() == c.raw.casefold() for w in ctx.lexicon.common_capitalized_words)


def is_own_brand_exact(c: Candidate, ctx: ClassificationContext) -> bool:
    if c.normalized in ctx.own_names:
        return True
    compact = _compact(c.normalized)
    return any(_compact(own) == compact for own in ctx.own_names)


def is_own_brand(c: Candidate, ctx: ClassificationContext) -> bool:
    """Exact match, or word-boundary containment in either direction.

    Containment never claims a blocklisted word: "Marketing" is not the
    org "Acme Marketing". Only an exact match outranks the blocklist.
    """
    if is_own_brand_exact(c, ctx):
        return True
    if is_generic_term(c, ctx) or _is_common_word(c, ctx):
        return False
    for own in ctx.own_names:
        shorter = own if len(own) <= len(c.normalized) else c.normalized
        if len(shorter) < MIN_CONTAINMENT_LENGTH:
            continue
        if contains_phrase(c.normalized, own) or contains_phrase(own, c.normalized):
            return True
    return False


def is_excluded(c: Candidate, ctx: ClassificationContext) -> bool:
    return c.normalized in ctx.excluded


def is_forced_competitor(c: Candidate, ctx: ClassificationContext) -> bool:
    return c.normalized in ctx.forced


def is_generic_term(c: Candidate, ctx: ClassificationContext) -> bool:
    lex = ctx.lexicon
    if c.normalized in lex.generic_terms:
        return True
    return any(phrase in c.normalized for phrase in lex.noise_phrases)


def has_valid_shape(c: Candidate, ctx: ClassificationContext | None = None) -> bool:
    if not 3 <= len(c.normalized) <= 50:
        return False
    if _compact(c.normalized).isdigit():
        return False
    if _BRACKETS_QUOTES_RE.search(c.raw):
        return False
    return bool(_HAS_LETTER_RE.search(c.raw))


def is_known_brand(c: Candidate, ctx: ClassificationContext) -> bool:
    return c.normalized in ctx.lexicon.known_brands or c.normalized in ctx.catalog_competitors


def matches_structural_pattern(c: Candidate, ctx: ClassificationContext) -> bool:
    return any(rx.search(c.raw) for _, rx in ctx.lexicon.structural_patterns)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[Candidate, ClassificationContext], bool]
    label: Label
    confidence: float = 1.0


RULES: tuple[Rule, ...] = (
    Rule("own_brand_exact", is_own_brand_exact, Label.ORG_BRAND, 1.0),
    Rule("own_brand", is_own_brand, Label.ORG_BRAND, 0.8),
    Rule("excluded", is_excluded, Label.DISCARD, 1.0),
    Rule("forced_competitor", is_forced_competitor, Label.COMPETITOR, 0.9),
    Rule("generic_term", is_generic_term, Label.DISCARD, 1.0),
    Rule("invalid_shape", lambda c, ctx: not has_valid_shape(c, ctx), Label.DISCARD, 1.0),
    Rule("known_brand", is_known_brand, Label.COMPETITOR, 0.9),
    Rule("structural_pattern", matches_structural_pattern, Label.COMPETITOR, 0.7),
)


def classify_candidate(
    name: str,
    ctx: ClassificationContext,
    rules: tuple[Rule, ...] = RULES,
) -> Decision:
    raw = name.strip()
    candidate = Candidate(raw=raw, normalized=normalize_name(raw))
    if not candidate.normalized:
        return Decision(raw, "", Label.DISCARD, "empty", 1.0)

    for rule in rules:
        if rule.predicate(candidate, ctx):
            return Decision(raw, candidate.normalized, rule.label, rule.name, rule.confidence)
    return Decision(raw, candidate.normalized, Label.DISCARD, "unrecognized", 1.0)


def classify(
    candidates: list[str],
    profile: BrandProfile,
    catalog: list[CatalogBrand] | None = None,
    overlay: OverlaySnapshot | None = None,
    lexicon: Lexicon | None = None,
    min_confidence: float = 0.6,
) -> ClassificationResult:
    """Split candidates into org brands and competitors; everything else is dropped."""
    ctx = ClassificationContext.build(profile, catalog, overlay, lexicon or get_lexicon())
    result = ClassificationResult()
    seen_org: set[str] = set()
    seen_comp: set[str] = set()

    for name in candidates:
        if not isinstance(name, str):
            continue
        decision = classify_candidate(name, ctx)
        if decision.label != Label.DISCARD and decision.confidence < min_confidence:
            decision = Decision(decision.name, decision.normalized, Label.DISCARD, "low_confidence", decision.confidence)
        result.decisions.append(decision)

        if decision.label == Label.ORG_BRAND and decision.normalized not in seen_org:
            seen_org.add(decision.normalized)
            result.org_brands.append(decision.name)
        elif decision.label == Label.COMPETITOR and decision.normalized not in seen_comp:
            seen_comp.add(decision.normalized)
            result.competitors.append(decision.name)

    logger.debug(
        "Classified %d candidates: %d org brands, %d competitors",
        len(candidates),
        len(result.org_brands),
        len(result.competitors),
    )
    return result
