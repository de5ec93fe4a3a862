"""Rule-based sentiment and context of brand mentions.

For each brand the sentence that first names it is scored with keyword
heuristics:

  - positive / negative words count 1, brand-anchored phrases count 2
    ("choose {brand}", "avoid {brand}")
  - a negated recommendation ("not recommend", "never the best") is negative
  - confidence = min(0.9, 0.2 * winning score), neutral is 0.5

The mention context is the first matching family: recommendation,
comparison, example, otherwise a plain mention.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class MentionContext(str, Enum):
    RECOMMENDATION = "recommendation"
    COMPARISON = "comparison"
    EXAMPLE = "example"
    MENTION = "mention"


# ---------------------------------------------------------------------------
# Word lists
# ---------------------------------------------------------------------------

_POSITIVE_WORDS = (
    "recommend", "excellent", "best", "great", "outstanding", "superior",
    "top", "leading", "preferred", "ideal", "perfect", "amazing",
    "love", "fantastic", "wonderful", "impressive", "innovative",
    "should use", "highly rated", "popular choice", "go-to solution",
)  # fmt: skip

_NEGATIVE_WORDS = (
    "avoid", "terrible", "bad", "poor", "worst", "disappointing",
    "problematic", "issues", "concerns", "limitations", "drawbacks",
    "outdated", "deprecated", "discontinued", "not recommend",
    "stay away", "skip", "pass on",
)  # fmt: skip

_POSITIVE_PHRASES = (
    "{b} is excellent", "{b} offers", "{b} provides", "choose {b}",
    "use {b}", "try {b}", "{b} stands out", "{b} excels",
)  # fmt: skip

_NEGATIVE_PHRASES = (
    "avoid {b}", "{b} is bad", "{b} has issues", "problems with {b}",
    "{b} lacks", "not {b}", "instead of {b}",
)  # fmt: skip

_NEGATION_RE = re.compile(r"\b(?:not|never|no)\s+\w*\s*(?:recommend|suggest|good|great|excellent|best)|n't\s+recommend")

_CONTEXT_PATTERNS: tuple[tuple[MentionContext, tuple[str, ...]], ...] = (
    (
        MentionContext.RECOMMENDATION,
        ("recommend", "suggest", "should use", "try", "choose", "go with", "opt for", "pick", "select",
         "best option", "top choice", "ideal solution"),
    ),
    (
        MentionContext.COMPARISON,
        ("vs", "versus", "compared to", "compare", "against", "better than", "worse than", "similar to",
         "alternative to", "instead of", "rather than"),
    ),
    (
        MentionContext.EXAMPLE,
        ("for example", "such as", "e.g.", "i.e.", "including", "examples include", "among others",
         "to name a few"),
    ),
)  # fmt: skip

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+(?:\s|$)")

MIN_NEUTRAL_CONFIDENCE = 0.4
STRONG_CONFIDENCE = 0.6


@dataclass(frozen=True)
class BrandSentiment:
    brand: str
    sentiment: Sentiment
    confidence: float
    context: MentionContext
    reasoning: str

    def to_dict(self) -> dict:
        return {
            "brand": self.brand,
            "sentiment": self.sentiment.value,
            "confidence": self.confidence,
            "context": self.context.value,
            "reasoning": self.reasoning,
        }


@dataclass
class Positioning:
    """Where the organization and its competitors stand in one answer."""

    org_advantages: list[str] = field(default_factory=list)
    org_weaknesses: list[str] = field(default_factory=list)
    competitor_strengths: list[dict] = field(default_factory=list)
    competitor_weaknesses: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "org_advantages": list(self.org_advantages),
            "org_weaknesses": list(self.org_weaknesses),
            "competitor_strengths": list(self.competitor_strengths),
            "competitor_weaknesses": list(self.competitor_weaknesses),
        }


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def _has_term(text: str, term: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text) is not None


def _mention_sentence(brand: str, answer_text: str) -> str:
    brand_lower = brand.lower()
    for sentence in _SENTENCE_SPLIT_RE.split(answer_text or ""):
        if _has_term(sentence.lower(), brand_lower):
            return sentence.strip()
    return ""


def _polarity(sentence: str, brand: str) -> tuple[Sentiment, float, str]:
    text = sentence.lower()
    b = brand.lower()

    if _NEGATION_RE.search(text):
        return Sentiment.NEGATIVE, STRONG_CONFIDENCE, "negated recommendation"

    positive = sum(1 for w in _POSITIVE_WORDS if _has_term(text, w))
    positive += sum(2 for p in _POSITIVE_PHRASES if _has_term(text, p.format(b=b)))
    negative = sum(1 for w in _NEGATIVE_WORDS if _has_term(text, w))
    negative += sum(2 for p in _NEGATIVE_PHRASES if _has_term(text, p.format(b=b)))

    if positive > negative:
        return Sentiment.POSITIVE, min(0.9, round(positive * 0.2, 2)), f"positive={positive} negative={negative}"
    if negative > positive:
        return Sentiment.NEGATIVE, min(0.9, round(negative * 0.2, 2)), f"negative={negative} positive={positive}"
    return Sentiment.NEUTRAL, 0.5, f"balanced positive={positive} negative={negative}"


def _context(sentence: str) -> MentionContext:
    text = sentence.lower()
    for context, patterns in _CONTEXT_PATTERNS:
        if any(_has_term(text, p) for p in patterns):
            return context
    return MentionContext.MENTION


def analyze_brand_sentiment(brand: str, answer_text: str) -> BrandSentiment:
    """Sentiment and context of the first sentence that names ``brand``."""
    sentence = _mention_sentence(brand, answer_text)
    if not sentence:
        return BrandSentiment(brand, Sentiment.NEUTRAL, 0.5, MentionContext.MENTION, "not located in answer")
    polarity, confidence, reasoning = _polarity(sentence, brand)
    return BrandSentiment(brand, polarity, confidence, _context(sentence), reasoning)


def filter_by_sentiment(sentiments: list[BrandSentiment], include_neutral: bool = True) -> list[BrandSentiment]:
    """Keep positive mentions, confident neutral ones, and negative ones made in comparison."""
    kept = []
    for s in sentiments:
        if s.sentiment == Sentiment.POSITIVE:
            kept.append(s)
        elif s.sentiment == Sentiment.NEUTRAL and include_neutral and s.confidence >= MIN_NEUTRAL_CONFIDENCE:
            kept.append(s)
        elif s.sentiment == Sentiment.NEGATIVE and s.context == MentionContext.COMPARISON:
            kept.append(s)
    return kept


def competitive_positioning(org_brands: list[str], sentiments: list[BrandSentiment]) -> Positioning:
    own = {b.casefold() for b in org_brands}
    result = Positioning()
    for s in sentiments:
        if s.brand.casefold() in own:
            if s.sentiment == Sentiment.POSITIVE:
                result.org_advantages.append(s.reasoning)
            elif s.sentiment == Sentiment.NEGATIVE:
                result.org_weaknesses.append(s.reasoning)
            continue
        if s.confidence <= STRONG_CONFIDENCE:
            continue
        if s.sentiment == Sentiment.POSITIVE:
            result.competitor_strengths.append({"brand": s.brand, "strength": s.reasoning})
        elif s.sentiment == Sentiment.NEGATIVE:
            result.competitor_weaknesses.append({"brand": s.brand, "weakness": s.reasoning})
    return result
