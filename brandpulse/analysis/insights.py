"""Brand prominence and competitive insights for one answer.

Prominence (0-1) is the sum of three capped parts:

  frequency  min(0.5, mentions / brands_in_answer)
  position   0.3 * (1 - first_rank / max(10, answer_chars / 100)), >= 0
  density    min(0.2, 100 * mentions / max(100, answer_chars))

``first_rank`` is the 0-based order in which the brand first appears among
all brands of the answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from brandpulse.analysis.sentiment import BrandSentiment, MentionContext, Sentiment
from brandpulse.analysis.text import normalize_name

logger = logging.getLogger(__name__)

MAX_FREQUENCY = 0.5
MAX_POSITION = 0.3
MAX_DENSITY = 0.2
TOP_COMPETITORS = 3
THREAT_MARGIN = 0.2


def brand_prominence(mentions: int, total_brands: int, first_rank: int | None, answer_chars: int) -> float:
    if mentions <= 0:
        return 0.0
    frequency = min(MAX_FREQUENCY, mentions / max(1, total_brands))
    position = 0.0
    if first_rank is not None:
        position = max(0.0, MAX_POSITION * (1 - first_rank / max(10, answer_chars / 100)))
    density = min(MAX_DENSITY, mentions / max(100, answer_chars) * 100)
    return round(frequency + position + density, 3)


def _occurrences(brand: str, words: list[str]) -> list[int]:
    parts = normalize_name(brand).split()
    if not parts:
        return []
    n = len(parts)
    return [i for i in range(len(words) - n + 1) if words[i : i + n] == parts]


def prominence_by_brand(brands: list[str], answer_text: str) -> dict[str, float]:
    """Prominence of every brand, keyed by the given spelling."""
    words = normalize_name(answer_text or "").split()
    hits = {b: _occurrences(b, words) for b in brands}
    seen = sorted((h[0], b) for b, h in hits.items() if h)
    rank = {b: i for i, (_, b) in enumerate(seen)}
    chars = len(answer_text or "")
    return {b: brand_prominence(len(h), len(brands), rank.get(b), chars) for b, h in hits.items()}


@dataclass
class CompetitiveInsights:
    org_rank: int | None = None  # 1-based among all brands by prominence
    org_prominence: float = 0.0
    top_competitors: list[dict] = field(default_factory=list)
    threats: list[str] = field(default_factory=list)
    opportunities: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "org_rank": self.org_rank,
            "org_prominence": self.org_prominence,
            "top_competitors": list(self.top_competitors),
            "threats": list(self.threats),
            "opportunities": list(self.opportunities),
        }


def competitive_insights(
    org_brands: list[str],
    competitors: list[str],
    answer_text: str,
    sentiments: list[BrandSentiment] | None = None,
) -> CompetitiveInsights:
    prominence = prominence_by_brand(org_brands + competitors, answer_text)
    ranked = sorted(prominence.items(), key=lambda kv: kv[1], reverse=True)
    own = set(org_brands)
    insights = CompetitiveInsights()

    for i, (brand, value) in enumerate(ranked, start=1):
        if brand in own and value > 0:
            insights.org_rank, insights.org_prominence = i, value
            break

    rivals = [(b, v) for b, v in ranked if b not in own and v > 0]
    insights.top_competitors = [{"brand": b, "prominence": v} for b, v in rivals[:TOP_COMPETITORS]]
    insights.threats = [b for b, v in rivals if v > insights.org_prominence + THREAT_MARGIN]

    if insights.org_rank is None:
        insights.opportunities.append("brand not mentioned")
    else:
        if insights.org_rank > 1:
            insights.opportunities.append("mentioned after competitors")
        by_brand = {s.brand: s for s in sentiments or []}
        own_sentiments = [by_brand[b] for b in org_brands if b in by_brand]
        if own_sentiments and not any(s.sentiment == Sentiment.POSITIVE for s in own_sentiments):
            insights.opportunities.append("no positive framing")
        if own_sentiments and not any(s.context == MentionContext.RECOMMENDATION for s in own_sentiments):
            insights.opportunities.append("not recommended directly")

    logger.debug("Insights: org_rank=%s threats=%d", insights.org_rank, len(insights.threats))
    return insights
