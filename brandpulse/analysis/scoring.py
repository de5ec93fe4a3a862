"""Visibility Score (0-10) for one LLM answer.

Formula:
  absent  -> 0 (competitors do not matter)
  present -> 5
             + max(0, 3 - position // 10)          earlier mention scores higher
             - min(3, 0.5 * competitor_count)      more competitors score lower
             clamped to >= 1, rounded half up, clamped to [0, 10]

``position`` is the 0-based whitespace-token index of the earliest org-brand
mention. A brand that is present but cannot be located in the text gets no
position bonus.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from brandpulse.analysis.text import normalize_name

logger = logging.getLogger(__name__)

BASE_SCORE = 5.0
MAX_POSITION_BONUS = 3
POSITION_STEP = 10
PENALTY_PER_COMPETITOR = 0.5
MAX_COMPETITOR_PENALTY = 3.0
MIN_PRESENT_SCORE = 1.0
MAX_SCORE = 10


@dataclass(frozen=True)
class VisibilityScore:
    brand_present: bool
    brand_position: int | None
    competitor_count: int
    score: int

    def to_dict(self) -> dict:
        return {
            "brand_present": self.brand_present,
            "brand_position": self.brand_position,
            "competitor_count": self.competitor_count,
            "score": self.score,
        }


def find_brand_position(org_brands: list[str], answer_text: str) -> int | None:
    """Index of the first whitespace token where any org brand starts."""
    # (word, token index): "HubSpot's" -> ("hubspot", i), ("s", i)
    words: list[tuple[str, int]] = []
    for index, token in enumerate((answer_text or "").split()):
        words.extend((word, index) for word in normalize_name(token).split())
    if not words:
        return None

    best: int | None = None
    for brand in org_brands:
        parts = normalize_name(brand).split()
        if not parts:
            continue
        for start in range(len(words) - len(parts) + 1):
            token_index = words[start][1]
            if best is not None and token_index >= best:
                break
            if all(words[start + k][0] == part for k, part in enumerate(parts)):
                best = token_index
                break
    return best


def compute_score(brand_present: bool, brand_position: int | None, competitor_count: int) -> int:
    if not brand_present:
        return 0

    score = BASE_SCORE
    if brand_position is not None:
        score += max(0, MAX_POSITION_BONUS - brand_position // POSITION_STEP)
    score -= min(MAX_COMPETITOR_PENALTY, PENALTY_PER_COMPETITOR * max(0, competitor_count))
    score = max(MIN_PRESENT_SCORE, score)

    # Round half up; Python's round() would send 7.5 to 8 but 6.5 to 6
    rounded = int(math.floor(score + 0.5))
    return max(0, min(MAX_SCORE, rounded))


def score_visibility(org_brands: list[str], competitors: list[str], answer_text: str) -> VisibilityScore:
    brand_present = len(org_brands) > 0
    brand_position = find_brand_position(org_brands, answer_text) if brand_present else None
    competitor_count = len(competitors)
    score = compute_score(brand_present, brand_position, competitor_count)

    logger.debug(
        "Score: present=%s position=%s competitors=%d -> %d",
        brand_present,
        brand_position,
        competitor_count,
        score,
    )
    return VisibilityScore(
        brand_present=brand_present,
        brand_position=brand_position,
        competitor_count=competitor_count,
        score=score,
    )
