"""Cross-provider consensus on competitors for a single prompt.

A competitor is "agreed on" when enough distinct providers mention it in
their recent answers to the same prompt:

    required = max(2, ceil(min_ratio * number_of_responses))
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from brandpulse.analysis.text import normalize_name

MIN_PROVIDERS = 2


@dataclass
class ConsensusItem:
    name: str
    providers: list[str] = field(default_factory=list)

    @property
    def provider_count(self) -> int:
        return len(self.providers)


def cross_provider_consensus(
    observations: list[tuple[str, list[str]]],
    min_ratio: float = 0.5,
) -> list[ConsensusItem]:
    """``observations`` is a list of (provider, competitors) from successful runs."""
    if not observations:
        return []

    required = max(MIN_PROVIDERS, math.ceil(min_ratio * len(observations)))

    by_name: dict[str, ConsensusItem] = {}
    for provider, competitors in observations:
        for name in competitors:
            key = normalize_name(name)
            if not key:
                continue
            item = by_name.setdefault(key, ConsensusItem(name=name))
            if provider not in item.providers:
                item.providers.append(provider)

    agreed = [item for item in by_name.values() if item.provider_count >= required]
    agreed.sort(key=lambda i: (-i.provider_count, i.name.lower()))
    return agreed
