"""
Environmental impact scoring.

A size-based heuristic for comparing models: larger models generally need
more compute and therefore more energy. This is a rough proxy, not a
measurement; hardware, batch size and data-center efficiency are ignored.
"""

from typing import List, NamedTuple, Sequence, Tuple

from ...core.constants import LIGHTWEIGHT_MAX_MB, STANDARD_MAX_MB
from ...core.entities import EnvironmentalImpact, Model


class _ScoreTier(NamedTuple):
    max_mb: float
    score: int
    tier: str
    label: str


# Ordered by size threshold, ascending
SCORE_TIERS: Tuple[_ScoreTier, ...] = (
    _ScoreTier(LIGHTWEIGHT_MAX_MB, 1, "lightweight", "Low Impact"),
    _ScoreTier(STANDARD_MAX_MB,    2, "standard",    "Medium Impact"),
    _ScoreTier(float("inf"),       3, "advanced",    "High Impact"),
)


def _score_tier(size_mb: float) -> _ScoreTier:
    return next(tier for tier in SCORE_TIERS if size_mb <= tier.max_mb)


class EnvironmentalImpactCalculator:
    """
    Scores models from 1 (low impact) to 3 (high impact) by size.
    """

    def calculate_impact(self, model: Model) -> EnvironmentalImpact:
        tier = _score_tier(model.size_mb)
        return EnvironmentalImpact(environmental_score=tier.score,
                                   size_mb=model.size_mb,
                                   score_label=tier.label,
                                   tier=tier.tier)

    def compare_models(self, models: Sequence[Model]) -> List[Tuple[Model, EnvironmentalImpact]]:
        """
        Pairs each model with its impact, lowest impact first, then smallest.
        """
        scored = [(model, self.calculate_impact(model)) for model in models]
        return sorted(scored, key=lambda pair: (pair[1].environmental_score, pair[0].size_mb))
