"""Mapping between accumulated experience and user level."""
import math

from app.config import GamificationConfig


class LevelCurve:
    """Reaching level L from L-1 costs floor(base * L ** exponent) experience.

    Level 1 is free, so the cumulative experience needed to stand on level L
    is the sum of the per-level costs for levels 2..L.
    """

    def __init__(self, config: GamificationConfig | None = None):
        config = config or GamificationConfig()
        self.base_exp = config.base_exp_per_level
        self.exponent = config.level_exponent

    def experience_required_for_level(self, level: int) -> int:
        return math.floor(self.base_exp * math.pow(level, self.exponent))

    def cumulative_experience_for_level(self, level: int) -> int:
        return sum(self.experience_required_for_level(l) for l in range(2, level + 1))

    def level_from_experience(self, total_experience: int) -> int:
        if total_experience <= 0:
            return 1

        level = 1
        spent = 0
        while True:
            cost = self.experience_required_for_level(level + 1)
            if cost <= 0 or spent + cost > total_experience:
                return level
            spent += cost
            level += 1

    def experience_to_next_level(self, level: int, experience: int) -> int:
        return max(0, self.cumulative_experience_for_level(level + 1) - experience)

    def level_progress_percent(self, level: int, experience: int) -> int:
        band = self.experience_required_for_level(level + 1)
        if band <= 0:
            return 100
        into_band = experience - self.cumulative_experience_for_level(level)
        return max(0, min(100, math.floor(into_band * 100 / band)))
