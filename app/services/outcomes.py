"""Result types returned by the gamification engine.

Engine operations never raise for a missing related record. They return one
of these with ``skipped_reason`` set, so callers can tell "nothing to do"
from "applied".
"""
from dataclasses import dataclass, field

from app.models.gamification import DailyChallengeProgress, EmployeeAchievement


USER_NOT_FOUND = "user_not_found"
ALREADY_ACTIVE_TODAY = "already_active_today"
PHOTO_NOT_ATTRIBUTED = "photo_not_attributed"
NOT_COMPANY_EMPLOYEE = "not_company_employee"


@dataclass
class Multipliers:
    points: int = 1
    experience: int = 1


@dataclass
class AwardResult:
    points_awarded: int = 0
    experience_awarded: int = 0
    leveled_up: bool = False
    new_level: int | None = None
    skipped_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


@dataclass
class ChallengeProgressResult:
    evaluated: list[DailyChallengeProgress] = field(default_factory=list)
    completed: list[DailyChallengeProgress] = field(default_factory=list)
    skipped_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


@dataclass
class StreakResult:
    current_streak: int = 0
    best_streak: int = 0
    challenges: ChallengeProgressResult | None = None
    skipped_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


@dataclass
class AchievementGrantResult:
    grants: list[EmployeeAchievement] = field(default_factory=list)
    skipped_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None
