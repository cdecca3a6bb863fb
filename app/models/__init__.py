from app.models.user import User
from app.models.company import Company, CollectionArea, CollectionAreaBin, user_employee_companies
from app.models.gamification import (
    Achievement,
    DailyChallenge,
    DailyChallengeProgress,
    EmployeeAchievement,
    SeasonalEvent,
)
from app.models.waste_photo import WastePhoto


__all__ = [
    "User",
    "Company",
    "CollectionArea",
    "CollectionAreaBin",
    "user_employee_companies",
    "Achievement",
    "EmployeeAchievement",
    "DailyChallenge",
    "DailyChallengeProgress",
    "SeasonalEvent",
    "WastePhoto",
]
