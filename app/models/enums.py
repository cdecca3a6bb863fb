from enum import Enum

class Role(str, Enum):
    ADMIN = "ADMIN"
    COMPANY_ADMIN = "COMPANY_ADMIN"
    EMPLOYEE = "EMPLOYEE"


class AchievementCriterionType(str, Enum):
    TOTAL_PHOTOS = "TOTAL_PHOTOS"
    CORRECT_BIN_MATCHES = "CORRECT_BIN_MATCHES"
    STREAK_DAYS = "STREAK_DAYS"


class WastePhotoStatus(str, Enum):
    PENDING = "PENDING"
    CLASSIFIED = "CLASSIFIED"
    FAILED = "FAILED"


class TrashBinType(str, Enum):
    MIXED = "MIXED"
    PLASTIC = "PLASTIC"
    PAPER = "PAPER"
    GLASS = "GLASS"
    METAL = "METAL"
    ORGANIC = "ORGANIC"
    ELECTRONIC = "ELECTRONIC"
    HAZARDOUS = "HAZARDOUS"
