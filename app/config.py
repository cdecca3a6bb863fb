from typing import List, cast
from pydantic import AnyHttpUrl, BaseModel, PostgresDsn, computed_field
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class GamificationConfig(BaseModel):
    """Tunable formula constants for the scoring engine."""
    base_exp_per_level: int = 100
    level_exponent: float = 1.5
    streak_bonus_multipliers: dict[int, float] = {3: 1.1, 7: 1.2, 14: 1.3, 30: 1.5}
    classification_points: int = 10
    classification_experience: int = 5
    match_bonus_points: int = 5
    match_bonus_experience: int = 3


class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Smart Trash"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    APP_ENV: str = "development"
    APP_TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Validation
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    # Gamification
    GAMIFICATION_BASE_EXP_PER_LEVEL: int = 100
    GAMIFICATION_LEVEL_EXPONENT: float = 1.5
    GAMIFICATION_STREAK_BONUS_MULTIPLIERS: dict[int, float] = {3: 1.1, 7: 1.2, 14: 1.3, 30: 1.5}
    GAMIFICATION_CLASSIFICATION_POINTS: int = 10
    GAMIFICATION_CLASSIFICATION_EXPERIENCE: int = 5
    GAMIFICATION_MATCH_BONUS_POINTS: int = 5
    GAMIFICATION_MATCH_BONUS_EXPERIENCE: int = 3

    # Classification
    CLASSIFIER_ENABLED: bool = True
    CLASSIFIER_PROVIDER: str = "mock"
    CLASSIFIER_API_URL: str | None = None
    CLASSIFIER_API_TOKEN: str | None = None
    CLASSIFIER_TIMEOUT_SECONDS: int = 30
    CLASSIFICATION_QUEUE_ENABLED: bool = True
    CLASSIFICATION_WORKER_CONCURRENCY: int = 1
    CLASSIFICATION_MAX_ATTEMPTS: int = 3
    CLASSIFICATION_STALE_AFTER_MINUTES: int = 15

    # Database
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "smart_trash"

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(cast(PostgresDsn, MultiHostUrl.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )))

    def gamification_config(self) -> GamificationConfig:
        return GamificationConfig(
            base_exp_per_level=self.GAMIFICATION_BASE_EXP_PER_LEVEL,
            level_exponent=self.GAMIFICATION_LEVEL_EXPONENT,
            streak_bonus_multipliers=self.GAMIFICATION_STREAK_BONUS_MULTIPLIERS,
            classification_points=self.GAMIFICATION_CLASSIFICATION_POINTS,
            classification_experience=self.GAMIFICATION_CLASSIFICATION_EXPERIENCE,
            match_bonus_points=self.GAMIFICATION_MATCH_BONUS_POINTS,
            match_bonus_experience=self.GAMIFICATION_MATCH_BONUS_EXPERIENCE,
        )

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

settings = Settings()  # type: ignore
