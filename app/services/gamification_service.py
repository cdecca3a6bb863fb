"""Gamification service — points, experience, levels, streaks, daily challenges and seasonal events."""
import logging
import math
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import GamificationConfig, settings
from app.core.exceptions import NotFoundError
from app.models.enums import AchievementCriterionType, WastePhotoStatus
from app.models.gamification import DailyChallenge, DailyChallengeProgress, SeasonalEvent
from app.models.user import User
from app.models.waste_photo import WastePhoto
from app.services import outcomes
from app.services.level_curve import LevelCurve
from app.services.outcomes import AwardResult, ChallengeProgressResult, Multipliers, StreakResult
from app.services.timezone_service import ensure_utc, today_in_app_tz

logger = logging.getLogger(__name__)


def _floor_reward(value: float) -> int:
    # round first so 20 * 1.15 style products do not floor one short
    return math.floor(round(value, 6))


class GamificationService:
    def __init__(self, db: AsyncSession, config: GamificationConfig | None = None):
        self.db = db
        self.config = config or settings.gamification_config()
        self.levels = LevelCurve(self.config)

    async def _get_user(self, user_id: uuid.UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    # Multipliers

    def streak_bonus_multiplier(self, streak: int) -> float:
        """Bonus of the largest streak threshold the user has reached."""
        reached = [days for days in self.config.streak_bonus_multipliers if streak >= days]
        if not reached:
            return 1.0
        return self.config.streak_bonus_multipliers[max(reached)]

    async def get_active_multipliers(
        self, company_id: uuid.UUID | None = None, now: datetime | None = None
    ) -> Multipliers:
        """Largest seasonal multipliers currently in force. Events never stack."""
        now = ensure_utc(now or datetime.now(timezone.utc))

        stmt = select(SeasonalEvent).where(SeasonalEvent.is_active.is_(True))
        if company_id:
            stmt = stmt.where(SeasonalEvent.company_id == company_id)
        else:
            stmt = stmt.where(SeasonalEvent.company_id.is_(None))
        events = (await self.db.execute(stmt)).scalars().all()

        active = [e for e in events if ensure_utc(e.start_date) <= now <= ensure_utc(e.end_date)]
        if not active:
            return Multipliers()

        return Multipliers(
            points=max([e.points_multiplier for e in active] + [1]),
            experience=max([e.experience_multiplier for e in active] + [1]),
        )

    # Rewards

    async def award(
        self,
        user_id: uuid.UUID,
        base_points: int,
        base_experience: int,
        company_id: uuid.UUID | None = None,
    ) -> AwardResult:
        """Apply seasonal and streak multipliers to a grant and add it to the user's totals."""
        user = await self._get_user(user_id)
        if not user:
            logger.warning("User %s not found for awarding points", user_id)
            return AwardResult(skipped_reason=outcomes.USER_NOT_FOUND)

        streak_multiplier = self.streak_bonus_multiplier(user.current_streak)
        seasonal = await self.get_active_multipliers(company_id)

        points = _floor_reward(base_points * seasonal.points * streak_multiplier)
        experience = _floor_reward(base_experience * seasonal.experience * streak_multiplier)

        user.total_points += points
        user.experience += experience

        new_level = self.levels.level_from_experience(user.experience)
        leveled_up = new_level > user.level
        if leveled_up:
            logger.info("User %s leveled up from %s to %s", user.email, user.level, new_level)
            user.level = new_level

        await self.db.flush()

        return AwardResult(
            points_awarded=points,
            experience_awarded=experience,
            leveled_up=leveled_up,
            new_level=new_level if leveled_up else None,
        )

    # Streaks

    async def update_streak(
        self, user_id: uuid.UUID, company_id: uuid.UUID, today: date | None = None
    ) -> StreakResult:
        """Record activity for today and re-evaluate the company's daily challenges."""
        user = await self._get_user(user_id)
        if not user:
            return StreakResult(skipped_reason=outcomes.USER_NOT_FOUND)

        today = today or today_in_app_tz()
        last = user.last_activity_date

        if last is None:
            user.current_streak = 1
        else:
            diff_days = (today - last).days
            if diff_days <= 0:
                return StreakResult(
                    current_streak=user.current_streak,
                    best_streak=user.best_streak,
                    skipped_reason=outcomes.ALREADY_ACTIVE_TODAY,
                )
            elif diff_days == 1:
                user.current_streak += 1
            else:
                user.best_streak = max(user.best_streak, user.current_streak)
                user.current_streak = 1

        user.best_streak = max(user.best_streak, user.current_streak)
        user.last_activity_date = today
        await self.db.flush()

        challenges = await self.update_daily_challenge_progress(user_id, company_id, today=today)
        return StreakResult(
            current_streak=user.current_streak,
            best_streak=user.best_streak,
            challenges=challenges,
        )

    # Daily challenges

    async def get_todays_challenges(self, company_id: uuid.UUID, today: date | None = None) -> list[DailyChallenge]:
        today = today or today_in_app_tz()
        result = await self.db.execute(
            select(DailyChallenge)
            .where(
                DailyChallenge.company_id == company_id,
                DailyChallenge.is_active.is_(True),
                DailyChallenge.start_date <= today,
                DailyChallenge.end_date >= today,
            )
            .order_by(DailyChallenge.created_at)
        )
        return list(result.scalars().all())

    async def update_daily_challenge_progress(
        self, user_id: uuid.UUID, company_id: uuid.UUID, today: date | None = None
    ) -> ChallengeProgressResult:
        """Recompute progress on today's challenges; completion awards the challenge reward once."""
        if not await self._get_user(user_id):
            return ChallengeProgressResult(skipped_reason=outcomes.USER_NOT_FOUND)

        outcome = ChallengeProgressResult()
        for challenge in await self.get_todays_challenges(company_id, today=today):
            result = await self.db.execute(
                select(DailyChallengeProgress).where(
                    DailyChallengeProgress.user_id == user_id,
                    DailyChallengeProgress.challenge_id == challenge.id,
                )
            )
            progress = result.scalar_one_or_none()
            if not progress:
                progress = DailyChallengeProgress(
                    user_id=user_id, challenge_id=challenge.id, current_progress=0, is_completed=False
                )
                self.db.add(progress)

            if progress.is_completed:
                continue

            progress.current_progress = await self.get_criterion_value(user_id, company_id, challenge.criterion_type)
            outcome.evaluated.append(progress)

            if progress.current_progress >= challenge.target:
                progress.is_completed = True
                progress.completed_at = datetime.now(timezone.utc)
                outcome.completed.append(progress)
                logger.info("User %s completed daily challenge %s", user_id, challenge.id)
                await self.award(user_id, challenge.reward_points, challenge.reward_experience, company_id)

            await self.db.flush()

        return outcome

    async def get_criterion_value(
        self,
        user_id: uuid.UUID,
        company_id: uuid.UUID,
        criterion_type: AchievementCriterionType | str,
    ) -> int:
        """Current value of a criterion for daily challenges (classified photos only)."""
        if criterion_type == AchievementCriterionType.TOTAL_PHOTOS:
            stmt = select(func.count()).select_from(WastePhoto).where(
                WastePhoto.user_id == user_id,
                WastePhoto.company_id == company_id,
                WastePhoto.status == WastePhotoStatus.CLASSIFIED,
            )
            return (await self.db.execute(stmt)).scalar() or 0

        if criterion_type == AchievementCriterionType.CORRECT_BIN_MATCHES:
            stmt = select(func.count()).select_from(WastePhoto).where(
                WastePhoto.user_id == user_id,
                WastePhoto.company_id == company_id,
                WastePhoto.recommended_bin_type.is_not(None),
                WastePhoto.status == WastePhotoStatus.CLASSIFIED,
            )
            return (await self.db.execute(stmt)).scalar() or 0

        if criterion_type == AchievementCriterionType.STREAK_DAYS:
            user = await self._get_user(user_id)
            return user.current_streak if user else 0

        return 0

    # Progress

    async def get_user_progress(self, user_id: uuid.UUID) -> dict:
        user = await self._get_user(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        return {
            "level": user.level,
            "experience": user.experience,
            "total_points": user.total_points,
            "current_streak": user.current_streak,
            "best_streak": user.best_streak,
            "last_activity_date": user.last_activity_date.isoformat() if user.last_activity_date else None,
            "experience_to_next_level": self.levels.experience_to_next_level(user.level, user.experience),
            "level_progress": self.levels.level_progress_percent(user.level, user.experience),
        }
