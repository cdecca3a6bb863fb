"""Company achievement CRUD and eligibility evaluation."""
import logging
import math
import uuid
from datetime import date
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.enums import AchievementCriterionType
from app.models.gamification import Achievement, EmployeeAchievement
from app.models.user import User
from app.models.waste_photo import WastePhoto
from app.services import outcomes
from app.services.company_service import CompanyService
from app.services.outcomes import AchievementGrantResult
from app.services.pubsub_service import ACHIEVEMENT_EARNED, PubSubService, pubsub as default_pubsub
from app.services.timezone_service import local_date

logger = logging.getLogger(__name__)


def longest_daily_run(days: Iterable[date]) -> int:
    """Longest run of consecutive calendar days in an ascending sequence.

    A one-day gap extends the run, a larger gap starts a new one and a
    repeated day leaves the run as it is.
    """
    days = list(days)
    if not days:
        return 0

    best = current = 1
    for previous, day in zip(days, days[1:]):
        delta = (day - previous).days
        if delta == 1:
            current += 1
        elif delta > 1:
            best = max(best, current)
            current = 1
    return max(best, current)


class AchievementService:
    def __init__(self, db: AsyncSession, pubsub: PubSubService | None = None):
        self.db = db
        self.pubsub = pubsub or default_pubsub

    async def create_achievement(
        self,
        *,
        company_id: uuid.UUID,
        title: str,
        description: str,
        criterion_type: AchievementCriterionType,
        threshold: int,
        reward_points: int = 0,
        reward_experience: int = 0,
        created_by_id: uuid.UUID | None = None,
    ) -> Achievement:
        if not await CompanyService.get_company(company_id, self.db):
            raise NotFoundError("Company not found")
        if created_by_id:
            creator = (await self.db.execute(select(User).where(User.id == created_by_id))).scalar_one_or_none()
            if not creator:
                raise NotFoundError("Company administrator not found")

        achievement = Achievement(
            company_id=company_id,
            title=title,
            description=description,
            criterion_type=criterion_type,
            threshold=threshold,
            reward_points=reward_points,
            reward_experience=reward_experience,
            created_by_id=created_by_id,
        )
        self.db.add(achievement)
        await self.db.flush()
        return achievement

    async def get_achievement(self, achievement_id: uuid.UUID) -> Achievement:
        result = await self.db.execute(select(Achievement).where(Achievement.id == achievement_id))
        achievement = result.scalar_one_or_none()
        if not achievement:
            raise NotFoundError("Achievement not found")
        return achievement

    async def update_achievement(
        self,
        achievement_id: uuid.UUID,
        *,
        title: str | None = None,
        description: str | None = None,
        threshold: int | None = None,
        reward_points: int | None = None,
        reward_experience: int | None = None,
    ) -> Achievement:
        """Change the given fields. Grants already made are kept."""
        achievement = await self.get_achievement(achievement_id)
        if title is not None:
            achievement.title = title
        if description is not None:
            achievement.description = description
        if threshold is not None:
            achievement.threshold = threshold
        if reward_points is not None:
            achievement.reward_points = reward_points
        if reward_experience is not None:
            achievement.reward_experience = reward_experience
        await self.db.flush()
        return achievement

    async def delete_achievement(self, achievement_id: uuid.UUID) -> None:
        achievement = await self.get_achievement(achievement_id)
        await self.db.execute(delete(EmployeeAchievement).where(EmployeeAchievement.achievement_id == achievement.id))
        await self.db.delete(achievement)
        await self.db.flush()

    async def list_company_achievements(self, company_id: uuid.UUID) -> list[Achievement]:
        result = await self.db.execute(
            select(Achievement).where(Achievement.company_id == company_id).order_by(Achievement.created_at)
        )
        return list(result.scalars().all())

    async def list_user_achievements(self, user_id: uuid.UUID) -> list[EmployeeAchievement]:
        result = await self.db.execute(
            select(EmployeeAchievement)
            .where(EmployeeAchievement.user_id == user_id)
            .order_by(EmployeeAchievement.earned_at.desc())
        )
        return list(result.scalars().all())

    async def check_and_grant_for_photo(self, photo: WastePhoto) -> AchievementGrantResult:
        """Grant every company achievement the photo's author now qualifies for."""
        if not photo.user_id or not photo.company_id:
            return AchievementGrantResult(skipped_reason=outcomes.PHOTO_NOT_ATTRIBUTED)

        user_id, company_id = photo.user_id, photo.company_id
        user = (await self.db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if not user:
            logger.warning("User %s of waste photo %s not found; skipping achievements", user_id, photo.id)
            return AchievementGrantResult(skipped_reason=outcomes.USER_NOT_FOUND)
        if not await CompanyService.is_employee(user_id, company_id, self.db):
            logger.warning("User %s is not an employee of company %s; skipping achievements", user_id, company_id)
            return AchievementGrantResult(skipped_reason=outcomes.NOT_COMPANY_EMPLOYEE)

        achievements = await self.list_company_achievements(company_id)
        earned = await self.db.execute(
            select(EmployeeAchievement.achievement_id).where(EmployeeAchievement.user_id == user_id)
        )
        earned_ids = set(earned.scalars().all())

        outcome = AchievementGrantResult()
        for achievement in achievements:
            if achievement.id in earned_ids:
                continue
            if not await self.is_criterion_reached(achievement, user_id, company_id):
                continue

            grant = await self._insert_grant(user_id, achievement)
            if grant is None:
                continue
            outcome.grants.append(grant)
            logger.info("User %s earned achievement %s", user_id, achievement.id)

        return outcome

    def publish_earned(self, grants: list[EmployeeAchievement]) -> None:
        """Announce grants. Call only once they are committed."""
        for grant in grants:
            self.pubsub.publish(
                ACHIEVEMENT_EARNED,
                {
                    "employee_achievement_id": str(grant.id),
                    "achievement_id": str(grant.achievement_id),
                    "achievement_title": grant.achievement.title,
                    "user_id": str(grant.user_id),
                    "company_id": str(grant.achievement.company_id),
                },
            )

    async def _insert_grant(self, user_id: uuid.UUID, achievement: Achievement) -> EmployeeAchievement | None:
        """Insert a grant, relying on the unique constraint when another worker got there first."""
        grant = EmployeeAchievement(user_id=user_id, achievement_id=achievement.id, achievement=achievement)
        try:
            async with self.db.begin_nested():
                self.db.add(grant)
        except IntegrityError:
            logger.info("Achievement %s already granted to user %s", achievement.id, user_id)
            return None
        return grant

    async def get_criterion_value(
        self, criterion_type: AchievementCriterionType | str, user_id: uuid.UUID, company_id: uuid.UUID
    ) -> int:
        """Criterion value for achievements. Unlike daily challenges, photos of any status count."""
        scope = (WastePhoto.user_id == user_id, WastePhoto.company_id == company_id)

        if criterion_type == AchievementCriterionType.TOTAL_PHOTOS:
            stmt = select(func.count()).select_from(WastePhoto).where(*scope)
            return (await self.db.execute(stmt)).scalar() or 0

        if criterion_type == AchievementCriterionType.CORRECT_BIN_MATCHES:
            stmt = select(func.count()).select_from(WastePhoto).where(
                *scope, WastePhoto.recommended_bin_type.is_not(None)
            )
            return (await self.db.execute(stmt)).scalar() or 0

        if criterion_type == AchievementCriterionType.STREAK_DAYS:
            result = await self.db.execute(
                select(WastePhoto.created_at)
                .where(*scope, WastePhoto.recommended_bin_type.is_not(None))
                .order_by(WastePhoto.created_at.asc())
            )
            return longest_daily_run(local_date(created_at) for created_at in result.scalars().all())

        return 0

    async def calculate_progress(self, achievement: Achievement, user_id: uuid.UUID, company_id: uuid.UUID) -> int:
        """Percent towards an achievement threshold, capped at 100."""
        value = await self.get_criterion_value(achievement.criterion_type, user_id, company_id)
        if achievement.criterion_type == AchievementCriterionType.STREAK_DAYS and value == 0:
            return 0
        if achievement.threshold <= 0:
            return 100
        return math.floor(min(value * 100 / achievement.threshold, 100))

    async def is_criterion_reached(self, achievement: Achievement, user_id: uuid.UUID, company_id: uuid.UUID) -> bool:
        value = await self.get_criterion_value(achievement.criterion_type, user_id, company_id)
        if achievement.criterion_type == AchievementCriterionType.STREAK_DAYS and value == 0:
            return False
        return value >= achievement.threshold
