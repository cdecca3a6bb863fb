import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import GamificationConfig, settings
from app.core.exceptions import NotFoundError
from app.core.locks import UserLockRegistry, user_locks
from app.models.company import CollectionArea, CollectionAreaBin, Company
from app.models.enums import TrashBinType, WastePhotoStatus
from app.models.waste_photo import WastePhoto
from app.services.achievement_service import AchievementService
from app.services.classifier_service import WasteClassifier, get_classifier
from app.services.gamification_service import GamificationService
from app.services.pubsub_service import (
    LEADERBOARD_UPDATED,
    WASTE_PHOTO_STATUS_UPDATED,
    PubSubService,
    pubsub as default_pubsub,
)

logger = logging.getLogger(__name__)


def photo_status_payload(photo: WastePhoto) -> dict:
    return {
        "id": str(photo.id),
        "company_id": str(photo.company_id),
        "user_id": str(photo.user_id) if photo.user_id else None,
        "status": photo.status.value,
        "recommended_bin_type": photo.recommended_bin_type.value if photo.recommended_bin_type else None,
        "ai_explanation": photo.ai_explanation,
    }


class WasteClassificationService:
    """Classifies a waste photo and runs the gamification engine for its author."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        classifier: WasteClassifier | None = None,
        pubsub: PubSubService | None = None,
        locks: UserLockRegistry | None = None,
        config: GamificationConfig | None = None,
    ):
        self.db = db
        self.classifier = classifier or get_classifier()
        self.pubsub = pubsub or default_pubsub
        self.locks = locks or user_locks
        self.config = config or settings.gamification_config()
        self.gamification = GamificationService(db, self.config)
        self.achievements = AchievementService(db, self.pubsub)

    async def _get_photo(self, photo_id: uuid.UUID) -> WastePhoto | None:
        result = await self.db.execute(select(WastePhoto).where(WastePhoto.id == photo_id))
        return result.scalar_one_or_none()

    async def _available_bin_types(self, photo: WastePhoto) -> list[TrashBinType]:
        if not photo.collection_area_id:
            return []
        result = await self.db.execute(
            select(CollectionAreaBin.bin_type)
            .where(CollectionAreaBin.collection_area_id == photo.collection_area_id)
            .distinct()
        )
        return list(result.scalars().all())

    async def process_waste_photo(self, photo_id: uuid.UUID) -> WastePhoto:
        photo = await self._get_photo(photo_id)
        if not photo:
            raise NotFoundError(f"Waste photo {photo_id} not found for processing")
        if photo.status != WastePhotoStatus.PENDING:
            logger.info("Waste photo %s is already %s; skipping", photo_id, photo.status.value)
            return photo

        try:
            available = await self._available_bin_types(photo)
            company_name = await self.db.scalar(select(Company.name).where(Company.id == photo.company_id))
            area_name = None
            if photo.collection_area_id:
                area_name = await self.db.scalar(
                    select(CollectionArea.name).where(CollectionArea.id == photo.collection_area_id)
                )

            result = await self.classifier.classify(
                image_url=photo.image_url,
                available_bin_types=available or list(TrashBinType),
                company_name=company_name,
                area_name=area_name,
            )

            photo.recommended_bin_type = result.recommended_bin_type
            photo.ai_explanation = result.explanation
            photo.ai_raw_result = result.raw
            photo.status = WastePhotoStatus.CLASSIFIED if result.recommended_bin_type else WastePhotoStatus.FAILED
            await self.db.commit()
            self.pubsub.publish(WASTE_PHOTO_STATUS_UPDATED, photo_status_payload(photo))

            if photo.status == WastePhotoStatus.CLASSIFIED and photo.user_id and photo.company_id:
                async with self.locks.hold(photo.user_id):
                    await self._reward_classified_photo(photo)
        except Exception as exc:
            logger.exception("Failed to process waste photo %s: %s", photo_id, exc)
            await self.db.rollback()
            photo = await self._get_photo(photo_id)
            if photo is None:
                raise
            photo.status = WastePhotoStatus.FAILED
            await self.db.commit()
            self.pubsub.publish(WASTE_PHOTO_STATUS_UPDATED, photo_status_payload(photo))

        return photo

    async def _reward_classified_photo(self, photo: WastePhoto) -> None:
        assert photo.user_id is not None
        config = self.config
        points = config.classification_points
        experience = config.classification_experience
        if photo.recommended_bin_type:
            points += config.match_bonus_points
            experience += config.match_bonus_experience

        await self.gamification.award(photo.user_id, points, experience, photo.company_id)
        await self.gamification.update_streak(photo.user_id, photo.company_id)

        granted = await self.achievements.check_and_grant_for_photo(photo)
        for grant in granted.grants:
            achievement = grant.achievement
            if achievement.reward_points or achievement.reward_experience:
                await self.gamification.award(
                    photo.user_id,
                    achievement.reward_points or 0,
                    achievement.reward_experience or 0,
                    photo.company_id,
                )

        await self.db.commit()

        if granted.grants:
            self.achievements.publish_earned(granted.grants)
            self.pubsub.publish(
                LEADERBOARD_UPDATED,
                {"company_id": str(photo.company_id), "user_id": str(photo.user_id)},
            )
