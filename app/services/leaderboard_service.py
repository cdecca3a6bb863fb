import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import user_employee_companies
from app.models.enums import WastePhotoStatus
from app.models.user import User
from app.models.waste_photo import WastePhoto


class LeaderboardService:
    @staticmethod
    async def get_company_leaderboard(company_id: uuid.UUID, db: AsyncSession, limit: int = 10) -> list[dict]:
        """Company employees ranked by points, then level."""
        classified = (
            select(WastePhoto.user_id, func.count(WastePhoto.id).label("classified_photos"))
            .where(
                WastePhoto.company_id == company_id,
                WastePhoto.status == WastePhotoStatus.CLASSIFIED,
                WastePhoto.user_id.is_not(None),
            )
            .group_by(WastePhoto.user_id)
            .subquery()
        )

        stmt = (
            select(User, func.coalesce(classified.c.classified_photos, 0))
            .join(user_employee_companies, user_employee_companies.c.user_id == User.id)
            .outerjoin(classified, classified.c.user_id == User.id)
            .where(user_employee_companies.c.company_id == company_id, User.is_active.is_(True))
            .order_by(User.total_points.desc(), User.level.desc(), User.email)
            .limit(limit)
        )
        rows = (await db.execute(stmt)).all()

        return [
            {
                "rank": rank,
                "user_id": str(user.id),
                "full_name": user.full_name,
                "total_points": user.total_points,
                "level": user.level,
                "current_streak": user.current_streak,
                "classified_photos": photo_count,
            }
            for rank, (user, photo_count) in enumerate(rows, start=1)
        ]
