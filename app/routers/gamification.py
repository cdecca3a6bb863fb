import uuid
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import dependencies
from app.core.responses import StandardResponse
from app.database import get_db
from app.models.enums import AchievementCriterionType
from app.models.gamification import DailyChallengeProgress
from app.models.user import User
from app.services.company_service import CompanyService
from app.services.gamification_service import GamificationService
from app.services.leaderboard_service import LeaderboardService

router = APIRouter()


class DailyChallengeResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    criterion_type: AchievementCriterionType
    target: int
    reward_points: int
    reward_experience: int
    start_date: date
    end_date: date
    current_progress: int
    is_completed: bool
    completed_at: datetime | None


async def _require_company_access(user: User, company_id: uuid.UUID, db: AsyncSession) -> None:
    if await CompanyService.is_employee(user.id, company_id, db):
        return
    if await CompanyService.can_manage(user, company_id, db):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this company")


@router.get("/progress", response_model=StandardResponse)
async def get_my_progress(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Level, experience, points and streaks of the current user."""
    progress = await GamificationService(db).get_user_progress(current_user.id)
    return StandardResponse(data=progress)


@router.get("/companies/{company_id}/leaderboard", response_model=StandardResponse)
async def get_company_leaderboard(
    company_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(10, ge=1, le=100),
):
    await _require_company_access(current_user, company_id, db)
    entries = await LeaderboardService.get_company_leaderboard(company_id, db, limit=limit)
    return StandardResponse(data=entries)


@router.get("/companies/{company_id}/challenges", response_model=StandardResponse[list[DailyChallengeResponse]])
async def get_todays_challenges(
    company_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Today's challenges for the company with the caller's progress on each."""
    await _require_company_access(current_user, company_id, db)
    challenges = await GamificationService(db).get_todays_challenges(company_id)

    progress_by_challenge: dict[uuid.UUID, DailyChallengeProgress] = {}
    if challenges:
        result = await db.execute(
            select(DailyChallengeProgress).where(
                DailyChallengeProgress.user_id == current_user.id,
                DailyChallengeProgress.challenge_id.in_([c.id for c in challenges]),
            )
        )
        progress_by_challenge = {p.challenge_id: p for p in result.scalars().all()}

    data = []
    for challenge in challenges:
        progress = progress_by_challenge.get(challenge.id)
        data.append(
            DailyChallengeResponse(
                id=challenge.id,
                title=challenge.title,
                description=challenge.description,
                criterion_type=challenge.criterion_type,
                target=challenge.target,
                reward_points=challenge.reward_points,
                reward_experience=challenge.reward_experience,
                start_date=challenge.start_date,
                end_date=challenge.end_date,
                current_progress=progress.current_progress if progress else 0,
                is_completed=progress.is_completed if progress else False,
                completed_at=progress.completed_at if progress else None,
            )
        )
    return StandardResponse(data=data)
