import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import dependencies
from app.core.responses import StandardResponse
from app.database import get_db
from app.models.enums import AchievementCriterionType
from app.models.gamification import Achievement
from app.models.user import User
from app.services.achievement_service import AchievementService
from app.services.company_service import CompanyService

router = APIRouter()


class AchievementCreateRequest(BaseModel):
    company_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    criterion_type: AchievementCriterionType
    threshold: int = Field(ge=0)
    reward_points: int = Field(default=0, ge=0)
    reward_experience: int = Field(default=0, ge=0)


class AchievementUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    threshold: int | None = Field(default=None, ge=0)
    reward_points: int | None = Field(default=None, ge=0)
    reward_experience: int | None = Field(default=None, ge=0)


class AchievementResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    title: str
    description: str
    criterion_type: AchievementCriterionType
    threshold: int
    reward_points: int
    reward_experience: int
    created_at: datetime
    progress: int | None = None
    earned: bool | None = None


class EarnedAchievementResponse(BaseModel):
    id: uuid.UUID
    earned_at: datetime
    achievement: AchievementResponse


def _to_response(achievement: Achievement, **extra) -> AchievementResponse:
    return AchievementResponse(
        id=achievement.id,
        company_id=achievement.company_id,
        title=achievement.title,
        description=achievement.description,
        criterion_type=achievement.criterion_type,
        threshold=achievement.threshold,
        reward_points=achievement.reward_points,
        reward_experience=achievement.reward_experience,
        created_at=achievement.created_at,
        **extra,
    )


@router.post("", response_model=StandardResponse[AchievementResponse])
async def create_achievement(
    payload: AchievementCreateRequest,
    current_user: Annotated[User, Depends(dependencies.get_current_company_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    if not await CompanyService.can_manage(current_user, payload.company_id, db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")

    achievement = await AchievementService(db).create_achievement(
        company_id=payload.company_id,
        title=payload.title,
        description=payload.description,
        criterion_type=payload.criterion_type,
        threshold=payload.threshold,
        reward_points=payload.reward_points,
        reward_experience=payload.reward_experience,
        created_by_id=current_user.id,
    )
    await db.commit()
    return StandardResponse(data=_to_response(achievement), message="Achievement created")


@router.get("/me", response_model=StandardResponse[list[EarnedAchievementResponse]])
async def list_my_achievements(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    grants = await AchievementService(db).list_user_achievements(current_user.id)
    return StandardResponse(
        data=[
            EarnedAchievementResponse(id=g.id, earned_at=g.earned_at, achievement=_to_response(g.achievement))
            for g in grants
        ]
    )


@router.get("/companies/{company_id}", response_model=StandardResponse[list[AchievementResponse]])
async def list_company_achievements(
    company_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Company achievements with the caller's progress towards each."""
    is_employee = await CompanyService.is_employee(current_user.id, company_id, db)
    if not is_employee and not await CompanyService.can_manage(current_user, company_id, db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this company")

    service = AchievementService(db)
    achievements = await service.list_company_achievements(company_id)
    earned_ids = {g.achievement_id for g in await service.list_user_achievements(current_user.id)}

    data = []
    for achievement in achievements:
        progress = None
        if is_employee:
            progress = await service.calculate_progress(achievement, current_user.id, company_id)
        data.append(_to_response(achievement, progress=progress, earned=achievement.id in earned_ids))
    return StandardResponse(data=data)


@router.patch("/{achievement_id}", response_model=StandardResponse[AchievementResponse])
async def update_achievement(
    achievement_id: uuid.UUID,
    payload: AchievementUpdateRequest,
    current_user: Annotated[User, Depends(dependencies.get_current_company_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    service = AchievementService(db)
    achievement = await service.get_achievement(achievement_id)
    if not await CompanyService.can_manage(current_user, achievement.company_id, db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")

    achievement = await service.update_achievement(achievement_id, **payload.model_dump(exclude_unset=True))
    await db.commit()
    return StandardResponse(data=_to_response(achievement), message="Achievement updated")


@router.delete("/{achievement_id}", response_model=StandardResponse)
async def delete_achievement(
    achievement_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_company_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    service = AchievementService(db)
    achievement = await service.get_achievement(achievement_id)
    if not await CompanyService.can_manage(current_user, achievement.company_id, db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")

    await service.delete_achievement(achievement_id)
    await db.commit()
    return StandardResponse(data=True, message="Achievement deleted")
