import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import dependencies
from app.config import settings
from app.core.responses import PagedResponse, StandardResponse
from app.database import get_db
from app.models.company import CollectionArea
from app.models.enums import TrashBinType, WastePhotoStatus
from app.models.user import User
from app.models.waste_photo import WastePhoto
from app.services.company_service import CompanyService
from app.services.timezone_service import ensure_utc
from app.workers.classification_queue import classification_queue

router = APIRouter()


class WastePhotoCreateRequest(BaseModel):
    company_id: uuid.UUID
    image_url: str = Field(min_length=1, max_length=2048)
    collection_area_id: uuid.UUID | None = None


class WastePhotoResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    user_id: uuid.UUID | None
    collection_area_id: uuid.UUID | None
    image_url: str
    status: WastePhotoStatus
    recommended_bin_type: TrashBinType | None
    ai_explanation: str | None
    created_at: datetime


def _can_requeue(photo: WastePhoto) -> bool:
    if photo.status == WastePhotoStatus.FAILED:
        return True
    if photo.status != WastePhotoStatus.PENDING:
        return False
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=settings.CLASSIFICATION_STALE_AFTER_MINUTES)
    return ensure_utc(photo.updated_at) <= cutoff


def _to_response(photo: WastePhoto) -> WastePhotoResponse:
    return WastePhotoResponse(
        id=photo.id,
        company_id=photo.company_id,
        user_id=photo.user_id,
        collection_area_id=photo.collection_area_id,
        image_url=photo.image_url,
        status=photo.status,
        recommended_bin_type=photo.recommended_bin_type,
        ai_explanation=photo.ai_explanation,
        created_at=photo.created_at,
    )


@router.post("", response_model=StandardResponse[WastePhotoResponse], status_code=status.HTTP_202_ACCEPTED)
async def submit_waste_photo(
    payload: WastePhotoCreateRequest,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Store a waste photo as PENDING and queue it for classification."""
    if not await CompanyService.is_employee(current_user.id, payload.company_id, db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not an employee of this company")

    if payload.collection_area_id:
        area = (
            await db.execute(select(CollectionArea).where(CollectionArea.id == payload.collection_area_id))
        ).scalar_one_or_none()
        if not area or area.company_id != payload.company_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection area not found")

    photo = WastePhoto(
        company_id=payload.company_id,
        user_id=current_user.id,
        collection_area_id=payload.collection_area_id,
        image_url=payload.image_url,
        status=WastePhotoStatus.PENDING,
    )
    db.add(photo)
    await db.commit()

    classification_queue.enqueue(photo.id)
    return StandardResponse(data=_to_response(photo), message="Waste photo queued for classification")


@router.get("", response_model=PagedResponse[WastePhotoResponse])
async def list_waste_photos(
    response: Response,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    company_id: uuid.UUID,
    user_id: uuid.UUID | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=200),
):
    """Sorting history of a company. Employees only see their own photos."""
    if not await CompanyService.can_manage(current_user, company_id, db):
        if not await CompanyService.is_employee(current_user.id, company_id, db):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this company")
        if user_id and user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")
        user_id = current_user.id

    filters = [WastePhoto.company_id == company_id]
    if user_id:
        filters.append(WastePhoto.user_id == user_id)
    if date_from:
        filters.append(WastePhoto.created_at >= date_from)
    if date_to:
        filters.append(WastePhoto.created_at <= date_to)

    total = int((await db.execute(select(func.count(WastePhoto.id)).where(*filters))).scalar() or 0)
    response.headers["X-Total-Count"] = str(total)
    stmt = select(WastePhoto).where(*filters).order_by(WastePhoto.created_at.desc()).offset(skip).limit(take)
    photos = (await db.execute(stmt)).scalars().all()
    return PagedResponse(data=[_to_response(p) for p in photos], total=total, skip=skip, take=take)


@router.get("/{photo_id}", response_model=StandardResponse[WastePhotoResponse])
async def get_waste_photo(
    photo_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    photo = (await db.execute(select(WastePhoto).where(WastePhoto.id == photo_id))).scalar_one_or_none()
    if not photo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Waste photo not found")
    if photo.user_id != current_user.id and not await CompanyService.can_manage(current_user, photo.company_id, db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")
    return StandardResponse(data=_to_response(photo))


@router.post("/{photo_id}/reclassify", response_model=StandardResponse[WastePhotoResponse])
async def reclassify_waste_photo(
    photo_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Put a FAILED or stuck PENDING photo back on the classification queue."""
    photo = (await db.execute(select(WastePhoto).where(WastePhoto.id == photo_id))).scalar_one_or_none()
    if not photo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Waste photo not found")
    if not _can_requeue(photo):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only failed or stale pending photos can be reclassified",
        )

    photo.status = WastePhotoStatus.PENDING
    photo.updated_at = datetime.now(timezone.utc)
    await db.commit()
    classification_queue.enqueue(photo.id)
    return StandardResponse(data=_to_response(photo), message="Waste photo queued for classification")
