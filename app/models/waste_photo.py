import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base
from app.models.enums import TrashBinType, WastePhotoStatus


class WastePhoto(Base):
    """A photo of waste submitted by an employee for classification."""
    __tablename__ = "waste_photos"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    collection_area_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("collection_areas.id", ondelete="SET NULL"), nullable=True
    )
    image_url: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[WastePhotoStatus] = mapped_column(
        SAEnum(WastePhotoStatus, native_enum=False), default=WastePhotoStatus.PENDING, nullable=False
    )
    recommended_bin_type: Mapped[TrashBinType | None] = mapped_column(
        SAEnum(TrashBinType, native_enum=False), nullable=True
    )
    ai_explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_raw_result: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
