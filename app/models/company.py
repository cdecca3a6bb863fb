import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, ForeignKey, String, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base
from app.models.enums import TrashBinType


user_employee_companies = Table(
    "user_employee_companies",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("company_id", Uuid, ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True),
)


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class CollectionArea(Base):
    """A place inside a company where employees throw out waste."""
    __tablename__ = "collection_areas"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class CollectionAreaBin(Base):
    __tablename__ = "collection_area_bins"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    collection_area_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("collection_areas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bin_type: Mapped[TrashBinType] = mapped_column(SAEnum(TrashBinType, native_enum=False), nullable=False)
