"""Cleaning job model."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propdesk.database import Base


class CleaningStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


OPEN_CLEANING_STATUSES = (CleaningStatus.PENDING, CleaningStatus.SCHEDULED)


class CleaningJob(Base):
    __tablename__ = "cleaning_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    booking_id: Mapped[int | None] = mapped_column(ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[CleaningStatus] = mapped_column(
        SAEnum(CleaningStatus, native_enum=False, length=20), default=CleaningStatus.PENDING
    )
    is_turnover: Mapped[bool] = mapped_column(Boolean, default=False)  # Another guest arrives the same day
    priority: Mapped[str] = mapped_column(String(20), default="normal")  # normal, high
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    prop: Mapped["Property"] = relationship(back_populates="cleaning_jobs")  # noqa: F821
    booking: Mapped["Booking | None"] = relationship(back_populates="cleaning_jobs")  # noqa: F821

    def __repr__(self) -> str:
        return f"<CleaningJob id={self.id} date={self.scheduled_date} status={self.status}>"
