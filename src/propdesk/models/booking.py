"""Booking model: reservations and calendar blocks on a property."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propdesk.database import Base


class BookingKind(str, Enum):
    RESERVATION = "RESERVATION"
    BLOCK = "BLOCK"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"


class BookingSource(str, Enum):
    AIRBNB = "AIRBNB"
    BOOKING_COM = "BOOKING_COM"
    VRBO = "VRBO"
    DIRECT = "DIRECT"
    SMOOBU = "SMOOBU"


class Booking(Base):
    """One entry on a property's calendar over ``[check_in, check_out)``.

    ``kind`` tells a guest reservation apart from a calendar block. Blocks carry
    no guest fields; their free-text reason lives in ``notes``.
    """

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    smoobu_id: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    kind: Mapped[BookingKind] = mapped_column(
        SAEnum(BookingKind, native_enum=False, length=20), default=BookingKind.RESERVATION
    )
    guest_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    guest_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    guest_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    num_guests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, native_enum=False, length=20), default=BookingStatus.CONFIRMED
    )
    source: Mapped[BookingSource] = mapped_column(
        SAEnum(BookingSource, native_enum=False, length=20), default=BookingSource.DIRECT
    )
    external_status: Mapped[str | None] = mapped_column(String(50), nullable=True)  # Raw Smoobu status when unmapped
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    prop: Mapped["Property"] = relationship(back_populates="bookings")  # noqa: F821
    cleaning_jobs: Mapped[list["CleaningJob"]] = relationship(back_populates="booking")  # noqa: F821
    messages: Mapped[list["Message"]] = relationship(  # noqa: F821
        back_populates="booking", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Booking id={self.id} property_id={self.property_id} kind={self.kind} "
            f"guest={self.guest_name!r} {self.check_in}..{self.check_out}>"
        )

    def occupies(self, day: date) -> bool:
        """Half-open containment: the checkout day itself is free."""
        if self.status == BookingStatus.CANCELLED:
            return False
        return self.check_in <= day < self.check_out
