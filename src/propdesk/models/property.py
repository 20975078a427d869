"""Property model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propdesk.database import Base


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(500), default="")
    city: Mapped[str] = mapped_column(String(200), default="")
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str] = mapped_column(String(100), default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    daily_rate: Mapped[float | None] = mapped_column(Float, nullable=True)  # Default nightly rate
    rent: Mapped[float | None] = mapped_column(Float, nullable=True)  # Monthly rent
    smoobu_id: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE")  # ACTIVE, INACTIVE
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    bookings: Mapped[list["Booking"]] = relationship(  # noqa: F821
        back_populates="prop", cascade="all, delete-orphan"
    )
    rates: Mapped[list["PropertyRate"]] = relationship(  # noqa: F821
        back_populates="prop", cascade="all, delete-orphan"
    )
    cleaning_jobs: Mapped[list["CleaningJob"]] = relationship(  # noqa: F821
        back_populates="prop", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Property id={self.id} name={self.name!r} smoobu_id={self.smoobu_id!r}>"
