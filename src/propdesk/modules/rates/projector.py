"""Per-day rate projection and occupancy over a property's calendar."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from propdesk.database import get_session
from propdesk.exceptions import NotFoundError, ValidationError, VersionConflictError
from propdesk.models.booking import Booking, BookingStatus
from propdesk.models.property import Property
from propdesk.models.rate import PropertyRate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyRate:
    date: date
    rate: float
    is_custom: bool


@dataclass(frozen=True)
class CalendarDay:
    date: date
    rate: float
    is_custom: bool
    occupied: bool


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day in the inclusive range ``[start, end]``."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _check_range(start: date, end: date) -> None:
    if start is None or end is None:
        raise ValidationError("start and end dates are required")
    if end < start:
        raise ValidationError(f"End date {end} is before start date {start}")


class RateProjector:
    """Overlays per-date overrides on a property's default nightly rate."""

    def project_rates(self, property_id: int, start: date, end: date) -> list[DailyRate]:
        """One entry per day in ``[start, end]``: override, else default rate, else 0."""
        _check_range(start, end)
        session = get_session()
        try:
            prop = self._get_property(session, property_id)
            return self._project(session, prop, start, end)
        finally:
            session.close()

    def set_rate_range(self, property_id: int, start: date, end: date, rate: float | None) -> int:
        """Upsert an override for every day in ``[start, end]`` in one transaction."""
        _check_range(start, end)
        if rate is None:
            raise ValidationError("rate is required")
        if rate < 0:
            raise ValidationError("rate must not be negative")

        session = get_session()
        try:
            self._get_property(session, property_id)
            existing = self._overrides(session, property_id, start, end)
            count = 0
            for day in iter_days(start, end):
                override = existing.get(day)
                if override is None:
                    session.add(PropertyRate(property_id=property_id, date=day, rate=rate))
                else:
                    override.rate = rate
                count += 1
            try:
                session.commit()
            except StaleDataError as exc:
                session.rollback()
                raise VersionConflictError(
                    f"Rates for property {property_id} were modified concurrently"
                ) from exc
            except Exception:
                session.rollback()
                raise
            logger.info("Set rate %.2f on %d date(s) for property %s", rate, count, property_id)
            return count
        finally:
            session.close()

    def clear_rate_range(self, property_id: int, start: date, end: date) -> int:
        """Delete overrides in ``[start, end]``, reverting those days to the default rate."""
        _check_range(start, end)
        session = get_session()
        try:
            removed = (
                session.query(PropertyRate)
                .filter(
                    PropertyRate.property_id == property_id,
                    PropertyRate.date >= start,
                    PropertyRate.date <= end,
                )
                .delete(synchronize_session=False)
            )
            session.commit()
            logger.info("Removed %d rate override(s) for property %s", removed, property_id)
            return removed
        finally:
            session.close()

    def is_occupied(self, property_id: int, day: date) -> bool:
        """True if a non-cancelled entry covers ``day`` under ``[check_in, check_out)``."""
        session = get_session()
        try:
            hit = (
                session.query(Booking.id)
                .filter(
                    Booking.property_id == property_id,
                    Booking.status != BookingStatus.CANCELLED,
                    Booking.check_in <= day,
                    Booking.check_out > day,
                )
                .first()
            )
            return hit is not None
        finally:
            session.close()

    def get_calendar(self, property_id: int, start: date, end: date) -> list[CalendarDay]:
        """Rate projection plus occupancy for every day in ``[start, end]``."""
        _check_range(start, end)
        session = get_session()
        try:
            prop = self._get_property(session, property_id)
            rates = self._project(session, prop, start, end)
            occupied = self._occupied_days(session, property_id, start, end)
            return [
                CalendarDay(date=r.date, rate=r.rate, is_custom=r.is_custom, occupied=r.date in occupied)
                for r in rates
            ]
        finally:
            session.close()

    # --- Helpers ---

    def _get_property(self, session: Session, property_id: int) -> Property:
        prop = session.get(Property, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop

    def _overrides(
        self, session: Session, property_id: int, start: date, end: date
    ) -> dict[date, PropertyRate]:
        overrides = (
            session.query(PropertyRate)
            .filter(
                PropertyRate.property_id == property_id,
                PropertyRate.date >= start,
                PropertyRate.date <= end,
            )
            .all()
        )
        return {o.date: o for o in overrides}

    def _project(self, session: Session, prop: Property, start: date, end: date) -> list[DailyRate]:
        overrides = self._overrides(session, prop.id, start, end)
        default = prop.daily_rate or 0.0
        projection = []
        for day in iter_days(start, end):
            override = overrides.get(day)
            projection.append(DailyRate(
                date=day,
                rate=override.rate if override is not None else default,
                is_custom=override is not None,
            ))
        return projection

    def _occupied_days(self, session: Session, property_id: int, start: date, end: date) -> set[date]:
        bookings = (
            session.query(Booking)
            .filter(
                Booking.property_id == property_id,
                Booking.status != BookingStatus.CANCELLED,
                Booking.check_in <= end,
                Booking.check_out > start,
            )
            .all()
        )
        return {day for day in iter_days(start, end) if any(b.occupies(day) for b in bookings)}
