"""Local booking management and cleaning-job automation."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from propdesk.config import cleaning_config
from propdesk.database import get_session
from propdesk.events import Event, EventType, event_bus
from propdesk.exceptions import NotFoundError, ValidationError, VersionConflictError
from propdesk.models.booking import Booking, BookingKind, BookingSource, BookingStatus
from propdesk.models.cleaning import OPEN_CLEANING_STATUSES, CleaningJob, CleaningStatus
from propdesk.models.property import Property

logger = logging.getLogger(__name__)

EDITABLE_BOOKING_FIELDS = (
    "guest_name",
    "guest_email",
    "guest_phone",
    "check_in",
    "check_out",
    "num_guests",
    "total_amount",
    "source",
    "status",
    "notes",
)

REQUIRED_BOOKING_FIELDS = ("check_in", "check_out", "status", "source")


def is_turnover(session: Session, property_id: int, checkout_date: date, exclude_id: int | None = None) -> bool:
    """Check if another live entry checks in on the given checkout date."""
    query = session.query(Booking).filter(
        Booking.property_id == property_id,
        Booking.check_in == checkout_date,
        Booking.kind == BookingKind.RESERVATION,
        Booking.status != BookingStatus.CANCELLED,
    )
    if exclude_id is not None:
        query = query.filter(Booking.id != exclude_id)
    return query.first() is not None


def schedule_cleaning_job(session: Session, booking: Booking) -> CleaningJob:
    """Add a PENDING cleaning job on the booking's checkout date. Caller commits."""
    turnover = is_turnover(session, booking.property_id, booking.check_out, exclude_id=booking.id)
    job = CleaningJob(
        property_id=booking.property_id,
        booking=booking,
        scheduled_date=booking.check_out,
        status=CleaningStatus.PENDING,
        is_turnover=turnover,
        priority=cleaning_config().priority_for(turnover),
    )
    session.add(job)
    return job


def reschedule_open_jobs(booking: Booking) -> int:
    """Move the booking's open cleaning jobs onto its current checkout date."""
    moved = 0
    for job in booking.cleaning_jobs:
        if job.status in OPEN_CLEANING_STATUSES and job.scheduled_date != booking.check_out:
            job.scheduled_date = booking.check_out
            moved += 1
    return moved


def _check_required(booking: Booking, changes: dict[str, Any]) -> None:
    for key in REQUIRED_BOOKING_FIELDS:
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} must not be null")
    if booking.kind == BookingKind.RESERVATION and "guest_name" in changes and not changes["guest_name"]:
        raise ValidationError("guest_name is required")


def validate_stay(check_in: date | None, check_out: date | None) -> None:
    if check_in is None or check_out is None:
        raise ValidationError("check_in and check_out are required")
    if check_out <= check_in:
        raise ValidationError("check_out must be after check_in")


class OperationsManager:
    """Creates and edits local bookings and keeps their cleaning jobs in step."""

    def setup_event_handlers(self) -> None:
        event_bus.subscribe(EventType.BOOKING_CANCELLED, self._on_booking_cancelled)

    def _on_booking_cancelled(self, event: Event) -> None:
        """Mark open cleaning jobs of a cancelled booking as cancelled. Jobs are kept."""
        booking_id = event.data.get("booking_id")
        if not booking_id:
            return
        session = get_session()
        try:
            jobs = (
                session.query(CleaningJob)
                .filter(
                    CleaningJob.booking_id == booking_id,
                    CleaningJob.status.in_(OPEN_CLEANING_STATUSES),
                )
                .all()
            )
            for job in jobs:
                job.status = CleaningStatus.CANCELLED
            session.commit()
            logger.info("Cancelled %d cleaning jobs for booking %s", len(jobs), booking_id)
        finally:
            session.close()

    # --- Bookings ---

    def create_booking(
        self,
        property_id: int,
        *,
        guest_name: str | None,
        check_in: date | None,
        check_out: date | None,
        guest_email: str | None = None,
        guest_phone: str | None = None,
        num_guests: int | None = None,
        total_amount: float | None = None,
        source: BookingSource = BookingSource.DIRECT,
        status: BookingStatus = BookingStatus.CONFIRMED,
        notes: str | None = None,
    ) -> Booking:
        """Create a guest booking and its checkout cleaning job in one transaction."""
        if not guest_name:
            raise ValidationError("guest_name is required")
        validate_stay(check_in, check_out)

        session = get_session()
        try:
            if session.get(Property, property_id) is None:
                raise NotFoundError(f"Property {property_id} not found")

            booking = Booking(
                property_id=property_id,
                kind=BookingKind.RESERVATION,
                guest_name=guest_name,
                guest_email=guest_email,
                guest_phone=guest_phone,
                check_in=check_in,
                check_out=check_out,
                num_guests=num_guests or 1,
                total_amount=total_amount,
                source=source,
                status=status,
                notes=notes,
            )
            session.add(booking)
            job = schedule_cleaning_job(session, booking)
            try:
                session.commit()
            except Exception:
                session.rollback()
                raise

            logger.info(
                "Created booking %s for %s (%s to %s)",
                booking.id, guest_name, check_in, check_out,
            )
            event_bus.publish(Event(
                event_type=EventType.BOOKING_CREATED,
                data={"booking_id": booking.id, "property_id": property_id},
            ))
            event_bus.publish(Event(
                event_type=EventType.CLEANING_JOB_CREATED,
                data={
                    "job_id": job.id,
                    "property_id": property_id,
                    "date": str(job.scheduled_date),
                    "is_turnover": job.is_turnover,
                },
            ))
            return booking
        finally:
            session.close()

    def update_booking(
        self, booking_id: int, *, expected_version: int | None = None, **changes: Any
    ) -> Booking:
        """Apply edits to a booking, refusing if it changed since ``expected_version``."""
        unknown = set(changes) - set(EDITABLE_BOOKING_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown booking fields: {', '.join(sorted(unknown))}")

        session = get_session()
        try:
            booking = session.get(Booking, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            if expected_version is not None and booking.version != expected_version:
                raise VersionConflictError(
                    f"Booking {booking_id} is at version {booking.version}, not {expected_version}"
                )

            _check_required(booking, changes)
            was_cancelled = booking.status == BookingStatus.CANCELLED
            for key, value in changes.items():
                setattr(booking, key, value)
            validate_stay(booking.check_in, booking.check_out)

            if "check_out" in changes:
                reschedule_open_jobs(booking)

            try:
                session.commit()
            except StaleDataError as exc:
                session.rollback()
                raise VersionConflictError(f"Booking {booking_id} was modified concurrently") from exc
            except IntegrityError as exc:
                session.rollback()
                raise ValidationError(f"Booking {booking_id} could not be saved: {exc.orig}") from exc

            event_bus.publish(Event(
                event_type=EventType.BOOKING_UPDATED,
                data={"booking_id": booking.id, "property_id": booking.property_id},
            ))
            if booking.status == BookingStatus.CANCELLED and not was_cancelled:
                event_bus.publish(Event(
                    event_type=EventType.BOOKING_CANCELLED,
                    data={"booking_id": booking.id, "property_id": booking.property_id},
                ))
            return booking
        finally:
            session.close()

    def delete_booking(self, booking_id: int) -> None:
        session = get_session()
        try:
            booking = session.get(Booking, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            session.delete(booking)
            session.commit()
        finally:
            session.close()

    # --- Cleaning jobs ---

    def list_cleaning_jobs(
        self, property_id: int | None = None, status: CleaningStatus | None = None
    ) -> list[CleaningJob]:
        session = get_session()
        try:
            query = session.query(CleaningJob).order_by(CleaningJob.scheduled_date)
            if property_id:
                query = query.filter(CleaningJob.property_id == property_id)
            if status:
                query = query.filter(CleaningJob.status == status)
            return query.all()
        finally:
            session.close()

    def update_cleaning_job(
        self,
        job_id: int,
        *,
        status: CleaningStatus | None = None,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> CleaningJob:
        session = get_session()
        try:
            job = session.get(CleaningJob, job_id)
            if job is None:
                raise NotFoundError(f"Cleaning job {job_id} not found")
            if status is not None:
                job.status = status
                job.completed_at = (
                    datetime.now(timezone.utc) if status == CleaningStatus.COMPLETED else None
                )
            if notes is not None:
                job.notes = notes
            if scheduled_date is not None:
                job.scheduled_date = scheduled_date
            session.commit()
            return job
        finally:
            session.close()


operations_manager = OperationsManager()
