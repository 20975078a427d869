"""Smoobu → local reconciliation of properties, reservations and messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator

from sqlalchemy.orm import Session

from propdesk.config import smoobu_config
from propdesk.database import get_session
from propdesk.events import Event, EventType, event_bus
from propdesk.exceptions import ConfigurationError, NotFoundError, ValidationError
from propdesk.models.booking import Booking, BookingKind, BookingStatus
from propdesk.models.message import Message
from propdesk.models.property import Property
from propdesk.modules.operations.ops import reschedule_open_jobs, schedule_cleaning_job
from propdesk.modules.smoobu.client import SmoobuClient
from propdesk.modules.smoobu.mappers import (
    BookingFields,
    map_apartment_to_property,
    map_message_to_local,
    map_reservation_to_booking,
)

logger = logging.getLogger(__name__)

@dataclass
class SyncResult:
    synced: int = 0
    created: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    unmapped_statuses: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "synced": self.synced,
            "created": self.created,
            "updated": self.updated,
        }
        if self.errors:
            payload["errors"] = self.errors
        if self.unmapped_statuses:
            payload["unmapped_statuses"] = self.unmapped_statuses
        return payload


@dataclass
class _PropertyOutcome:
    result: SyncResult = field(default_factory=SyncResult)
    events: list[Event] = field(default_factory=list)


def _apply_fields(booking: Booking, values: dict[str, Any]) -> bool:
    """Copy mapped values onto a booking. Returns True if anything changed."""
    changed = False
    for key, value in values.items():
        if getattr(booking, key) != value:
            setattr(booking, key, value)
            changed = True
    return changed


class ReservationSyncer:
    """Mirrors Smoobu reservations into local bookings, idempotently by external id.

    Each linked property is synced in its own transaction. A failure while
    fetching or applying one property's reservations rolls back that property
    only and is reported in ``SyncResult.errors``; the remaining properties
    still sync.
    """

    def __init__(self, client: SmoobuClient | None = None, page_size: int | None = None) -> None:
        self._client = client or SmoobuClient()
        self._page_size = page_size or smoobu_config().page_size

    # --- Reservations ---

    def sync_reservations(self, property_id: int | None = None) -> SyncResult:
        """Pull reservations for every linked property, or just ``property_id``."""
        if not self._client.is_configured:
            raise ConfigurationError("Smoobu API key not configured")

        session = get_session()
        try:
            query = session.query(Property).filter(Property.smoobu_id.isnot(None))
            if property_id is not None:
                query = query.filter(Property.id == property_id)
            properties = query.order_by(Property.id).all()
            if not properties:
                raise ValidationError("No properties with Smoobu IDs found")

            total = SyncResult()
            for prop in properties:
                name = prop.name
                try:
                    outcome = self._sync_property(session, prop)
                    prop.last_synced_at = datetime.now(timezone.utc)
                    session.commit()
                except Exception as exc:
                    session.rollback()
                    logger.exception("Failed to sync reservations for property %s", name)
                    total.errors.append(f"{name}: {exc}")
                    continue

                total.synced += outcome.result.synced
                total.created += outcome.result.created
                total.updated += outcome.result.updated
                total.unmapped_statuses.extend(outcome.result.unmapped_statuses)
                event_bus.publish_all(outcome.events)

            logger.info(
                "Reservation sync done: synced=%d created=%d updated=%d errors=%d",
                total.synced, total.created, total.updated, len(total.errors),
            )
            event_bus.publish(Event(
                event_type=EventType.SYNC_COMPLETED,
                data={"synced": total.synced, "created": total.created, "updated": total.updated},
            ))
            return total
        finally:
            session.close()

    def _iter_reservations(self, apartment_id: str) -> Iterator[dict[str, Any]]:
        """Yield reservations across every page for one apartment."""
        page = 1
        while True:
            result = self._client.list_reservations(
                apartment_id=apartment_id, page=page, page_size=self._page_size
            )
            yield from result.bookings
            if result.is_last:
                return
            page += 1

    def _sync_property(self, session: Session, prop: Property) -> _PropertyOutcome:
        """Upsert all reservations of one property. Does not commit."""
        logger.info("Syncing reservations for property: %s", prop.name)
        outcome = _PropertyOutcome()
        now = datetime.now(timezone.utc)

        for reservation in self._iter_reservations(prop.smoobu_id):
            fields = map_reservation_to_booking(reservation)
            if fields.unmapped_status:
                logger.warning(
                    "Unmapped Smoobu status %r on reservation %s, defaulting to %s",
                    fields.unmapped_status, fields.smoobu_id, fields.status.value,
                )
                outcome.result.unmapped_statuses.append(fields.unmapped_status)

            existing = session.query(Booking).filter(Booking.smoobu_id == fields.smoobu_id).first()
            if existing is not None:
                self._update_booking(existing, fields, prop, now, outcome)
                outcome.result.updated += 1
            else:
                self._create_booking(session, fields, prop, now, outcome)
                outcome.result.created += 1
            outcome.result.synced += 1

        return outcome

    def _update_booking(
        self,
        booking: Booking,
        fields: BookingFields,
        prop: Property,
        now: datetime,
        outcome: _PropertyOutcome,
    ) -> None:
        was_cancelled = booking.status == BookingStatus.CANCELLED
        values = fields.model_fields()
        values["property_id"] = prop.id
        if booking.property_id != prop.id:
            logger.info(
                "Reservation %s moved from property %s to %s",
                fields.smoobu_id, booking.property_id, prop.id,
            )
        if not _apply_fields(booking, values):
            return

        booking.synced_at = now
        moved = reschedule_open_jobs(booking)
        if moved:
            logger.info(
                "Moved %d cleaning job(s) for reservation %s to %s",
                moved, fields.smoobu_id, booking.check_out,
            )
        outcome.events.append(Event(
            event_type=EventType.BOOKING_UPDATED,
            data={"booking_id": booking.id, "property_id": prop.id},
        ))
        if booking.status == BookingStatus.CANCELLED and not was_cancelled:
            outcome.events.append(Event(
                event_type=EventType.BOOKING_CANCELLED,
                data={"booking_id": booking.id, "property_id": prop.id},
            ))

    def _create_booking(
        self,
        session: Session,
        fields: BookingFields,
        prop: Property,
        now: datetime,
        outcome: _PropertyOutcome,
    ) -> None:
        booking = Booking(property_id=prop.id, synced_at=now, **fields.model_fields())
        session.add(booking)
        session.flush()
        logger.info(
            "New %s from Smoobu: %s, %s to %s",
            fields.kind.value.lower(), prop.name, fields.check_in, fields.check_out,
        )
        outcome.events.append(Event(
            event_type=EventType.BOOKING_CREATED,
            data={"booking_id": booking.id, "property_id": prop.id},
        ))
        if fields.kind == BookingKind.BLOCK:
            return

        job = schedule_cleaning_job(session, booking)
        session.flush()
        outcome.events.append(Event(
            event_type=EventType.CLEANING_JOB_CREATED,
            data={
                "job_id": job.id,
                "property_id": prop.id,
                "date": str(job.scheduled_date),
                "is_turnover": job.is_turnover,
            },
        ))

    # --- Properties ---

    def sync_properties(self) -> SyncResult:
        """Upsert Smoobu apartments into local properties keyed on ``smoobu_id``."""
        apartments = self._client.list_apartments()
        result = SyncResult()
        if not apartments:
            return result

        session = get_session()
        try:
            for apartment in apartments:
                fields = map_apartment_to_property(apartment)
                existing = (
                    session.query(Property).filter(Property.smoobu_id == fields.smoobu_id).first()
                )
                if existing is not None:
                    existing.name = fields.name
                    existing.address = fields.address or existing.address
                    existing.city = fields.city or existing.city
                    existing.country = fields.country or existing.country
                    existing.postal_code = fields.postal_code
                    existing.latitude = fields.latitude
                    existing.longitude = fields.longitude
                    existing.bedrooms = fields.bedrooms
                    result.updated += 1
                else:
                    session.add(Property(status="ACTIVE", **fields.model_fields()))
                    result.created += 1
                result.synced += 1
            session.commit()
            logger.info(
                "Property sync done: synced=%d created=%d updated=%d",
                result.synced, result.created, result.updated,
            )
            return result
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Messages ---

    def sync_messages(self, booking_id: int) -> int:
        """Insert Smoobu messages not yet stored locally. Returns the number inserted."""
        session = get_session()
        try:
            booking = session.get(Booking, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            if not booking.smoobu_id:
                return 0

            now = datetime.now(timezone.utc)
            inserted = 0
            for raw in self._client.list_messages(booking.smoobu_id):
                fields = map_message_to_local(raw, booking.id)
                exists = session.query(Message.id).filter(Message.smoobu_id == fields.smoobu_id).first()
                if exists:
                    continue
                values = fields.model_fields()
                values["sent_at"] = values["sent_at"] or now
                session.add(Message(synced_at=now, **values))
                session.flush()
                inserted += 1
            session.commit()
            if inserted:
                logger.info("Stored %d new messages for booking %s", inserted, booking_id)
            return inserted
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
