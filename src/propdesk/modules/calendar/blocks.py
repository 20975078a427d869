"""Calendar blocks and availability checks against Smoobu."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from propdesk.database import get_session
from propdesk.events import Event, EventType, event_bus
from propdesk.exceptions import NotFoundError, ValidationError
from propdesk.models.booking import Booking, BookingKind, BookingSource, BookingStatus
from propdesk.models.property import Property
from propdesk.modules.operations.ops import validate_stay
from propdesk.modules.smoobu.client import SmoobuClient

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityReport:
    property_id: int
    start: date
    end: date
    is_available: bool
    entries: list[Booking] = field(default_factory=list)


class CalendarManager:
    """Blocks and unblocks date ranges on linked properties."""

    def __init__(self, client: SmoobuClient | None = None) -> None:
        self._client = client or SmoobuClient()

    def _linked_property(self, session: Session, property_id: int) -> Property:
        prop = session.get(Property, property_id)
        if prop is None or not prop.smoobu_id:
            raise NotFoundError("Property not found or not linked to Smoobu")
        return prop

    def check_availability(self, property_id: int, start: date, end: date) -> AvailabilityReport:
        """Ask Smoobu whether ``[start, end)`` is free and list local entries overlapping it."""
        validate_stay(start, end)
        session = get_session()
        try:
            prop = self._linked_property(session, property_id)
            is_available = self._client.check_availability(prop.smoobu_id, start, end)
            entries = (
                session.query(Booking)
                .filter(
                    Booking.property_id == property_id,
                    Booking.status != BookingStatus.CANCELLED,
                    Booking.check_in < end,
                    Booking.check_out > start,
                )
                .order_by(Booking.check_in)
                .all()
            )
            return AvailabilityReport(
                property_id=property_id,
                start=start,
                end=end,
                is_available=is_available,
                entries=entries,
            )
        finally:
            session.close()

    def block_dates(self, property_id: int, start: date, end: date, note: str | None = None) -> Booking:
        """Block ``[start, end)`` upstream, then record the block locally."""
        validate_stay(start, end)
        session = get_session()
        try:
            prop = self._linked_property(session, property_id)
            created = self._client.block_dates(prop.smoobu_id, start, end, note)

            block = Booking(
                property_id=property_id,
                smoobu_id=str(created["id"]) if created.get("id") is not None else None,
                kind=BookingKind.BLOCK,
                check_in=start,
                check_out=end,
                status=BookingStatus.CONFIRMED,
                source=BookingSource.SMOOBU,
                notes=note,
                synced_at=datetime.now(timezone.utc),
            )
            session.add(block)
            session.commit()
            logger.info("Blocked %s to %s on %s", start, end, prop.name)
            event_bus.publish(Event(
                event_type=EventType.DATES_BLOCKED,
                data={"booking_id": block.id, "property_id": property_id},
            ))
            return block
        finally:
            session.close()

    def unblock_dates(self, booking_id: int) -> None:
        """Remove a block. Guest reservations are refused."""
        session = get_session()
        try:
            block = session.get(Booking, booking_id)
            if block is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            if block.kind != BookingKind.BLOCK:
                raise ValidationError("Can only unblock blocked dates, not actual bookings")

            if block.smoobu_id:
                self._client.cancel_reservation(block.smoobu_id)

            property_id = block.property_id
            session.delete(block)
            session.commit()
            logger.info("Unblocked booking %s on property %s", booking_id, property_id)
            event_bus.publish(Event(
                event_type=EventType.DATES_UNBLOCKED,
                data={"booking_id": booking_id, "property_id": property_id},
            ))
        finally:
            session.close()

    # --- Remote rates ---

    def get_remote_rates(self, property_id: int, start: date, end: date) -> dict[str, dict]:
        """Return Smoobu's per-day rate entries for the property, keyed by ISO date."""
        if end < start:
            raise ValidationError("end_date must not be before start_date")
        session = get_session()
        try:
            prop = self._linked_property(session, property_id)
            apartment_id = prop.smoobu_id
        finally:
            session.close()
        rates = self._client.get_rates([apartment_id], start, end)
        return rates.get(str(apartment_id)) or {}

    def push_remote_rates(
        self,
        property_id: int,
        start: date,
        end: date,
        *,
        price: float | None = None,
        min_stay: int | None = None,
        available: bool | None = None,
    ) -> None:
        if end < start:
            raise ValidationError("end_date must not be before start_date")
        if price is None and min_stay is None and available is None:
            raise ValidationError("Nothing to update: give price, min_stay or available")
        if price is not None and price < 0:
            raise ValidationError("price must not be negative")
        session = get_session()
        try:
            prop = self._linked_property(session, property_id)
            apartment_id = prop.smoobu_id
        finally:
            session.close()
        self._client.set_rates(
            [apartment_id], start, end, price=price, min_stay=min_stay, available=available
        )
        logger.info("Pushed rates for %s to %s on property %s", start, end, property_id)
