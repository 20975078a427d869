"""Pure translations from Smoobu wire shapes to local field sets."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from propdesk.models.booking import BookingKind, BookingSource, BookingStatus
from propdesk.models.message import MessageSender

logger = logging.getLogger(__name__)

CHANNEL_SOURCES: dict[str, BookingSource] = {
    "Airbnb": BookingSource.AIRBNB,
    "Booking.com": BookingSource.BOOKING_COM,
    "VRBO": BookingSource.VRBO,
    "Direct": BookingSource.DIRECT,
}

# Keys are lower-cased before lookup
STATUS_MAP: dict[str, BookingStatus] = {
    "confirmed": BookingStatus.CONFIRMED,
    "pending": BookingStatus.PENDING,
    "cancelled": BookingStatus.CANCELLED,
    "checked-in": BookingStatus.CHECKED_IN,
    "checked-out": BookingStatus.CHECKED_OUT,
}

# Unrecognized statuses fall back to this value; the raw string is kept alongside.
DEFAULT_STATUS = BookingStatus.CONFIRMED


@dataclass(frozen=True)
class BookingFields:
    smoobu_id: str
    kind: BookingKind
    check_in: date
    check_out: date
    status: BookingStatus
    source: BookingSource
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    num_guests: int | None = None
    total_amount: float | None = None
    notes: str | None = None
    unmapped_status: str | None = None

    def model_fields(self) -> dict[str, Any]:
        """Column values for ``Booking``; ``unmapped_status`` lands in ``external_status``."""
        values = asdict(self)
        values["external_status"] = values.pop("unmapped_status")
        return values


@dataclass(frozen=True)
class PropertyFields:
    smoobu_id: str
    name: str
    address: str = ""
    city: str = ""
    postal_code: str | None = None
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None
    bedrooms: int | None = None

    def model_fields(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MessageFields:
    smoobu_id: str
    booking_id: int
    content: str
    sender: MessageSender
    subject: str | None = None
    sent_at: datetime | None = None

    def model_fields(self) -> dict[str, Any]:
        return asdict(self)


def _parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable Smoobu timestamp: %r", value)
        return None


def map_status(raw: str | None) -> tuple[BookingStatus, str | None]:
    """Return the local status and, when the lookup missed, the raw value."""
    if raw and raw.lower() in STATUS_MAP:
        return STATUS_MAP[raw.lower()], None
    return DEFAULT_STATUS, raw or None


def map_channel(name: str | None) -> BookingSource:
    return CHANNEL_SOURCES.get(name or "", BookingSource.SMOOBU)


def map_reservation_to_booking(reservation: dict[str, Any]) -> BookingFields:
    """Translate one Smoobu reservation into ``Booking`` column values."""
    status, unmapped = map_status(reservation.get("status"))
    channel = reservation.get("channel") or {}
    source = map_channel(channel.get("name"))

    if reservation.get("is-blocked-booking"):
        return BookingFields(
            smoobu_id=str(reservation["id"]),
            kind=BookingKind.BLOCK,
            check_in=_parse_date(reservation["arrival"]),
            check_out=_parse_date(reservation["departure"]),
            status=status,
            source=source,
            notes=reservation.get("host-notice") or None,
            unmapped_status=unmapped,
        )

    guests = (reservation.get("adults") or 0) + (reservation.get("children") or 0)
    return BookingFields(
        smoobu_id=str(reservation["id"]),
        kind=BookingKind.RESERVATION,
        check_in=_parse_date(reservation["arrival"]),
        check_out=_parse_date(reservation["departure"]),
        status=status,
        source=source,
        guest_name=reservation.get("guest-name") or None,
        guest_email=reservation.get("email") or None,
        guest_phone=reservation.get("phone") or None,
        num_guests=guests,
        total_amount=reservation.get("price") or None,
        notes=reservation.get("guest-notice") or None,
        unmapped_status=unmapped,
    )


def map_apartment_to_property(apartment: dict[str, Any]) -> PropertyFields:
    country = apartment.get("country") or {}
    location = apartment.get("location") or {}
    rooms = apartment.get("rooms") or {}
    return PropertyFields(
        smoobu_id=str(apartment["id"]),
        name=apartment.get("name") or f"Apartment {apartment['id']}",
        address=apartment.get("street") or "",
        city=apartment.get("city") or "",
        postal_code=apartment.get("postalCode") or None,
        country=country.get("name") or "",
        latitude=location.get("latitude") or None,
        longitude=location.get("longitude") or None,
        bedrooms=rooms.get("bedrooms") or None,
    )


def map_message_to_local(message: dict[str, Any], booking_id: int) -> MessageFields:
    return MessageFields(
        smoobu_id=str(message["id"]),
        booking_id=booking_id,
        content=message.get("messageText") or message.get("messageHtml") or "",
        sender=MessageSender.HOST if message.get("direction") == "out" else MessageSender.GUEST,
        subject=message.get("subject") or None,
        sent_at=_parse_datetime(message.get("createdAt")),
    )
