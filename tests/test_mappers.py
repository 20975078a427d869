"""Tests for the Smoobu → local field mappers."""

from datetime import date, datetime

from propdesk.models.booking import BookingKind, BookingSource, BookingStatus
from propdesk.models.message import MessageSender
from propdesk.modules.smoobu.mappers import (
    map_apartment_to_property,
    map_channel,
    map_message_to_local,
    map_reservation_to_booking,
    map_status,
)


def test_map_reservation_guest_fields(reservation_factory):
    fields = map_reservation_to_booking(reservation_factory(5001))

    assert fields.smoobu_id == "5001"
    assert fields.kind == BookingKind.RESERVATION
    assert fields.check_in == date(2026, 6, 1)
    assert fields.check_out == date(2026, 6, 5)
    assert fields.guest_name == "Ana Costa"
    assert fields.guest_email == "ana@example.com"
    assert fields.num_guests == 3  # 2 adults + 1 child
    assert fields.total_amount == 420.0
    assert fields.source == BookingSource.AIRBNB
    assert fields.status == BookingStatus.CONFIRMED
    assert fields.notes == "Late arrival"
    assert fields.unmapped_status is None


def test_map_blocked_booking_has_no_guest(reservation_factory):
    fields = map_reservation_to_booking(reservation_factory(
        5002, **{"is-blocked-booking": True, "host-notice": "Renovation"}
    ))

    assert fields.kind == BookingKind.BLOCK
    assert fields.guest_name is None
    assert fields.guest_email is None
    assert fields.num_guests is None
    assert fields.notes == "Renovation"


def test_map_status_is_case_insensitive():
    assert map_status("Cancelled") == (BookingStatus.CANCELLED, None)
    assert map_status("CHECKED-IN") == (BookingStatus.CHECKED_IN, None)
    assert map_status("checked-out") == (BookingStatus.CHECKED_OUT, None)


def test_unknown_status_defaults_to_confirmed_and_keeps_raw(reservation_factory):
    fields = map_reservation_to_booking(reservation_factory(5003, status="on-hold"))

    assert fields.status == BookingStatus.CONFIRMED
    assert fields.unmapped_status == "on-hold"
    assert fields.model_fields()["external_status"] == "on-hold"
    assert "unmapped_status" not in fields.model_fields()


def test_missing_status_is_not_reported_as_unmapped():
    assert map_status(None) == (BookingStatus.CONFIRMED, None)


def test_map_channel():
    assert map_channel("Booking.com") == BookingSource.BOOKING_COM
    assert map_channel("VRBO") == BookingSource.VRBO
    assert map_channel("Direct") == BookingSource.DIRECT
    assert map_channel("Expedia") == BookingSource.SMOOBU
    assert map_channel(None) == BookingSource.SMOOBU


def test_arrival_with_time_component(reservation_factory):
    fields = map_reservation_to_booking(reservation_factory(5004, arrival="2026-06-01 15:00"))
    assert fields.check_in == date(2026, 6, 1)


def test_map_apartment_to_property():
    fields = map_apartment_to_property({
        "id": 1001,
        "name": "Harbour Loft",
        "street": "12 Quay St",
        "city": "Lisbon",
        "postalCode": "1100-001",
        "country": {"name": "Portugal"},
        "location": {"latitude": 38.7, "longitude": -9.1},
        "rooms": {"bedrooms": 2, "maxOccupancy": 4},
    })

    assert fields.smoobu_id == "1001"
    assert fields.address == "12 Quay St"
    assert fields.country == "Portugal"
    assert fields.latitude == 38.7
    assert fields.bedrooms == 2


def test_map_apartment_without_name():
    fields = map_apartment_to_property({"id": 7})
    assert fields.name == "Apartment 7"
    assert fields.address == ""


def test_map_message_prefers_text_over_html():
    fields = map_message_to_local({
        "id": 90,
        "subject": "Check-in",
        "messageText": "See you soon",
        "messageHtml": "<p>See you soon</p>",
        "direction": "out",
        "createdAt": "2026-05-30T10:15:00",
    }, booking_id=3)

    assert fields.smoobu_id == "90"
    assert fields.booking_id == 3
    assert fields.content == "See you soon"
    assert fields.sender == MessageSender.HOST
    assert fields.sent_at == datetime(2026, 5, 30, 10, 15)


def test_map_message_guest_html_only():
    fields = map_message_to_local({
        "id": 91,
        "messageHtml": "<p>Is parking included?</p>",
        "direction": "in",
        "createdAt": "not a date",
    }, booking_id=3)

    assert fields.content == "<p>Is parking included?</p>"
    assert fields.sender == MessageSender.GUEST
    assert fields.sent_at is None
