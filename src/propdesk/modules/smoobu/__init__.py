"""Smoobu API adapter."""

from propdesk.modules.smoobu.client import ReservationPage, SmoobuClient
from propdesk.modules.smoobu.mappers import (
    BookingFields,
    MessageFields,
    PropertyFields,
    map_apartment_to_property,
    map_message_to_local,
    map_reservation_to_booking,
)

__all__ = [
    "BookingFields",
    "MessageFields",
    "PropertyFields",
    "ReservationPage",
    "SmoobuClient",
    "map_apartment_to_property",
    "map_message_to_local",
    "map_reservation_to_booking",
]
