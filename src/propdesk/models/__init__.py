"""Database models."""

from propdesk.models.booking import Booking, BookingKind, BookingSource, BookingStatus
from propdesk.models.cleaning import CleaningJob, CleaningStatus
from propdesk.models.message import Message, MessageSender
from propdesk.models.property import Property
from propdesk.models.rate import PropertyRate

__all__ = [
    "Booking",
    "BookingKind",
    "BookingSource",
    "BookingStatus",
    "CleaningJob",
    "CleaningStatus",
    "Message",
    "MessageSender",
    "Property",
    "PropertyRate",
]
