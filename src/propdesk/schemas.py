"""Pydantic request and response bodies for the JSON API."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from propdesk.models.booking import BookingKind, BookingSource, BookingStatus
from propdesk.models.cleaning import CleaningStatus
from propdesk.models.message import MessageSender


class PropertyIn(BaseModel):
    name: str = Field(min_length=1)
    address: str = ""
    city: str = ""
    postal_code: str | None = None
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None
    bedrooms: int | None = None
    daily_rate: float | None = None
    rent: float | None = None
    smoobu_id: str | None = None
    status: str = "ACTIVE"
    notes: str | None = None


class PropertyOut(PropertyIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
    last_synced_at: datetime | None = None


class BookingIn(BaseModel):
    property_id: int
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    num_guests: int | None = None
    total_amount: float | None = None
    source: BookingSource = BookingSource.DIRECT
    status: BookingStatus = BookingStatus.CONFIRMED
    notes: str | None = None


class BookingUpdate(BaseModel):
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    num_guests: int | None = None
    total_amount: float | None = None
    source: BookingSource | None = None
    status: BookingStatus | None = None
    notes: str | None = None
    version: int | None = None  # Expected current version; mismatch is a conflict


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    smoobu_id: str | None
    kind: BookingKind
    guest_name: str | None
    guest_email: str | None
    guest_phone: str | None
    check_in: date
    check_out: date
    num_guests: int | None
    total_amount: float | None
    status: BookingStatus
    source: BookingSource
    external_status: str | None
    notes: str | None
    synced_at: datetime | None
    version: int


class SyncRequest(BaseModel):
    property_id: int | None = None


class RateRangeIn(BaseModel):
    start_date: date
    end_date: date
    rate: float | None = None


class BlockIn(BaseModel):
    property_id: int
    start_date: date
    end_date: date
    note: str | None = None


class RemoteRatesIn(BaseModel):
    property_id: int
    start_date: date
    end_date: date
    price: float | None = None
    min_stay: int | None = None
    available: bool | None = None


class MessageIn(BaseModel):
    booking_id: int
    content: str | None = None
    subject: str | None = None


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    smoobu_id: str | None
    subject: str | None
    content: str
    sender: MessageSender
    sent_at: datetime
    synced_at: datetime | None


class CleaningJobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    booking_id: int | None
    scheduled_date: date
    status: CleaningStatus
    is_turnover: bool
    priority: str
    notes: str | None
    completed_at: datetime | None


class CleaningJobUpdate(BaseModel):
    status: CleaningStatus | None = None
    notes: str | None = None
    scheduled_date: date | None = None
