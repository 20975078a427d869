"""Tests for database models."""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from propdesk.models.booking import Booking, BookingKind, BookingStatus
from propdesk.models.cleaning import CleaningJob, CleaningStatus
from propdesk.models.message import Message, MessageSender
from propdesk.models.property import Property
from propdesk.models.rate import PropertyRate


def test_create_property(db_session: Session):
    prop = Property(name="Beach House", address="456 Ocean Dr", daily_rate=200.0)
    db_session.add(prop)
    db_session.commit()

    loaded = db_session.query(Property).first()
    assert loaded.name == "Beach House"
    assert loaded.daily_rate == 200.0
    assert loaded.status == "ACTIVE"
    assert loaded.smoobu_id is None


def test_booking_property_relationship(db_session: Session, sample_booking: Booking):
    booking = db_session.query(Booking).first()
    assert booking.prop is not None
    assert booking.prop.name == "Harbour Loft"


def test_booking_occupies_is_half_open(sample_booking: Booking):
    assert sample_booking.occupies(date(2026, 6, 1))
    assert sample_booking.occupies(date(2026, 6, 4))
    assert not sample_booking.occupies(date(2026, 6, 5))
    assert not sample_booking.occupies(date(2026, 5, 31))


def test_cancelled_booking_occupies_nothing(db_session: Session, sample_booking: Booking):
    sample_booking.status = BookingStatus.CANCELLED
    db_session.commit()
    assert not sample_booking.occupies(date(2026, 6, 2))


def test_block_has_no_guest(db_session: Session, sample_property: Property):
    block = Booking(
        property_id=sample_property.id,
        kind=BookingKind.BLOCK,
        check_in=date(2026, 7, 1),
        check_out=date(2026, 7, 3),
        notes="Owner stay",
    )
    db_session.add(block)
    db_session.commit()

    assert block.kind == BookingKind.BLOCK
    assert block.guest_name is None
    assert block.status == BookingStatus.CONFIRMED


def test_booking_version_increments(db_session: Session, sample_booking: Booking):
    assert sample_booking.version == 1
    sample_booking.notes = "Extra towels"
    db_session.commit()
    assert sample_booking.version == 2


def test_booking_smoobu_id_unique(db_session: Session, sample_property: Property, sample_booking: Booking):
    db_session.add(Booking(
        property_id=sample_property.id,
        smoobu_id=sample_booking.smoobu_id,
        check_in=date(2026, 8, 1),
        check_out=date(2026, 8, 2),
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_rate_unique_per_property_and_date(db_session: Session, sample_property: Property):
    db_session.add(PropertyRate(property_id=sample_property.id, date=date(2026, 6, 1), rate=150.0))
    db_session.commit()

    db_session.add(PropertyRate(property_id=sample_property.id, date=date(2026, 6, 1), rate=175.0))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_cleaning_job_creation(db_session: Session, sample_property: Property, sample_booking: Booking):
    job = CleaningJob(
        property_id=sample_property.id,
        booking_id=sample_booking.id,
        scheduled_date=sample_booking.check_out,
    )
    db_session.add(job)
    db_session.commit()

    loaded = db_session.query(CleaningJob).first()
    assert loaded.scheduled_date == date(2026, 6, 5)
    assert loaded.status == CleaningStatus.PENDING
    assert loaded.priority == "normal"
    assert loaded.booking.guest_name == "Ana Costa"


def test_deleting_property_cascades(db_session: Session, sample_property: Property, sample_booking: Booking):
    db_session.add_all([
        PropertyRate(property_id=sample_property.id, date=date(2026, 6, 1), rate=150.0),
        CleaningJob(
            property_id=sample_property.id,
            booking_id=sample_booking.id,
            scheduled_date=sample_booking.check_out,
        ),
    ])
    db_session.commit()

    db_session.delete(sample_property)
    db_session.commit()

    assert db_session.query(Booking).count() == 0
    assert db_session.query(PropertyRate).count() == 0
    assert db_session.query(CleaningJob).count() == 0


def test_deleting_booking_keeps_cleaning_job(db_session: Session, sample_property: Property, sample_booking: Booking):
    db_session.add_all([
        CleaningJob(
            property_id=sample_property.id,
            booking_id=sample_booking.id,
            scheduled_date=sample_booking.check_out,
        ),
        Message(booking_id=sample_booking.id, content="Hello", sender=MessageSender.GUEST),
    ])
    db_session.commit()

    db_session.delete(sample_booking)
    db_session.commit()

    job = db_session.query(CleaningJob).one()
    assert job.booking_id is None
    assert db_session.query(Message).count() == 0
