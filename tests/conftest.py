"""Shared test fixtures."""

from __future__ import annotations

import os
from contextlib import ExitStack
from datetime import date
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"  # In-memory DB for tests
os.environ["SMOOBU_API_KEY"] = ""

from propdesk.database import Base
from propdesk.events import EventBus, event_bus as global_event_bus
from propdesk.models.booking import Booking, BookingKind, BookingSource, BookingStatus
from propdesk.models.property import Property
from propdesk.modules.smoobu.client import ReservationPage, SmoobuClient

# Import all models to register them
import propdesk.models.cleaning  # noqa: F401
import propdesk.models.message  # noqa: F401
import propdesk.models.rate  # noqa: F401

# Modules that open their own sessions through a module-level ``get_session``
SESSION_MODULES = (
    "propdesk.modules.operations.ops",
    "propdesk.modules.reservation_sync.sync",
    "propdesk.modules.rates.projector",
    "propdesk.modules.calendar.blocks",
    "propdesk.modules.guest_comms.comms",
)


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_engine("sqlite://", echo=False)
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    session = session_factory()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def session_modules() -> tuple[str, ...]:
    return SESSION_MODULES


@pytest.fixture
def shared_session(db_session: Session):
    """Route every module's ``get_session`` to the test session and keep it open."""

    def _noop_close(self):
        pass

    with ExitStack() as stack:
        for module in SESSION_MODULES:
            stack.enter_context(patch(f"{module}.get_session", return_value=db_session))
        stack.enter_context(patch.object(type(db_session), "close", _noop_close))
        yield db_session


@pytest.fixture(autouse=True)
def _reset_global_event_bus():
    yield
    global_event_bus.clear()


@pytest.fixture
def event_bus():
    """Create a fresh event bus for each test."""
    return EventBus()


@pytest.fixture
def sample_property(db_session: Session) -> Property:
    """A property linked to Smoobu apartment 1001."""
    prop = Property(
        name="Harbour Loft",
        address="12 Quay St",
        city="Lisbon",
        country="Portugal",
        bedrooms=2,
        daily_rate=100.0,
        smoobu_id="1001",
    )
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture
def unlinked_property(db_session: Session) -> Property:
    prop = Property(name="Garden Flat", address="4 Elm Rd", daily_rate=80.0)
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture
def sample_booking(db_session: Session, sample_property: Property) -> Booking:
    """A confirmed Airbnb reservation mirrored from Smoobu."""
    booking = Booking(
        property_id=sample_property.id,
        smoobu_id="5001",
        kind=BookingKind.RESERVATION,
        guest_name="Ana Costa",
        guest_email="ana@example.com",
        check_in=date(2026, 6, 1),
        check_out=date(2026, 6, 5),
        num_guests=2,
        total_amount=420.0,
        status=BookingStatus.CONFIRMED,
        source=BookingSource.AIRBNB,
    )
    db_session.add(booking)
    db_session.commit()
    return booking


def make_reservation(reservation_id: int, **overrides: Any) -> dict[str, Any]:
    """A Smoobu ``/reservations`` entry as returned on the wire."""
    reservation = {
        "id": reservation_id,
        "arrival": "2026-06-01",
        "departure": "2026-06-05",
        "guest-name": "Ana Costa",
        "email": "ana@example.com",
        "phone": "+351900000000",
        "adults": 2,
        "children": 1,
        "price": 420.0,
        "status": "confirmed",
        "channel": {"id": 465614, "name": "Airbnb"},
        "apartment": {"id": 1001, "name": "Harbour Loft"},
        "guest-notice": "Late arrival",
        "is-blocked-booking": False,
    }
    reservation.update(overrides)
    return reservation


@pytest.fixture
def reservation_factory():
    return make_reservation


@pytest.fixture
def smoobu_client() -> MagicMock:
    """A configured client double; tests set return values per call."""
    client = MagicMock(spec=SmoobuClient)
    client.is_configured = True
    client.list_reservations.return_value = ReservationPage(bookings=[], page=1, page_count=1)
    return client
