"""FastAPI application: JSON API and dashboard page."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path

from fastapi import FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import IntegrityError

from propdesk.config import log_level, seed_properties
from propdesk.database import get_session, init_db
from propdesk.exceptions import (
    ConfigurationError,
    NotFoundError,
    PropDeskError,
    RemoteServiceError,
    ValidationError,
    VersionConflictError,
)
from propdesk.models.booking import Booking, BookingKind, BookingStatus
from propdesk.models.cleaning import OPEN_CLEANING_STATUSES, CleaningJob, CleaningStatus
from propdesk.models.property import Property
from propdesk.modules.calendar import CalendarManager
from propdesk.modules.guest_comms import GuestCommunicator
from propdesk.modules.operations import operations_manager
from propdesk.modules.rates import RateProjector
from propdesk.modules.reservation_sync import ReservationSyncer
from propdesk.modules.smoobu import SmoobuClient
from propdesk.schemas import (
    BlockIn,
    BookingIn,
    BookingOut,
    BookingUpdate,
    CleaningJobOut,
    CleaningJobUpdate,
    MessageIn,
    MessageOut,
    PropertyIn,
    PropertyOut,
    RateRangeIn,
    RemoteRatesIn,
    SyncRequest,
)

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "dashboard" / "templates"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Checked in order, so subclasses must precede PropDeskError.
ERROR_STATUS_CODES: list[tuple[type[PropDeskError], int]] = [
    (NotFoundError, 404),
    (ValidationError, 400),
    (ConfigurationError, 400),
    (RemoteServiceError, 502),
    (VersionConflictError, 409),
    (PropDeskError, 500),
]


def configure_logging() -> None:
    logging.basicConfig(level=log_level(), format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging()
    logger.info("Starting PropDesk...")
    init_db()
    seed_properties_from_config()
    operations_manager.setup_event_handlers()

    app.state.smoobu = SmoobuClient()
    if not app.state.smoobu.is_configured:
        logger.warning("SMOOBU_API_KEY not set; Smoobu features are disabled.")

    yield

    app.state.smoobu.close()
    logger.info("PropDesk shut down.")


app = FastAPI(title="PropDesk", lifespan=lifespan)
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@app.exception_handler(PropDeskError)
async def propdesk_error_handler(request: Request, exc: PropDeskError) -> JSONResponse:
    status_code = next(code for cls, code in ERROR_STATUS_CODES if isinstance(exc, cls))
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.message})


def seed_properties_from_config() -> None:
    """Seed properties from config.yaml if not already in DB."""
    session = get_session()
    try:
        for prop_cfg in seed_properties():
            existing = (
                session.query(Property).filter(Property.name == prop_cfg["name"]).first()
            )
            if existing:
                smoobu_id = prop_cfg.get("smoobu_id")
                if smoobu_id and existing.smoobu_id != str(smoobu_id):
                    existing.smoobu_id = str(smoobu_id)
                    session.commit()
                continue

            prop = Property(
                name=prop_cfg["name"],
                address=prop_cfg.get("address", ""),
                city=prop_cfg.get("city", ""),
                postal_code=prop_cfg.get("postal_code"),
                country=prop_cfg.get("country", ""),
                bedrooms=prop_cfg.get("bedrooms"),
                daily_rate=prop_cfg.get("daily_rate"),
                rent=prop_cfg.get("rent"),
                smoobu_id=str(prop_cfg["smoobu_id"]) if prop_cfg.get("smoobu_id") else None,
                notes=prop_cfg.get("notes"),
            )
            session.add(prop)
            session.commit()
            logger.info("Seeded property: %s", prop.name)
    finally:
        session.close()


def _smoobu(request: Request) -> SmoobuClient:
    return request.app.state.smoobu


# --- Dashboard ---


@app.get("/", response_class=HTMLResponse)
async def dashboard_home(request: Request):
    """Main dashboard overview."""
    session = get_session()
    try:
        today = date.today()
        properties = session.query(Property).order_by(Property.name).all()
        upcoming_bookings = (
            session.query(Booking)
            .filter(
                Booking.kind == BookingKind.RESERVATION,
                Booking.check_out >= today,
                Booking.status != BookingStatus.CANCELLED,
            )
            .order_by(Booking.check_in)
            .limit(10)
            .all()
        )
        pending_jobs = (
            session.query(CleaningJob)
            .filter(CleaningJob.status.in_(OPEN_CLEANING_STATUSES))
            .order_by(CleaningJob.scheduled_date)
            .limit(10)
            .all()
        )
        prop_map = {p.id: p.name for p in properties}

        return templates.TemplateResponse(request, "index.html", {
            "properties": properties,
            "upcoming_bookings": upcoming_bookings,
            "pending_jobs": pending_jobs,
            "prop_map": prop_map,
            "today": today,
        })
    finally:
        session.close()


# --- Properties ---


@app.get("/api/properties", response_model=list[PropertyOut])
def list_properties():
    session = get_session()
    try:
        return session.query(Property).order_by(Property.name).all()
    finally:
        session.close()


@app.post("/api/properties", response_model=PropertyOut, status_code=201)
def create_property(body: PropertyIn):
    session = get_session()
    try:
        prop = Property(**body.model_dump())
        session.add(prop)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ValidationError(f"Smoobu ID {body.smoobu_id} is already linked") from exc
        logger.info("Created property %s", prop.name)
        return prop
    finally:
        session.close()


@app.post("/api/properties/sync")
def sync_properties(request: Request):
    """Pull apartments from Smoobu into local properties."""
    result = ReservationSyncer(client=_smoobu(request)).sync_properties()
    return result.to_dict()


@app.get("/api/properties/{property_id}", response_model=PropertyOut)
def get_property(property_id: int):
    session = get_session()
    try:
        prop = session.get(Property, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop
    finally:
        session.close()


@app.put("/api/properties/{property_id}", response_model=PropertyOut)
def update_property(property_id: int, body: PropertyIn):
    session = get_session()
    try:
        prop = session.get(Property, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        for key, value in body.model_dump(exclude_unset=True).items():
            setattr(prop, key, value)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ValidationError(f"Smoobu ID {body.smoobu_id} is already linked") from exc
        return prop
    finally:
        session.close()


@app.delete("/api/properties/{property_id}")
def delete_property(property_id: int):
    """Delete a property with its bookings, rates and cleaning jobs."""
    session = get_session()
    try:
        prop = session.get(Property, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        session.delete(prop)
        session.commit()
        logger.info("Deleted property %s", property_id)
        return {"success": True}
    finally:
        session.close()


# --- Rates & calendar ---


@app.get("/api/properties/{property_id}/rates")
def get_rates(property_id: int, start_date: date, end_date: date):
    return RateProjector().project_rates(property_id, start_date, end_date)


@app.post("/api/properties/{property_id}/rates")
def set_rates(property_id: int, body: RateRangeIn):
    count = RateProjector().set_rate_range(property_id, body.start_date, body.end_date, body.rate)
    return {"success": True, "count": count}


@app.delete("/api/properties/{property_id}/rates")
def clear_rates(property_id: int, start_date: date, end_date: date):
    count = RateProjector().clear_rate_range(property_id, start_date, end_date)
    return {"success": True, "count": count}


@app.get("/api/properties/{property_id}/calendar")
def get_calendar(property_id: int, start_date: date, end_date: date):
    return RateProjector().get_calendar(property_id, start_date, end_date)


# --- Bookings ---


@app.get("/api/bookings", response_model=list[BookingOut])
def list_bookings(
    property_id: int | None = None,
    status: BookingStatus | None = None,
    kind: BookingKind | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=100, ge=1, le=500),
):
    """List bookings, optionally restricted to those overlapping ``[start_date, end_date)``."""
    session = get_session()
    try:
        query = session.query(Booking).order_by(Booking.check_in.desc())
        if property_id:
            query = query.filter(Booking.property_id == property_id)
        if status:
            query = query.filter(Booking.status == status)
        if kind:
            query = query.filter(Booking.kind == kind)
        if start_date:
            query = query.filter(Booking.check_out > start_date)
        if end_date:
            query = query.filter(Booking.check_in < end_date)
        return query.limit(limit).all()
    finally:
        session.close()


@app.post("/api/bookings", response_model=BookingOut, status_code=201)
def create_booking(body: BookingIn):
    fields = body.model_dump()
    property_id = fields.pop("property_id")
    return operations_manager.create_booking(property_id, **fields)


@app.post("/api/bookings/sync")
def sync_bookings(request: Request, body: SyncRequest | None = None):
    """Pull reservations from Smoobu for one or all linked properties."""
    property_id = body.property_id if body else None
    result = ReservationSyncer(client=_smoobu(request)).sync_reservations(property_id)
    return result.to_dict()


@app.get("/api/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int):
    session = get_session()
    try:
        booking = session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking
    finally:
        session.close()


@app.put("/api/bookings/{booking_id}", response_model=BookingOut)
def update_booking(booking_id: int, body: BookingUpdate):
    changes = body.model_dump(exclude_unset=True)
    expected_version = changes.pop("version", None)
    return operations_manager.update_booking(
        booking_id, expected_version=expected_version, **changes
    )


@app.delete("/api/bookings/{booking_id}")
def delete_booking(booking_id: int):
    operations_manager.delete_booking(booking_id)
    return {"success": True}


# --- Smoobu: availability, remote rates, messages ---


@app.get("/api/smoobu/availability")
def check_availability(request: Request, property_id: int, start_date: date, end_date: date):
    report = CalendarManager(client=_smoobu(request)).check_availability(
        property_id, start_date, end_date
    )
    return {
        "property_id": report.property_id,
        "start_date": report.start,
        "end_date": report.end,
        "is_available": report.is_available,
        "entries": [BookingOut.model_validate(b) for b in report.entries],
    }


@app.post("/api/smoobu/availability", response_model=BookingOut, status_code=201)
def block_dates(request: Request, body: BlockIn):
    return CalendarManager(client=_smoobu(request)).block_dates(
        body.property_id, body.start_date, body.end_date, body.note
    )


@app.delete("/api/smoobu/availability")
def unblock_dates(request: Request, booking_id: int):
    CalendarManager(client=_smoobu(request)).unblock_dates(booking_id)
    return {"success": True}


@app.get("/api/smoobu/rates")
def get_remote_rates(request: Request, property_id: int, start_date: date, end_date: date):
    rates = CalendarManager(client=_smoobu(request)).get_remote_rates(
        property_id, start_date, end_date
    )
    return {"property_id": property_id, "rates": rates}


@app.post("/api/smoobu/rates")
def push_remote_rates(request: Request, body: RemoteRatesIn):
    CalendarManager(client=_smoobu(request)).push_remote_rates(
        body.property_id,
        body.start_date,
        body.end_date,
        price=body.price,
        min_stay=body.min_stay,
        available=body.available,
    )
    return {"success": True}


@app.get("/api/smoobu/messages", response_model=list[MessageOut])
def list_messages(request: Request, booking_id: int):
    return GuestCommunicator(client=_smoobu(request)).list_messages(booking_id)


@app.post("/api/smoobu/messages", response_model=MessageOut, status_code=201)
def send_message(request: Request, body: MessageIn):
    return GuestCommunicator(client=_smoobu(request)).send_message(
        body.booking_id, body.content or "", body.subject
    )


# --- Cleaning ---


@app.get("/api/cleaning", response_model=list[CleaningJobOut])
def list_cleaning_jobs(property_id: int | None = None, status: CleaningStatus | None = None):
    return operations_manager.list_cleaning_jobs(property_id=property_id, status=status)


@app.patch("/api/cleaning/{job_id}", response_model=CleaningJobOut)
def update_cleaning_job(job_id: int, body: CleaningJobUpdate):
    return operations_manager.update_cleaning_job(
        job_id, status=body.status, notes=body.notes, scheduled_date=body.scheduled_date
    )


def main() -> None:
    """Entry point for running the app."""
    import uvicorn

    configure_logging()
    init_db()
    logger.info("Database initialized.")

    uvicorn.run(
        "propdesk.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
