"""Guest messaging: Smoobu message sync and host replies."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from propdesk.database import get_session
from propdesk.events import Event, EventType, event_bus
from propdesk.exceptions import NotFoundError, RemoteServiceError, ValidationError
from propdesk.models.booking import Booking
from propdesk.models.message import Message, MessageSender
from propdesk.modules.reservation_sync.sync import ReservationSyncer
from propdesk.modules.smoobu.client import SmoobuClient

logger = logging.getLogger(__name__)


class GuestCommunicator:
    """Reads and sends guest messages for a booking."""

    def __init__(self, client: SmoobuClient | None = None) -> None:
        self._client = client or SmoobuClient()
        self._syncer = ReservationSyncer(client=self._client)

    def list_messages(self, booking_id: int) -> list[Message]:
        """Return the booking's messages oldest first, pulling new ones from Smoobu first.

        A failed pull is logged and the locally stored messages are still returned.
        """
        session = get_session()
        try:
            booking = session.get(Booking, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            linked = bool(booking.smoobu_id)
        finally:
            session.close()

        if linked and self._client.is_configured:
            try:
                self._syncer.sync_messages(booking_id)
            except RemoteServiceError:
                logger.exception("Error syncing messages from Smoobu for booking %s", booking_id)

        session = get_session()
        try:
            return (
                session.query(Message)
                .filter(Message.booking_id == booking_id)
                .order_by(Message.sent_at)
                .all()
            )
        finally:
            session.close()

    def send_message(self, booking_id: int, content: str, subject: str | None = None) -> Message:
        """Send a host message. Linked bookings go through Smoobu first; a failure stores nothing."""
        if not content or not content.strip():
            raise ValidationError("content is required")

        session = get_session()
        try:
            booking = session.get(Booking, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")

            now = datetime.now(timezone.utc)
            if booking.smoobu_id:
                self._client.send_message_to_guest(booking.smoobu_id, content, subject)

            msg = Message(
                booking_id=booking_id,
                subject=subject,
                content=content,
                sender=MessageSender.HOST,
                sent_at=now,
                synced_at=now if booking.smoobu_id else None,
            )
            session.add(msg)
            session.commit()
            logger.info("Sent message to guest of booking %s", booking_id)

            event_bus.publish(Event(
                event_type=EventType.MESSAGE_SENT,
                data={"message_id": msg.id, "booking_id": booking_id},
            ))
            return msg
        finally:
            session.close()
