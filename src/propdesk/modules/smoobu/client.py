"""HTTP client for the Smoobu channel-manager API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx

from propdesk.config import smoobu_config
from propdesk.exceptions import ConfigurationError, RemoteServiceError

logger = logging.getLogger(__name__)

@dataclass
class ReservationPage:
    """One page of the ``/reservations`` listing."""

    bookings: list[dict[str, Any]] = field(default_factory=list)
    page: int = 1
    page_count: int | None = None
    page_size: int | None = None
    total_items: int = 0

    @property
    def is_last(self) -> bool:
        if not self.bookings:
            return True
        if self.page_count is not None and self.page >= self.page_count:
            return True
        if self.page_size is None:
            return self.page_count is None
        return len(self.bookings) < self.page_size


def _iso(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else value


class SmoobuClient:
    """Thin wrapper over the Smoobu REST endpoints.

    Every call raises ``ConfigurationError`` when no API key is set and
    ``RemoteServiceError`` when the upstream answers with a non-2xx status or
    cannot be reached. Nothing is retried.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        booking_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        cfg = smoobu_config()
        self.api_key = api_key if api_key is not None else cfg.api_key
        self.base_url = (base_url or cfg.base_url).rstrip("/")
        self.booking_url = (booking_url or cfg.booking_url).rstrip("/")
        self._block_note = cfg.block_note
        self._default_subject = cfg.default_message_subject
        self._client = http_client or httpx.Client(
            timeout=timeout or cfg.timeout,
            follow_redirects=True,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SmoobuClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: dict[str, Any] | None = None,
        base_url: str | None = None,
    ) -> Any:
        if not self.is_configured:
            raise ConfigurationError("Smoobu API key not configured")

        url = f"{base_url or self.base_url}{path}"
        try:
            resp = self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={"Api-Key": self.api_key, "Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Smoobu request %s %s failed: %s", method, path, exc)
            raise RemoteServiceError(f"Smoobu API unreachable: {exc}") from exc

        if resp.is_error:
            logger.warning("Smoobu %s %s returned %d", method, path, resp.status_code)
            raise RemoteServiceError(
                f"Smoobu API error: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        if not resp.content:
            return {}
        return resp.json()

    # --- Reservations ---

    def list_reservations(
        self,
        *,
        apartment_id: int | str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> ReservationPage:
        """Fetch one page of reservations. Callers loop pages themselves."""
        params: dict[str, Any] = {}
        if start:
            params["from"] = _iso(start)
        if end:
            params["to"] = _iso(end)
        if apartment_id:
            params["apartment_id"] = str(apartment_id)
        if page:
            params["page"] = page
        if page_size:
            params["page_size"] = page_size

        data = self._request("GET", "/reservations", params=params)
        return ReservationPage(
            bookings=data.get("bookings") or [],
            page=int(data.get("page") or page or 1),
            page_count=int(data["page_count"]) if data.get("page_count") else None,
            page_size=int(data["page_size"]) if data.get("page_size") else page_size,
            total_items=int(data.get("total_items") or 0),
        )

    def get_reservation(self, reservation_id: int | str) -> dict[str, Any]:
        return self._request("GET", f"/reservations/{reservation_id}")

    def block_dates(
        self,
        apartment_id: int | str,
        start: date | str,
        end: date | str,
        note: str | None = None,
    ) -> dict[str, Any]:
        """Create a blocking reservation for ``[start, end)``."""
        payload = {
            "apartment_id": int(apartment_id),
            "arrival": _iso(start),
            "departure": _iso(end),
            "is-blocked-booking": True,
            "host-notice": note or self._block_note,
        }
        return self._request("POST", "/reservations", json=payload)

    def cancel_reservation(self, reservation_id: int | str) -> None:
        self._request("DELETE", f"/reservations/{reservation_id}")

    # --- Apartments ---

    def list_apartments(self) -> list[dict[str, Any]]:
        data = self._request("GET", "/apartments")
        return data.get("apartments") or []

    def get_apartment(self, apartment_id: int | str) -> dict[str, Any]:
        return self._request("GET", f"/apartments/{apartment_id}")

    # --- Rates & availability ---

    def get_rates(
        self, apartment_ids: list[int | str], start: date | str, end: date | str
    ) -> dict[str, dict[str, dict[str, Any]]]:
        """Return ``{apartment_id: {YYYY-MM-DD: {price, min_length_of_stay, available}}}``."""
        params: list[tuple[str, str]] = [("start_date", _iso(start)), ("end_date", _iso(end))]
        params.extend(("apartments[]", str(apt)) for apt in apartment_ids)
        data = self._request("GET", "/rates", params=params)
        return data.get("data") or {}

    def set_rates(
        self,
        apartment_ids: list[int | str],
        start: date | str,
        end: date | str,
        *,
        price: float | None = None,
        min_stay: int | None = None,
        available: bool | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "apartments": [int(apt) for apt in apartment_ids],
            "dateFrom": _iso(start),
            "dateTo": _iso(end),
        }
        if price is not None:
            payload["daily_price"] = price
        if min_stay is not None:
            payload["min_length_of_stay"] = min_stay
        if available is not None:
            payload["available"] = 1 if available else 0
        self._request("POST", "/rates", json=payload)

    def check_availability(
        self, apartment_id: int | str, start: date | str, end: date | str
    ) -> bool:
        payload = {
            "arrivalDate": _iso(start),
            "departureDate": _iso(end),
            "apartments": [int(apartment_id)],
        }
        data = self._request(
            "POST", "/checkApartmentAvailability", json=payload, base_url=self.booking_url
        )
        available = {int(a) for a in data.get("availableApartments") or []}
        return int(apartment_id) in available

    # --- Messages ---

    def list_messages(self, reservation_id: int | str) -> list[dict[str, Any]]:
        data = self._request("GET", f"/reservations/{reservation_id}/messages")
        return data.get("messages") or []

    def send_message_to_guest(
        self, reservation_id: int | str, content: str, subject: str | None = None
    ) -> None:
        payload = {
            "message": content,
            "subject": subject or self._default_subject,
        }
        self._request(
            "POST",
            f"/reservations/{reservation_id}/messages/send-message-to-guest",
            json=payload,
        )
