"""Tests for the Smoobu HTTP client, with httpx traffic mocked by respx."""

import json
from datetime import date

import httpx
import pytest
import respx
from httpx import Response

from propdesk.exceptions import ConfigurationError, RemoteServiceError
from propdesk.modules.smoobu.client import ReservationPage, SmoobuClient

API = "https://smoobu.test/api"
BOOKING = "https://smoobu.test/booking"


@pytest.fixture
def client():
    with SmoobuClient("test-key", base_url=API, booking_url=BOOKING) as c:
        yield c


def _json_body(route) -> dict:
    return json.loads(route.calls.last.request.content)


@respx.mock
def test_list_reservations_sends_key_and_params(client: SmoobuClient):
    route = respx.get(f"{API}/reservations").mock(
        return_value=Response(200, json={
            "page_count": 3,
            "page_size": 2,
            "total_items": 5,
            "page": 2,
            "bookings": [{"id": 1}, {"id": 2}],
        })
    )

    page = client.list_reservations(
        apartment_id=1001, start=date(2026, 6, 1), end="2026-06-30", page=2, page_size=2
    )

    request = route.calls.last.request
    assert request.headers["Api-Key"] == "test-key"
    assert request.url.params["apartment_id"] == "1001"
    assert request.url.params["from"] == "2026-06-01"
    assert request.url.params["to"] == "2026-06-30"
    assert request.url.params["page"] == "2"
    assert page.page == 2
    assert page.page_count == 3
    assert page.total_items == 5
    assert [b["id"] for b in page.bookings] == [1, 2]
    assert page.is_last is False


def test_reservation_page_is_last():
    assert ReservationPage(bookings=[], page=1, page_count=5, page_size=10).is_last
    assert ReservationPage(bookings=[{}] * 10, page=5, page_count=5, page_size=10).is_last
    assert ReservationPage(bookings=[{}] * 3, page=1, page_count=None, page_size=10).is_last
    assert not ReservationPage(bookings=[{}] * 10, page=1, page_count=None, page_size=10).is_last
    assert not ReservationPage(bookings=[{}] * 10, page=1, page_count=2, page_size=10).is_last


@respx.mock
def test_error_status_raises_remote_error(client: SmoobuClient):
    respx.get(f"{API}/reservations/42").mock(return_value=Response(404, text="not found"))

    with pytest.raises(RemoteServiceError) as excinfo:
        client.get_reservation(42)

    assert excinfo.value.status_code == 404
    assert excinfo.value.body == "not found"
    assert "404" in excinfo.value.message


@respx.mock
def test_transport_failure_raises_remote_error_without_status(client: SmoobuClient):
    respx.get(f"{API}/apartments").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(RemoteServiceError) as excinfo:
        client.list_apartments()

    assert excinfo.value.status_code is None


@respx.mock(assert_all_called=False)
def test_missing_api_key_fails_before_any_request():
    route = respx.get(f"{API}/apartments")
    with SmoobuClient("", base_url=API) as c:
        assert c.is_configured is False
        with pytest.raises(ConfigurationError):
            c.list_apartments()

    assert route.called is False


@respx.mock
def test_block_dates_payload(client: SmoobuClient):
    route = respx.post(f"{API}/reservations").mock(return_value=Response(201, json={"id": 777}))

    created = client.block_dates(1001, date(2026, 7, 1), date(2026, 7, 4), "Owner stay")

    assert created == {"id": 777}
    assert _json_body(route) == {
        "apartment_id": 1001,
        "arrival": "2026-07-01",
        "departure": "2026-07-04",
        "is-blocked-booking": True,
        "host-notice": "Owner stay",
    }


@respx.mock
def test_cancel_reservation_handles_empty_body(client: SmoobuClient):
    route = respx.delete(f"{API}/reservations/777").mock(return_value=Response(204))

    client.cancel_reservation(777)

    assert route.called


@respx.mock
def test_get_rates_unwraps_data(client: SmoobuClient):
    route = respx.get(f"{API}/rates").mock(return_value=Response(200, json={
        "data": {"1001": {"2026-06-01": {"price": 120, "min_length_of_stay": 2, "available": 1}}},
    }))

    rates = client.get_rates([1001], date(2026, 6, 1), date(2026, 6, 1))

    params = route.calls.last.request.url.params
    assert params["start_date"] == "2026-06-01"
    assert params.get_list("apartments[]") == ["1001"]
    assert rates["1001"]["2026-06-01"]["price"] == 120


@respx.mock
def test_set_rates_omits_unset_fields(client: SmoobuClient):
    route = respx.post(f"{API}/rates").mock(return_value=Response(200, json={"success": True}))

    client.set_rates([1001], date(2026, 6, 1), date(2026, 6, 7), price=135.0)

    assert _json_body(route) == {
        "apartments": [1001],
        "dateFrom": "2026-06-01",
        "dateTo": "2026-06-07",
        "daily_price": 135.0,
    }


@respx.mock
def test_check_availability_uses_booking_endpoint(client: SmoobuClient):
    route = respx.post(f"{BOOKING}/checkApartmentAvailability").mock(
        return_value=Response(200, json={"availableApartments": [1001], "prices": {}})
    )

    assert client.check_availability(1001, date(2026, 6, 1), date(2026, 6, 5)) is True
    assert _json_body(route)["apartments"] == [1001]


@respx.mock
def test_check_availability_false_when_not_listed(client: SmoobuClient):
    respx.post(f"{BOOKING}/checkApartmentAvailability").mock(
        return_value=Response(200, json={"availableApartments": []})
    )

    assert client.check_availability(1001, date(2026, 6, 1), date(2026, 6, 5)) is False


@respx.mock
def test_send_message_default_subject(client: SmoobuClient):
    route = respx.post(
        f"{API}/reservations/5001/messages/send-message-to-guest"
    ).mock(return_value=Response(200, json={}))

    client.send_message_to_guest(5001, "Your keys are in the lockbox.")

    assert _json_body(route) == {
        "message": "Your keys are in the lockbox.",
        "subject": "Message from host",
    }


@respx.mock
def test_list_messages(client: SmoobuClient):
    respx.get(f"{API}/reservations/5001/messages").mock(return_value=Response(200, json={
        "messages": [{"id": 1, "messageText": "Hi", "direction": "in"}],
    }))

    messages = client.list_messages(5001)

    assert messages[0]["messageText"] == "Hi"
