import pytest
import requests
from fastapi import status

from travel_app.models.booking import FlightBooking
from travel_app.utils.errors import InvalidInput, UpstreamFailure
from travel_app.utils.flights import FlightAPIClient, afs_flight_id, normalize_flights
from tests.conf_tests import (  # pylint: disable=unused-import
    client,
    clear_db,
    test_db,
    fake_flights,
    test_user,
    auth_headers,
    create_user,
    login_headers,
    add_flight_to_cart,
)

FLIGHT_DATA = {
    "flightId": "AFS_1001",
    "flightNumber": "AC101",
    "departureTime": "2030-06-01T08:30:00",
    "arrivalTime": "2030-06-01T11:45:00",
    "originCode": "YYZ",
    "originCity": "Toronto",
    "destinationCode": "YVR",
    "destinationCity": "Vancouver",
    "duration": 315,
    "price": 420.0,
    "currency": "CAD",
    "airlineName": "Air Canada",
    "passportNumber": "P1234567",
    "email": "traveller@example.com",
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_is_json=True):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self._body_is_json = body_is_json

    def json(self):
        if not self._body_is_json:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


# pylint: disable-next=redefined-outer-name
def test_search_one_way(auth_headers, fake_flights):
    fake_flights.flights["1001"] = {"id": "1001", "origin": "Toronto", "destination": "Vancouver"}

    response = client.get(
        "/flights/search",
        params={"source": "Toronto", "destination": "Vancouver", "startDate": "2030-06-01"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"startFlights": [fake_flights.flights["1001"]]}
    assert fake_flights.searches == [("Toronto", "Vancouver", "2030-06-01")]


# pylint: disable-next=redefined-outer-name
def test_search_round_trip(auth_headers, fake_flights):
    fake_flights.flights["1001"] = {"id": "1001", "origin": "Toronto", "destination": "Vancouver"}
    fake_flights.flights["2002"] = {"id": "2002", "origin": "Vancouver", "destination": "Toronto"}

    response = client.get(
        "/flights/search",
        params={
            "source": "Toronto",
            "destination": "Vancouver",
            "startDate": "2030-06-01",
            "returnDate": "2030-06-08",
        },
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [f["id"] for f in data["startFlights"]] == ["1001"]
    assert [f["id"] for f in data["returnFlights"]] == ["2002"]
    assert fake_flights.searches[1] == ("Vancouver", "Toronto", "2030-06-08")


# pylint: disable-next=redefined-outer-name
def test_search_validation(auth_headers):
    response = client.get(
        "/flights/search",
        params={"source": "Toronto", "destination": "Vancouver", "startDate": "2030-06-08", "returnDate": "2030-06-01"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.get("/flights/search", params={"source": "Toronto"}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.get(
        "/flights/search", params={"source": "Toronto", "destination": "Vancouver", "startDate": "2030-06-01"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# pylint: disable-next=redefined-outer-name
def test_book_flight_into_cart(test_db, test_user, auth_headers, fake_flights):
    response = client.post("/flights/bookings", json=FLIGHT_DATA, headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["flightNumber"] == "AC101"
    assert data["status"] == "SCHEDULED"
    assert data["itineraryId"] is None
    assert data["userId"] == test_user.id

    assert fake_flights.bookings == [
        {
            "email": "traveller@example.com",
            "firstName": test_user.first_name,
            "lastName": test_user.last_name,
            "passportNumber": "P1234567",
            "flightIds": ["1001"],
        }
    ]

    response = client.get("/flights/bookings", headers=auth_headers)
    assert [f["id"] for f in response.json()] == [data["id"]]
    response = client.get("/bookings/cart", headers=auth_headers)
    assert [f["id"] for f in response.json()["flights"]] == [data["id"]]


# pylint: disable-next=redefined-outer-name
def test_book_flight_missing_fields(auth_headers):
    incomplete = {key: value for key, value in FLIGHT_DATA.items() if key != "passportNumber"}
    response = client.post("/flights/bookings", json=incomplete, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


# pylint: disable-next=redefined-outer-name
def test_remove_flight_from_cart(test_db, test_user, auth_headers):
    flight = add_flight_to_cart(test_db, test_user)

    response = client.delete(f"/flights/bookings/{flight.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "The flight booking was cancelled successfully"}
    assert test_db.query(FlightBooking).count() == 0

    response = client.delete(f"/flights/bookings/{flight.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_cannot_remove_other_users_or_checked_out_flight(test_db, test_user, auth_headers):
    foreign = add_flight_to_cart(test_db, create_user(test_db))
    response = client.delete(f"/flights/bookings/{foreign.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    flight = add_flight_to_cart(test_db, test_user)
    client.post(
        "/bookings/checkout",
        json={"creditCard": {"number": "4539578763621486", "expiryMonth": 12, "expiryYear": 2099}},
        headers=auth_headers,
    )
    response = client.delete(f"/flights/bookings/{flight.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_afs_flight_id():
    assert afs_flight_id("AFS_1001") == "1001"
    assert afs_flight_id("1001") == "1001"
    with pytest.raises(InvalidInput):
        afs_flight_id("AFS_")


@pytest.mark.parametrize(
    "data, expected",
    [
        ([{"id": "1"}], [{"id": "1"}]),
        ({"results": [{"id": "1"}]}, [{"id": "1"}]),
        ({"flights": [{"id": "2"}]}, [{"id": "2"}]),
        ({"message": "nothing"}, []),
        (None, []),
    ],
)
def test_normalize_flights(data, expected):
    assert normalize_flights(data) == expected


def test_client_sends_api_key_and_params():
    session = FakeSession(FakeResponse(payload={"results": [{"id": "1001"}]}))
    afs = FlightAPIClient("https://afs.example.com/api/", "secret", timeout=5, session=session)

    assert afs.search("YYZ", "YVR", "2030-06-01") == [{"id": "1001"}]
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://afs.example.com/api/flights"
    assert kwargs["headers"]["x-api-key"] == "secret"
    assert kwargs["params"] == {"origin": "YYZ", "destination": "YVR", "date": "2030-06-01"}
    assert kwargs["timeout"] == 5


def test_client_book_posts_payload():
    session = FakeSession(FakeResponse(payload={"id": "b-1"}))
    afs = FlightAPIClient("https://afs.example.com/api", "secret", session=session)

    assert afs.book("a@b.c", "Ada", "Lovelace", "P1", ["1001"]) == {"id": "b-1"}
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://afs.example.com/api/bookings")
    assert kwargs["json"]["flightIds"] == ["1001"]


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse(status_code=503)),
        FakeSession(FakeResponse(body_is_json=False)),
        FakeSession(error=requests.ConnectionError("refused")),
    ],
)
def test_client_failures_raise_upstream_failure(session):
    afs = FlightAPIClient("https://afs.example.com/api", "secret", session=session)
    with pytest.raises(UpstreamFailure) as exc:
        afs.get_flight("1001")
    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST


def test_client_rejects_non_object_flight():
    afs = FlightAPIClient("https://afs.example.com/api", "secret", session=FakeSession(FakeResponse(payload=[1, 2])))
    with pytest.raises(UpstreamFailure):
        afs.get_flight("1001")
