import logging
from typing import List, Optional
import requests
from sqlalchemy.orm import Session
from travel_app.config import get_settings
from travel_app.db import transaction
from travel_app.models.booking import FlightBooking, FlightStatus
from travel_app.utils.errors import InvalidInput, UpstreamFailure
from travel_app.utils.notifications import notify

logger = logging.getLogger(__name__)


class FlightAPIClient:
    """
    Thin client for the Advanced Flights System (AFS).

    Every call is a single attempt. Transport errors, non-2xx answers and
    bodies that are not JSON all raise UpstreamFailure.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 15.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        headers = {"x-api-key": self.api_key, "Content-Type": "application/json"}
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"AFS {method} {path} failed: {e}")
            raise UpstreamFailure("Failed to reach the flight provider")

        if not response.ok:
            logger.error(f"AFS {method} {path} answered {response.status_code}")
            raise UpstreamFailure(f"Flight provider returned status {response.status_code}")
        try:
            return response.json()
        except ValueError:
            logger.error(f"AFS {method} {path} returned a non-JSON body")
            raise UpstreamFailure("Flight provider returned an unreadable response")

    def search(self, origin: str, destination: str, date: str) -> List[dict]:
        data = self._request(
            "GET", "/flights", params={"origin": origin, "destination": destination, "date": date}
        )
        return normalize_flights(data)

    def get_flight(self, flight_id: str) -> dict:
        data = self._request("GET", f"/flights/{flight_id}")
        if not isinstance(data, dict):
            raise UpstreamFailure("Flight provider returned an unexpected flight")
        return data

    def book(self, email: str, first_name: str, last_name: str, passport_number: str, flight_ids: List[str]) -> dict:
        payload = {
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "passportNumber": passport_number,
            "flightIds": flight_ids,
        }
        logger.debug(f"Placing AFS booking for flights {flight_ids}")
        return self._request("POST", "/bookings", json=payload)


def normalize_flights(data) -> List[dict]:
    """AFS answers with either a bare list or an object wrapping one."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("results", "flights"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


def get_flight_client() -> FlightAPIClient:
    settings = get_settings()
    return FlightAPIClient(settings.afs_base_url, settings.afs_api_key, settings.afs_timeout)


def afs_flight_id(flight_id: str) -> str:
    """Stored flight ids may carry a prefix; AFS knows the part after the last '_'."""
    afs_id = (flight_id or "").split("_")[-1]
    if not afs_id:
        raise InvalidInput("Invalid flight ID format")
    return afs_id


def verify_flight_schedule(db: Session, client: FlightAPIClient, flight_booking: FlightBooking) -> bool:
    """
    Compare a stored flight booking with its live AFS status.

    Returns True when nothing changed. Otherwise the booking is cancelled,
    the user is notified and False is returned.
    """
    if flight_booking.status == FlightStatus.CANCELLED:
        logger.debug(f"Flight booking {flight_booking.id} already cancelled")
        return False

    live = client.get_flight(afs_flight_id(flight_booking.flight_id))
    if live.get("status") == FlightStatus.SCHEDULED.value and flight_booking.status == FlightStatus.SCHEDULED:
        return True

    with transaction(db):
        flight_booking.status = FlightStatus.CANCELLED
        db.flush()
        notify(
            db,
            flight_booking.user_id,
            f"Your flight {flight_booking.flight_number} has been cancelled by the airline.",
        )
    logger.info(f"Flight booking {flight_booking.id} cancelled after schedule check: {live.get('status')}")
    return False
