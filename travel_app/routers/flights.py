import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from travel_app.db import get_db
from travel_app.models.booking import FlightBooking
from travel_app.models.user import User
from travel_app.schemas.base import Message
from travel_app.schemas.flight import FlightBookingCreate, FlightBookingResponse, FlightSearchResponse
from travel_app.utils.auth import get_current_user
from travel_app.utils.errors import Forbidden, InvalidInput, NotFound
from travel_app.utils.flights import FlightAPIClient, afs_flight_id, get_flight_client
from travel_app.utils.itinerary import cart_flights

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/flights",
    tags=["flights"],
)


@router.get("/search", response_model=FlightSearchResponse, response_model_exclude_none=True)
def search_flights(
    source: str,
    destination: str,
    start_date: date = Query(..., alias="startDate"),
    return_date: Optional[date] = Query(None, alias="returnDate"),
    client: FlightAPIClient = Depends(get_flight_client),
    current_user: dict = Depends(get_current_user),
):
    """
    Search AFS for flights. A return date makes it a round trip.

    - **source** / **destination**: city name or airport code.
    - **startDate**: outbound date.
    - **returnDate**: (Optional) inbound date.
    """
    if return_date and return_date < start_date:
        raise InvalidInput("Return date cannot be before the start date")

    logger.debug(f"Searching flights {source} -> {destination} on {start_date}, return {return_date}")
    start_flights = client.search(source, destination, start_date.isoformat())
    if not return_date:
        return {"start_flights": start_flights}
    return_flights = client.search(destination, source, return_date.isoformat())
    return {"start_flights": start_flights, "return_flights": return_flights}


@router.post("/bookings", response_model=FlightBookingResponse, status_code=status.HTTP_201_CREATED)
def book_flight(
    flight: FlightBookingCreate,
    db: Session = Depends(get_db),
    client: FlightAPIClient = Depends(get_flight_client),
    current_user: dict = Depends(get_current_user),
):
    """
    Reserve a flight with AFS and put it in the user's cart.
    """
    user = db.query(User).filter(User.id == current_user["id"]).first()
    if not user:
        raise NotFound("User was not found!")

    client.book(
        email=flight.email,
        first_name=user.first_name,
        last_name=user.last_name,
        passport_number=flight.passport_number,
        flight_ids=[afs_flight_id(flight.flight_id)],
    )

    db_flight = FlightBooking(user_id=user.id, **flight.model_dump())
    db.add(db_flight)
    db.commit()
    db.refresh(db_flight)
    logger.info(f"Flight booking {db_flight.id} added to cart of user {user.id}")
    return db_flight


@router.get("/bookings", response_model=List[FlightBookingResponse])
def get_cart_flights(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """Flights in the cart, not yet part of an itinerary."""
    return cart_flights(db, current_user["id"]).order_by(FlightBooking.id).all()


@router.delete("/bookings/{flight_booking_id}", response_model=Message)
def remove_cart_flight(
    flight_booking_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """Drop a flight from the cart."""
    db_flight = db.query(FlightBooking).filter(FlightBooking.id == flight_booking_id).first()
    if not db_flight:
        raise NotFound("Flight booking not found")
    if db_flight.user_id != current_user["id"]:
        raise Forbidden("Not authorized to remove this flight booking")
    if db_flight.itinerary_id is not None:
        raise InvalidInput("Flight booking is already part of an itinerary")

    db.delete(db_flight)
    db.commit()
    logger.debug(f"Removed flight booking {flight_booking_id} from cart")
    return {"message": "The flight booking was cancelled successfully"}
