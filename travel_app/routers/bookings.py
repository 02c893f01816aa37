import logging
from typing import List
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session, selectinload
from travel_app.db import get_db
from travel_app.models.booking import Booking, FlightBooking, HotelBooking, Itinerary
from travel_app.models.user import User
from travel_app.schemas.base import Message
from travel_app.schemas.booking import BookingResponse, CartResponse, CheckoutRequest
from travel_app.utils.auth import get_current_user
from travel_app.utils.errors import Forbidden, NotFound
from travel_app.utils.flights import FlightAPIClient, get_flight_client, verify_flight_schedule
from travel_app.utils.invoice import render_invoice
from travel_app.utils.itinerary import (
    cancel_booking,
    cart_flights,
    cart_hotels,
    checkout,
    load_booking,
    update_itinerary,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


def _owned(booking: Booking, current_user: dict) -> Booking:
    if booking.user_id != current_user["id"]:
        logger.error(f"User {current_user['id']} not authorized for booking {booking.id}")
        raise Forbidden("Not authorized to access this booking")
    return booking


@router.get(
    "/",
    response_model=List[BookingResponse],
    summary="List bookings",
    description="Retrieve the current user's bookings with their itineraries. Requires authentication.",
)
def get_bookings(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    bookings = (
        db.query(Booking)
        .options(
            selectinload(Booking.itinerary).selectinload(Itinerary.flights),
            selectinload(Booking.itinerary).selectinload(Itinerary.hotels),
        )
        .filter(Booking.user_id == current_user["id"])
        .order_by(Booking.id)
        .all()
    )
    logger.debug(f"Retrieved {len(bookings)} bookings for user {current_user['id']}")
    return bookings


@router.get(
    "/cart",
    response_model=CartResponse,
    summary="Show the cart",
    description="Flight and hotel bookings not yet checked out. Requires authentication.",
)
def get_cart(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return {
        "flights": cart_flights(db, current_user["id"]).order_by(FlightBooking.id).all(),
        "hotels": cart_hotels(db, current_user["id"]).order_by(HotelBooking.id).all(),
    }


@router.post(
    "/checkout",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check out the cart",
    description="Pay for everything in the cart and confirm it as one itinerary. Requires authentication.",
)
def checkout_cart(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Consolidate the cart into a confirmed booking.

    - **creditCard**: `number`, `expiryMonth`, `expiryYear`.

    Returns the booking with its itinerary, flights and hotels.
    """
    logger.debug(f"Checkout for user {current_user['id']}")
    return checkout(db, current_user["id"], body.credit_card)


@router.get(
    "/verify-flight",
    response_model=Message,
    summary="Verify a flight",
    description="Check a booked flight against its live schedule. Requires authentication.",
)
def verify_flight(
    flight_booking_id: int = Query(..., alias="flightBookingId"),
    db: Session = Depends(get_db),
    client: FlightAPIClient = Depends(get_flight_client),
    current_user: dict = Depends(get_current_user),
):
    """
    Compare a flight booking with AFS.

    If the airline no longer lists the flight as scheduled, the booking is
    cancelled and the user notified.
    """
    flight_booking = db.query(FlightBooking).filter(FlightBooking.id == flight_booking_id).first()
    if not flight_booking:
        raise NotFound("We could not find this booking")
    if flight_booking.user_id != current_user["id"]:
        raise Forbidden("Not authorized to access this booking")

    if verify_flight_schedule(db, client, flight_booking):
        return {"message": "Your flight schedule has remained the same!"}
    return {
        "message": "Your flight schedule has been cancelled! Please update your booking accordingly!"
    }


@router.get(
    "/invoice",
    response_class=Response,
    summary="Download an invoice",
    description="PDF invoice of a booking. Requires authentication and ownership.",
)
def get_invoice(
    booking_id: int = Query(..., alias="bookingId"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    booking = _owned(load_booking(db, booking_id), current_user)
    if not booking.itinerary:
        raise NotFound("Itinerary not found")
    user = db.query(User).filter(User.id == booking.user_id).first()
    if not user:
        raise NotFound("User not found")

    pdf = render_invoice(booking, user)
    logger.debug(f"Rendered invoice for booking {booking_id} ({len(pdf)} bytes)")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice-{booking_id}.pdf"'},
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking by ID",
    description="Retrieve a booking with its itinerary. Requires authentication and ownership.",
)
def get_booking(booking_id: int, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return _owned(load_booking(db, booking_id), current_user)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Update a booking",
    description="Replace the booking's itinerary contents with the current cart. Requires authentication and ownership.",
)
def update_booking(
    booking_id: int,
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Re-check out a booking.

    Flights and hotels previously in the itinerary are removed, and
    everything currently in the cart takes their place.
    """
    return update_itinerary(db, booking_id, current_user["id"], body.credit_card)


@router.delete(
    "/{booking_id}",
    response_model=Message,
    summary="Cancel a booking",
    description="Cancel a booking, its itinerary and all of its flights and hotels. Requires authentication and ownership.",
)
def delete_booking(booking_id: int, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    cancel_booking(db, booking_id, current_user["id"])
    return {"message": "Booking cancelled successfully!"}
