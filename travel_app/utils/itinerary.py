import logging
from sqlalchemy.orm import Session, selectinload
from travel_app.db import transaction
from travel_app.models.booking import (
    Booking,
    BookingStatus,
    FlightBooking,
    FlightStatus,
    HotelBooking,
    HotelBookingStatus,
    Itinerary,
)
from travel_app.utils.card import validate_credit_card
from travel_app.utils.errors import Conflict, Forbidden, InvalidInput, NotFound
from travel_app.utils.notifications import notify

logger = logging.getLogger(__name__)


def load_booking(db: Session, booking_id: int) -> Booking:
    booking = (
        db.query(Booking)
        .options(
            selectinload(Booking.itinerary).selectinload(Itinerary.flights),
            selectinload(Booking.itinerary).selectinload(Itinerary.hotels),
        )
        .filter(Booking.id == booking_id)
        .first()
    )
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        raise NotFound("Booking not found")
    return booking


def _owned_booking(db: Session, booking_id: int, user_id: int) -> Booking:
    booking = load_booking(db, booking_id)
    if booking.user_id != user_id:
        logger.error(f"User {user_id} not authorized for booking {booking_id}")
        raise Forbidden("Not authorized to access this booking")
    return booking


def _require_valid_card(card) -> None:
    if not validate_credit_card(card.number, card.expiry_month, card.expiry_year):
        logger.error("Credit card rejected")
        raise InvalidInput("Credit card details invalid")


def cart_flights(db: Session, user_id: int):
    return db.query(FlightBooking).filter(
        FlightBooking.user_id == user_id, FlightBooking.itinerary_id.is_(None)
    )


def cart_hotels(db: Session, user_id: int):
    return db.query(HotelBooking).filter(
        HotelBooking.user_id == user_id, HotelBooking.itinerary_id.is_(None)
    )


def _link_cart(db: Session, user_id: int, itinerary_id: int):
    # One conditional UPDATE per kind: whatever is in the cart at this moment
    # is exactly what gets linked.
    flights = cart_flights(db, user_id).update(
        {FlightBooking.itinerary_id: itinerary_id}, synchronize_session=False
    )
    hotels = cart_hotels(db, user_id).update(
        {HotelBooking.itinerary_id: itinerary_id}, synchronize_session=False
    )
    return flights, hotels


def checkout(db: Session, user_id: int, card) -> Booking:
    """
    Consolidate the user's cart into a new confirmed itinerary and booking.

    An empty cart still produces an (empty) itinerary.
    """
    _require_valid_card(card)

    with transaction(db):
        itinerary = Itinerary(status=BookingStatus.CONFIRMED)
        db.add(itinerary)
        db.flush()

        flights, hotels = _link_cart(db, user_id, itinerary.id)
        logger.debug(f"Linked {flights} flights and {hotels} hotels to itinerary {itinerary.id}")

        booking = Booking(status=BookingStatus.CONFIRMED, user_id=user_id)
        db.add(booking)
        db.flush()

        itinerary.booking_id = booking.id
        db.flush()
        notify(db, user_id, f"Itinerary confirmed (ID: {booking.id})")

    logger.info(f"User {user_id} checked out booking {booking.id}")
    db.expire_all()
    return load_booking(db, booking.id)


def update_itinerary(db: Session, booking_id: int, user_id: int, card) -> Booking:
    """
    Replace the contents of a booking's itinerary with the user's current cart.

    The user's bookings previously linked to the itinerary are deleted.
    """
    _require_valid_card(card)

    with transaction(db):
        booking = _owned_booking(db, booking_id, user_id)
        if booking.status == BookingStatus.CANCELLED:
            raise Conflict("Cancelled bookings cannot be updated")

        itinerary = db.query(Itinerary).filter(Itinerary.booking_id == booking_id).first()
        if not itinerary:
            logger.error(f"Itinerary not found for booking {booking_id}")
            raise NotFound("Itinerary not found for this booking")

        removed_flights = db.query(FlightBooking).filter(
            FlightBooking.user_id == user_id, FlightBooking.itinerary_id == itinerary.id
        ).delete(synchronize_session=False)
        removed_hotels = db.query(HotelBooking).filter(
            HotelBooking.user_id == user_id, HotelBooking.itinerary_id == itinerary.id
        ).delete(synchronize_session=False)
        logger.debug(
            f"Removed {removed_flights} flights and {removed_hotels} hotels from itinerary {itinerary.id}"
        )

        _link_cart(db, user_id, itinerary.id)
        notify(db, user_id, f"Itinerary updated (ID: {booking_id})")

    db.expire_all()
    return load_booking(db, booking_id)


def cancel_booking(db: Session, booking_id: int, user_id: int) -> Booking:
    """Cancel a booking together with its itinerary and every booking linked to it."""
    with transaction(db):
        booking = _owned_booking(db, booking_id, user_id)
        if booking.status == BookingStatus.CANCELLED:
            logger.debug(f"Booking {booking_id} already cancelled")
            return booking

        booking.status = BookingStatus.CANCELLED
        itinerary = booking.itinerary
        if itinerary:
            itinerary.status = BookingStatus.CANCELLED
            for flight in itinerary.flights:
                flight.status = FlightStatus.CANCELLED
            for hotel in itinerary.hotels:
                hotel.status = HotelBookingStatus.CANCELLED
        db.flush()
        notify(db, user_id, f"Booking cancelled (ID: {booking_id})")

    logger.info(f"Booking {booking_id} cancelled by user {user_id}")
    return booking
