import logging
import math
from datetime import date, timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from travel_app.db import get_db, transaction
from travel_app.models.booking import HotelBooking, HotelBookingStatus
from travel_app.models.hotel import Hotel, RoomType
from travel_app.models.user import HotelOwner
from travel_app.schemas.base import Message
from travel_app.schemas.hotel import (
    DateAvailabilityResponse,
    HotelBookingCreate,
    HotelBookingResponse,
    HotelCreate,
    HotelResponse,
    HotelSearchResponse,
    HotelUpdate,
    RoomAvailabilityResponse,
    RoomTypeCreate,
    RoomTypeResponse,
    RoomTypeUpdate,
    RoomTypeUpdateResponse,
    VacancyResponse,
)
from travel_app.utils.auth import get_current_user
from travel_app.utils.availability import (
    book_room,
    cancel_room_bookings,
    compute_availability,
    ensure_capacity,
    lock_room_type,
    priced_availability,
    release_overbooked,
    room_type_vacancy,
)
from travel_app.utils.errors import Forbidden, InvalidInput, NotFound
from travel_app.utils.notifications import notify
from travel_app.utils.validation_helpers import parse_price_range, validate_date_range, validate_stay

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/hotels",
    tags=["hotels"],
)


def get_hotel_owner(db: Session, user_id: int) -> Optional[HotelOwner]:
    return db.query(HotelOwner).filter(HotelOwner.user_id == user_id).first()


def get_hotel(db: Session, hotel_id: int) -> Hotel:
    hotel = db.query(Hotel).filter(Hotel.id == hotel_id).first()
    if not hotel:
        logger.error(f"Hotel not found: {hotel_id}")
        raise NotFound("Hotel not found")
    return hotel


def get_owned_hotel(db: Session, hotel_id: int, user_id: int) -> Hotel:
    hotel = get_hotel(db, hotel_id)
    owner = get_hotel_owner(db, user_id)
    if not owner or hotel.owner_id != owner.id:
        logger.error(f"User {user_id} does not own hotel {hotel_id}")
        raise Forbidden("Not authorized to manage this hotel")
    return hotel


@router.post("/", response_model=HotelResponse, status_code=status.HTTP_201_CREATED)
def create_hotel(hotel: HotelCreate, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Create a hotel owned by the current user.
    Requires a hotel owner account.
    """
    owner = get_hotel_owner(db, current_user["id"])
    if not owner:
        raise Forbidden("Only hotel owners can create hotels")
    db_hotel = Hotel(owner_id=owner.id, **hotel.model_dump())
    db.add(db_hotel)
    db.commit()
    db.refresh(db_hotel)
    logger.info(f"Hotel {db_hotel.id} created by owner {owner.id}")
    return db_hotel


@router.get("/", response_model=List[HotelResponse])
def search_hotels(
    city: Optional[str] = None,
    name: Optional[str] = None,
    min_star_rating: Optional[int] = Query(None, alias="minStarRating"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """
    Search hotels by city, name and minimum star rating.
    """
    query = db.query(Hotel)
    if city:
        query = query.filter(Hotel.city.ilike(city))
    if name:
        query = query.filter(Hotel.name.ilike(f"%{name}%"))
    if min_star_rating is not None:
        query = query.filter(Hotel.star_rating >= min_star_rating)
    return query.order_by(Hotel.id).offset(skip).limit(limit).all()


@router.get("/search", response_model=HotelSearchResponse)
def search_available_hotels(
    city: str,
    check_in: date = Query(..., alias="checkIn"),
    check_out: date = Query(..., alias="checkOut"),
    name: Optional[str] = None,
    star_rating: Optional[int] = Query(None, alias="starRating"),
    price_range: Optional[str] = Query(None, alias="priceRange"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Hotels with at least one room free for the whole stay, cheapest first.

    - **city**, **checkIn**, **checkOut**: required.
    - **name**: (Optional) part of the hotel name.
    - **starRating**: (Optional) exact star rating.
    - **priceRange**: (Optional) `min-max` price per night.

    Each hotel carries the lowest nightly price among its free room types.
    """
    if check_out <= check_in:
        raise InvalidInput("Check-out date must be after check-in date")
    prices = parse_price_range(price_range)

    query = db.query(Hotel).filter(Hotel.city.ilike(f"%{city}%"))
    if name:
        query = query.filter(Hotel.name.ilike(f"%{name}%"))
    if star_rating is not None:
        query = query.filter(Hotel.star_rating == star_rating)

    results = []
    for hotel in query.order_by(Hotel.id).all():
        free_prices = [
            room_type.price_per_night
            for room_type, availability in priced_availability(db, hotel.id, check_in, check_out)
            if availability.available_rooms > 0
            and (prices is None or prices[0] <= room_type.price_per_night <= prices[1])
        ]
        if free_prices:
            results.append({
                "id": hotel.id,
                "name": hotel.name,
                "city": hotel.city,
                "address": hotel.address,
                "star_rating": hotel.star_rating,
                "logo": hotel.logo,
                "starting_price": min(free_prices),
            })
    results.sort(key=lambda result: result["starting_price"])

    total = len(results)
    start = (page - 1) * limit
    logger.debug(f"Hotel search in {city} for {check_in} to {check_out}: {total} hotels with free rooms")
    return {
        "hotels": results[start:start + limit],
        "pagination": {
            "total": total,
            "total_pages": math.ceil(total / limit),
            "current_page": page,
            "limit": limit,
        },
    }


@router.get("/{hotel_id}", response_model=HotelResponse)
def get_hotel_details(hotel_id: int, db: Session = Depends(get_db)):
    return get_hotel(db, hotel_id)


@router.put("/{hotel_id}", response_model=HotelResponse)
def update_hotel(
    hotel_id: int,
    hotel_update: HotelUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Update a hotel's details.
    Requires ownership.
    """
    db_hotel = get_owned_hotel(db, hotel_id, current_user["id"])
    update_data = hotel_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_hotel, key, value)
    db.commit()
    db.refresh(db_hotel)
    return db_hotel


@router.post("/{hotel_id}/rooms", response_model=RoomTypeResponse, status_code=status.HTTP_201_CREATED)
def create_room_type(
    hotel_id: int,
    room_type: RoomTypeCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Add a room type to a hotel.
    Requires ownership.
    """
    get_owned_hotel(db, hotel_id, current_user["id"])
    db_room_type = RoomType(hotel_id=hotel_id, **room_type.model_dump())
    db.add(db_room_type)
    db.commit()
    db.refresh(db_room_type)
    return db_room_type


@router.get("/{hotel_id}/rooms", response_model=List[RoomTypeResponse])
def get_room_types(hotel_id: int, db: Session = Depends(get_db)):
    get_hotel(db, hotel_id)
    return db.query(RoomType).filter(RoomType.hotel_id == hotel_id).order_by(RoomType.id).all()


@router.put("/{hotel_id}/rooms/{room_id}", response_model=RoomTypeUpdateResponse)
def update_room_type(
    hotel_id: int,
    room_id: int,
    room_update: RoomTypeUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Update a room type.
    Requires ownership.

    - Switching **available** off cancels every live booking of the room type.
    - Lowering **quantity** cancels the newest bookings that no longer fit.

    Affected guests are notified.
    """
    get_owned_hotel(db, hotel_id, current_user["id"])
    with transaction(db):
        db_room_type = lock_room_type(db, hotel_id, room_id)
        was_available = db_room_type.available
        old_quantity = db_room_type.quantity

        update_data = room_update.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_room_type, key, value)
        db.flush()

        cancelled = []
        if was_available and not db_room_type.available:
            cancelled = cancel_room_bookings(db, db_room_type)
        elif db_room_type.quantity < old_quantity:
            cancelled = release_overbooked(db, db_room_type)

    db.refresh(db_room_type)
    response = RoomTypeUpdateResponse.model_validate(db_room_type)
    response.cancelled_bookings = len(cancelled)
    return response


@router.post("/{hotel_id}/bookings", response_model=HotelBookingResponse, status_code=status.HTTP_201_CREATED)
def create_hotel_booking(
    hotel_id: int,
    booking: HotelBookingCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Book one room of a room type for a stay. The booking lands in the cart.

    - **roomId**: room type to book.
    - **checkIn** / **checkOut**: stay dates; check-in cannot be in the past.

    Rejected with 409 when no room of the type is free for the dates.
    """
    validate_stay(booking.check_in, booking.check_out)
    hotel = get_hotel(db, hotel_id)

    with transaction(db):
        room_type = lock_room_type(db, hotel_id, booking.room_id)
        ensure_capacity(db, room_type, booking.check_in, booking.check_out)

        db_booking = book_room(db, room_type, current_user["id"], booking.check_in, booking.check_out)
        notify(
            db,
            hotel.owner.user_id,
            f"New booking received for {room_type.type} room at {hotel.name} "
            f"from {booking.check_in} to {booking.check_out}",
        )

    db.refresh(db_booking)
    logger.info(f"Hotel booking {db_booking.id} created for user {current_user['id']}")
    return db_booking


@router.get("/{hotel_id}/bookings", response_model=List[HotelBookingResponse])
def get_hotel_bookings(
    hotel_id: int,
    room_type: Optional[str] = Query(None, alias="roomType"),
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    List the bookings of a hotel.
    Requires ownership.

    - **roomType**: (Optional) only this room type label.
    - **date**: (Optional) only stays covering this date.
    """
    get_owned_hotel(db, hotel_id, current_user["id"])
    query = db.query(HotelBooking).filter(HotelBooking.hotel_id == hotel_id)
    if room_type:
        query = query.join(RoomType, HotelBooking.room_id == RoomType.id).filter(RoomType.type == room_type)
    if on_date:
        query = query.filter(HotelBooking.check_in_date <= on_date, HotelBooking.check_out_date >= on_date)
    return query.order_by(HotelBooking.check_in_date, HotelBooking.id).all()


@router.put("/{hotel_id}/bookings/{booking_id}/cancel", response_model=Message)
def cancel_hotel_booking(
    hotel_id: int,
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Cancel a single hotel booking.

    The guest may cancel their own booking, the hotel owner any booking of
    the hotel. The other party is notified.
    """
    hotel = get_hotel(db, hotel_id)
    db_booking = db.query(HotelBooking).filter(
        HotelBooking.id == booking_id, HotelBooking.hotel_id == hotel_id
    ).first()
    if not db_booking:
        raise NotFound("Booking not found")

    owner = get_hotel_owner(db, current_user["id"])
    is_owner = owner is not None and hotel.owner_id == owner.id
    if not is_owner and db_booking.user_id != current_user["id"]:
        raise Forbidden("Not authorized to cancel this booking")

    if db_booking.status == HotelBookingStatus.CANCELLED:
        logger.debug(f"Hotel booking {booking_id} already cancelled")
        return {"message": "Successfully cancelled booking."}

    with transaction(db):
        db_booking.status = HotelBookingStatus.CANCELLED
        db.flush()
        if is_owner:
            notify(db, db_booking.user_id, f"Your booking with ID {db_booking.id} has been cancelled.")
        else:
            notify(
                db,
                hotel.owner.user_id,
                f"Booking {db_booking.id} at {hotel.name} has been cancelled by the guest.",
            )
    return {"message": "Successfully cancelled booking."}


@router.get("/{hotel_id}/bookings/availability", response_model=VacancyResponse)
def get_vacancy(
    hotel_id: int,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    room_type: str = Query(..., alias="roomType"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Vacant and total rooms of a room type label for a date range.
    """
    validate_date_range(start_date, end_date)
    get_hotel(db, hotel_id)
    return room_type_vacancy(db, hotel_id, room_type, start_date, end_date)


@router.get("/{hotel_id}/room-availability", response_model=List[RoomAvailabilityResponse])
def get_room_availability(
    hotel_id: int,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    room_type_id: Optional[int] = Query(None, alias="roomTypeId"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Availability of every room type of a hotel. Defaults to today and tomorrow.
    Requires ownership.
    """
    get_owned_hotel(db, hotel_id, current_user["id"])
    start_date = start_date or date.today()
    end_date = end_date or start_date + timedelta(days=1)
    validate_date_range(start_date, end_date)
    return compute_availability(db, hotel_id, start_date, end_date, room_type_id)


@router.get("/{hotel_id}/date-availability", response_model=DateAvailabilityResponse)
def get_date_availability(
    hotel_id: int,
    check_in: date = Query(..., alias="checkIn"),
    check_out: date = Query(..., alias="checkOut"),
    db: Session = Depends(get_db),
):
    """
    Free and total rooms of every room type of a hotel for a stay.
    """
    validate_date_range(check_in, check_out)
    get_hotel(db, hotel_id)
    return {
        "availability": [
            {
                "id": room_type.id,
                "type": room_type.type,
                "price_per_night": room_type.price_per_night,
                "amenities": room_type.amenities or [],
                "images": room_type.images or [],
                "available_rooms": availability.available_rooms,
                "total_rooms": availability.total_rooms,
            }
            for room_type, availability in priced_availability(db, hotel_id, check_in, check_out)
        ]
    }
