import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import Date, DateTime, Integer, and_, func, insert, literal, select
from sqlalchemy.orm import Session
from travel_app.models.booking import HotelBooking, HotelBookingStatus
from travel_app.models.hotel import RoomType
from travel_app.utils.errors import Conflict, NotFound
from travel_app.utils.notifications import notify

logger = logging.getLogger(__name__)


@dataclass
class RoomAvailability:
    room_type_id: int
    type: str
    total_rooms: int
    available_rooms: int
    occupied_rooms: int


def ranges_overlap(start1: date, end1: date, start2: date, end2: date) -> bool:
    """Inclusive overlap: a stay ending on the day another begins still counts."""
    return start1 <= end2 and start2 <= end1


def overlapping(check_in: date, check_out: date):
    return and_(
        HotelBooking.check_in_date <= check_out,
        HotelBooking.check_out_date >= check_in,
    )


def occupying_bookings(db: Session, room_type_ids, check_in: date, check_out: date):
    """Confirmed bookings of the given room types that overlap the stay."""
    return db.query(HotelBooking).filter(
        HotelBooking.room_id.in_(list(room_type_ids)),
        HotelBooking.status == HotelBookingStatus.CONFIRMED,
        overlapping(check_in, check_out),
    )


def compute_availability(
    db: Session,
    hotel_id: int,
    check_in: date,
    check_out: date,
    room_type_id: Optional[int] = None,
) -> List[RoomAvailability]:
    """
    Vacancy per room type of a hotel for a date range.

    Only confirmed bookings occupy a room. A room type switched off by its
    owner reports no available rooms.
    """
    query = db.query(RoomType).filter(RoomType.hotel_id == hotel_id)
    if room_type_id is not None:
        query = query.filter(RoomType.id == room_type_id)

    result = []
    for room_type in query.order_by(RoomType.id).all():
        occupied = occupying_bookings(db, [room_type.id], check_in, check_out).count()
        total = max(0, room_type.quantity)
        available = max(0, total - occupied) if room_type.available else 0
        result.append(
            RoomAvailability(
                room_type_id=room_type.id,
                type=room_type.type,
                total_rooms=total,
                available_rooms=available,
                occupied_rooms=occupied,
            )
        )
    logger.debug(f"Computed availability for hotel {hotel_id}, {check_in} to {check_out}: {result}")
    return result


def priced_availability(db: Session, hotel_id: int, check_in: date, check_out: date):
    """Pair every room type of a hotel with its availability for the dates."""
    room_types = {
        room_type.id: room_type
        for room_type in db.query(RoomType).filter(RoomType.hotel_id == hotel_id).all()
    }
    return [
        (room_types[availability.room_type_id], availability)
        for availability in compute_availability(db, hotel_id, check_in, check_out)
    ]


def room_type_vacancy(db: Session, hotel_id: int, label: str, check_in: date, check_out: date) -> dict:
    """Vacant and total rooms across every room type of a hotel sharing a label."""
    room_types = db.query(RoomType).filter(
        RoomType.hotel_id == hotel_id,
        RoomType.type == label,
        RoomType.available.is_(True),
    ).all()
    total = sum(max(0, room_type.quantity) for room_type in room_types)
    occupied = 0
    if room_types:
        occupied = occupying_bookings(
            db, [room_type.id for room_type in room_types], check_in, check_out
        ).count()
    return {"type": label, "vacant_rooms": max(0, total - occupied), "total_rooms": total}


def lock_room_type(db: Session, hotel_id: int, room_type_id: int) -> RoomType:
    """Load a room type with a row lock held until the transaction ends."""
    room_type = (
        db.query(RoomType)
        .filter(RoomType.id == room_type_id, RoomType.hotel_id == hotel_id)
        .with_for_update()
        .first()
    )
    if not room_type:
        raise NotFound("Room type not found")
    return room_type


def ensure_capacity(db: Session, room_type: RoomType, check_in: date, check_out: date) -> int:
    """
    Raise Conflict unless one more stay fits in the room type.

    Call it with the room type locked (see lock_room_type) and insert the
    booking in the same transaction. Returns the rooms left before the insert.
    """
    if not room_type.available:
        logger.error(f"Room type {room_type.id} is marked unavailable")
        raise Conflict("Room type is not available")
    occupied = occupying_bookings(db, [room_type.id], check_in, check_out).count()
    vacant = room_type.quantity - occupied
    if vacant <= 0:
        logger.error(
            f"No capacity in room type {room_type.id}: {occupied}/{room_type.quantity} occupied "
            f"for {check_in} to {check_out}"
        )
        raise Conflict("No rooms available for selected dates")
    return vacant


def book_room(db: Session, room_type: RoomType, user_id: int, check_in: date, check_out: date) -> HotelBooking:
    """
    Insert a confirmed stay in a room type, only if a room is still free.

    The vacancy count and the insert run as one INSERT ... SELECT, so two
    requests racing for the last room cannot both get it, whatever the
    database does with FOR UPDATE.
    """
    bookings = HotelBooking.__table__
    occupant = bookings.alias("occupant")
    occupied = (
        select(func.count(occupant.c.id))
        .where(
            occupant.c.room_id == room_type.id,
            occupant.c.status == HotelBookingStatus.CONFIRMED,
            occupant.c.check_in_date <= check_out,
            occupant.c.check_out_date >= check_in,
        )
        .scalar_subquery()
    )
    vacancy = select(
        literal(user_id, Integer),
        RoomType.hotel_id,
        RoomType.id,
        literal(check_in, Date),
        literal(check_out, Date),
        literal(HotelBookingStatus.CONFIRMED, bookings.c.status.type),
        literal(datetime.utcnow(), DateTime),
    ).where(
        RoomType.id == room_type.id,
        RoomType.available.is_(True),
        RoomType.quantity > occupied,
    )
    result = db.execute(
        insert(bookings).from_select(
            ["user_id", "hotel_id", "room_id", "check_in_date", "check_out_date", "status", "booking_date"],
            vacancy,
        )
    )
    if result.rowcount != 1:
        logger.error(f"Room type {room_type.id} filled up before the stay {check_in} to {check_out} was stored")
        raise Conflict("No rooms available for selected dates")

    return (
        db.query(HotelBooking)
        .filter(
            HotelBooking.user_id == user_id,
            HotelBooking.room_id == room_type.id,
            HotelBooking.check_in_date == check_in,
            HotelBooking.check_out_date == check_out,
        )
        .order_by(HotelBooking.id.desc())
        .first()
    )


def cancel_room_bookings(db: Session, room_type: RoomType) -> List[HotelBooking]:
    """Cancel every live booking of a room type and tell each guest."""
    bookings = db.query(HotelBooking).filter(
        HotelBooking.room_id == room_type.id,
        HotelBooking.status != HotelBookingStatus.CANCELLED,
    ).all()
    for booking in bookings:
        booking.status = HotelBookingStatus.CANCELLED
    db.flush()
    for booking in bookings:
        notify(
            db,
            booking.user_id,
            f"Your booking for room {booking.room_id} has been cancelled due to a change in availability.",
        )
    logger.info(f"Cancelled {len(bookings)} bookings of room type {room_type.id}")
    return bookings


def release_overbooked(db: Session, room_type: RoomType) -> List[HotelBooking]:
    """
    Bring confirmed bookings back within a lowered quantity.

    For every booked date range, the most recently made overlapping bookings
    beyond the quantity are cancelled and their guests notified.
    """
    ranges = (
        db.query(HotelBooking.check_in_date, HotelBooking.check_out_date)
        .filter(
            HotelBooking.room_id == room_type.id,
            HotelBooking.status == HotelBookingStatus.CONFIRMED,
        )
        .distinct()
        .all()
    )

    cancelled = []
    for check_in, check_out in ranges:
        clashing = (
            occupying_bookings(db, [room_type.id], check_in, check_out)
            .order_by(HotelBooking.booking_date.desc(), HotelBooking.id.desc())
            .all()
        )
        excess = len(clashing) - max(0, room_type.quantity)
        if excess <= 0:
            continue
        for booking in clashing[:excess]:
            booking.status = HotelBookingStatus.CANCELLED
            cancelled.append(booking)
        db.flush()

    for booking in cancelled:
        notify(
            db,
            booking.user_id,
            f"Your booking for {room_type.type} room has been cancelled due to reduced room availability.",
        )
    if cancelled:
        logger.info(f"Released {len(cancelled)} overbooked stays of room type {room_type.id}")
    return cancelled
