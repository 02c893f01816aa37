import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from travel_app.db import Base


class BookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class FlightStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"


class HotelBookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"


class FlightBooking(Base):
    """A flight reserved with AFS. No itinerary means it is still in the cart."""

    __tablename__ = "flight_bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    itinerary_id = Column(Integer, ForeignKey("itineraries.id"), nullable=True, index=True)
    flight_id = Column(String, nullable=False)
    flight_number = Column(String, nullable=False)
    departure_time = Column(DateTime, nullable=False)
    arrival_time = Column(DateTime, nullable=False)
    origin_code = Column(String, nullable=False)
    origin_name = Column(String, nullable=True)
    origin_city = Column(String, nullable=True)
    origin_country = Column(String, nullable=True)
    destination_code = Column(String, nullable=False)
    destination_name = Column(String, nullable=True)
    destination_city = Column(String, nullable=True)
    destination_country = Column(String, nullable=True)
    duration = Column(Integer, nullable=True)
    price = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="CAD")
    airline_name = Column(String, nullable=True)
    passport_number = Column(String, nullable=False)
    email = Column(String, nullable=False)
    status = Column(Enum(FlightStatus), nullable=False, default=FlightStatus.SCHEDULED)
    created_at = Column(DateTime, default=datetime.utcnow)

    itinerary = relationship("Itinerary", back_populates="flights")


class HotelBooking(Base):
    """A stay in one room of a room type. No itinerary means it is still in the cart."""

    __tablename__ = "hotel_bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("room_types.id"), nullable=False, index=True)
    itinerary_id = Column(Integer, ForeignKey("itineraries.id"), nullable=True, index=True)
    booking_date = Column(DateTime, default=datetime.utcnow)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(
        Enum(HotelBookingStatus), nullable=False, default=HotelBookingStatus.CONFIRMED
    )

    hotel = relationship("Hotel", back_populates="bookings")
    room = relationship("RoomType", back_populates="bookings")
    itinerary = relationship("Itinerary", back_populates="hotels")


class Itinerary(Base):
    __tablename__ = "itineraries"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=True)

    booking = relationship("Booking", back_populates="itinerary")
    flights = relationship("FlightBooking", back_populates="itinerary", order_by="FlightBooking.id")
    hotels = relationship("HotelBooking", back_populates="itinerary", order_by="HotelBooking.id")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED)
    booking_date = Column(DateTime, default=datetime.utcnow)

    itinerary = relationship("Itinerary", back_populates="booking", uselist=False)
