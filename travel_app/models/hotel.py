from sqlalchemy import Column, Integer, String, Float, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from travel_app.db import Base


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("hotel_owners.id"), nullable=False)
    name = Column(String, index=True, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, index=True, nullable=False)
    star_rating = Column(Integer, nullable=False, default=0)
    logo = Column(String, nullable=True)
    images = Column(JSON, default=list)

    owner = relationship("HotelOwner", back_populates="hotels")
    room_types = relationship(
        "RoomType", back_populates="hotel", cascade="all, delete-orphan"
    )
    bookings = relationship("HotelBooking", back_populates="hotel")


class RoomType(Base):
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    type = Column(String, index=True, nullable=False)
    price_per_night = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    amenities = Column(JSON, default=list)
    images = Column(JSON, default=list)
    available = Column(Boolean, nullable=False, default=True)

    hotel = relationship("Hotel", back_populates="room_types")
    bookings = relationship("HotelBooking", back_populates="room")
