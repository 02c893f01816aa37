from datetime import datetime
from typing import List, Optional
from pydantic import field_validator
from travel_app.models.booking import BookingStatus
from travel_app.schemas.base import CamelModel
from travel_app.schemas.flight import FlightBookingResponse
from travel_app.schemas.hotel import HotelBookingResponse


class CreditCard(CamelModel):
    number: str
    expiry_month: int
    expiry_year: int

    @field_validator("number", mode="before")
    @classmethod
    def number_as_text(cls, value):
        if isinstance(value, int):
            return str(value)
        return value


class CheckoutRequest(CamelModel):
    credit_card: CreditCard


class ItineraryResponse(CamelModel):
    id: int
    status: BookingStatus
    booking_id: Optional[int] = None
    flights: List[FlightBookingResponse] = []
    hotels: List[HotelBookingResponse] = []


class BookingResponse(CamelModel):
    id: int
    user_id: int
    status: BookingStatus
    booking_date: Optional[datetime] = None
    itinerary: Optional[ItineraryResponse] = None


class CartResponse(CamelModel):
    flights: List[FlightBookingResponse]
    hotels: List[HotelBookingResponse]
