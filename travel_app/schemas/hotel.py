from datetime import date, datetime
from typing import List, Optional
from pydantic import Field, field_validator
from travel_app.models.booking import HotelBookingStatus
from travel_app.schemas.base import CamelModel


class HotelBase(CamelModel):
    name: str
    address: str
    city: str
    star_rating: int = Field(0, ge=0, le=5)
    logo: Optional[str] = None
    images: List[str] = []


class HotelCreate(HotelBase):
    pass


class HotelUpdate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    star_rating: Optional[int] = Field(None, ge=0, le=5)
    logo: Optional[str] = None
    images: Optional[List[str]] = None


class HotelResponse(HotelBase):
    id: int
    owner_id: int


class RoomTypeBase(CamelModel):
    type: str
    price_per_night: float = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    amenities: List[str] = []
    images: List[str] = []
    available: bool = True


class RoomTypeCreate(RoomTypeBase):
    pass


class RoomTypeUpdate(CamelModel):
    type: Optional[str] = None
    price_per_night: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    available: Optional[bool] = None


class RoomTypeResponse(RoomTypeBase):
    id: int
    hotel_id: int


class RoomTypeUpdateResponse(RoomTypeResponse):
    cancelled_bookings: int = 0


class HotelBookingCreate(CamelModel):
    room_id: int
    check_in: date
    check_out: date

    @field_validator("check_out")
    @classmethod
    def check_out_after_check_in(cls, value, info):
        check_in = info.data.get("check_in")
        if check_in and value <= check_in:
            raise ValueError("Check-out must be after check-in")
        return value


class HotelBookingResponse(CamelModel):
    id: int
    user_id: int
    hotel_id: int
    room_id: int
    itinerary_id: Optional[int] = None
    booking_date: Optional[datetime] = None
    check_in_date: date
    check_out_date: date
    status: HotelBookingStatus


class RoomAvailabilityResponse(CamelModel):
    room_type_id: int
    type: str
    total_rooms: int
    available_rooms: int
    occupied_rooms: int


class VacancyResponse(CamelModel):
    type: str
    vacant_rooms: int
    total_rooms: int


class HotelSearchResult(CamelModel):
    id: int
    name: str
    city: str
    address: str
    star_rating: int
    logo: Optional[str] = None
    starting_price: float


class Pagination(CamelModel):
    total: int
    total_pages: int
    current_page: int
    limit: int


class HotelSearchResponse(CamelModel):
    hotels: List[HotelSearchResult]
    pagination: Pagination


class RoomTypeDateAvailability(CamelModel):
    id: int
    type: str
    price_per_night: float
    amenities: List[str] = []
    images: List[str] = []
    available_rooms: int
    total_rooms: int


class DateAvailabilityResponse(CamelModel):
    availability: List[RoomTypeDateAvailability]
