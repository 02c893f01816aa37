from datetime import datetime
from typing import Any, Dict, List, Optional
from travel_app.models.booking import FlightStatus
from travel_app.schemas.base import CamelModel


class FlightSearchResponse(CamelModel):
    start_flights: List[Dict[str, Any]]
    return_flights: Optional[List[Dict[str, Any]]] = None


class FlightBookingCreate(CamelModel):
    flight_id: str
    flight_number: str
    departure_time: datetime
    arrival_time: datetime
    origin_code: str
    origin_name: Optional[str] = None
    origin_city: Optional[str] = None
    origin_country: Optional[str] = None
    destination_code: str
    destination_name: Optional[str] = None
    destination_city: Optional[str] = None
    destination_country: Optional[str] = None
    duration: Optional[int] = None
    price: float
    currency: str = "CAD"
    airline_name: Optional[str] = None
    passport_number: str
    email: str


class FlightBookingResponse(FlightBookingCreate):
    id: int
    user_id: int
    itinerary_id: Optional[int] = None
    status: FlightStatus
    created_at: Optional[datetime] = None
