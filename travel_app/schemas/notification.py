from datetime import datetime
from typing import Optional
from travel_app.schemas.base import CamelModel


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    message: str
    read: bool
    created_at: Optional[datetime] = None
