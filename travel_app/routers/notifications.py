from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from travel_app.db import get_db
from travel_app.models.notification import Notification
from travel_app.schemas.notification import NotificationResponse
from travel_app.utils.auth import get_current_user
from travel_app.utils.errors import NotFound


router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


@router.get("/", response_model=List[NotificationResponse])
def get_notifications(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Retrieve the current user's notifications, newest first.
    """
    return (
        db.query(Notification)
        .filter(Notification.user_id == current_user["id"])
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(notification_id: int, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Mark one of the current user's notifications as read.
    """
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == current_user["id"],
    ).first()
    if not notification:
        raise NotFound("Invalid notification or user")
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification
