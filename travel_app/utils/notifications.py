import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from travel_app.models.notification import Notification

logger = logging.getLogger(__name__)


def notify(db: Session, user_id: int, message: str) -> None:
    """
    Queue an unread notification for a user in the caller's transaction.

    The insert runs in a savepoint: if it fails the error is logged and the
    surrounding workflow carries on.
    """
    if user_id is None:
        logger.warning(f"Dropping notification without recipient: {message}")
        return
    try:
        with db.begin_nested():
            db.add(Notification(user_id=user_id, message=message, read=False))
    except SQLAlchemyError:
        logger.exception(f"Could not store notification for user {user_id}")
        return
    logger.debug(f"Notification queued for user {user_id}: {message}")
