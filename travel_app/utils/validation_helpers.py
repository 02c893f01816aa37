from datetime import date
from typing import Optional, Tuple
from travel_app.utils.errors import InvalidInput


def validate_date_range(start: date, end: date):
    if start > end:
        raise InvalidInput("Start date cannot be after end date")
    return start, end


def validate_stay(check_in: date, check_out: date, today: Optional[date] = None):
    """A new stay starts today or later and lasts at least one night."""
    today = today or date.today()
    if check_in < today or check_out <= check_in:
        raise InvalidInput("Invalid dates")
    return check_in, check_out


def parse_price_range(value: Optional[str]) -> Optional[Tuple[float, float]]:
    """Turn "min-max" into a pair of prices; no value means no price filter."""
    if not value:
        return None
    try:
        low, high = (float(part) for part in value.split("-"))
    except ValueError:
        raise InvalidInput("Invalid price range")
    if low > high:
        raise InvalidInput("Invalid price range")
    return low, high
