import calendar
from datetime import date
from typing import Optional


def luhn_check(number: str) -> bool:
    """Luhn checksum: double every second digit counting from the right."""
    if not number or not number.isdigit():
        return False
    total = 0
    for index, char in enumerate(reversed(number)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def expiry_valid(expiry_month: int, expiry_year: int, today: Optional[date] = None) -> bool:
    """A card stays valid up to and including the last day of its expiry month."""
    if not 1 <= expiry_month <= 12 or expiry_year < 1:
        return False
    today = today or date.today()
    last_day = calendar.monthrange(expiry_year, expiry_month)[1]
    return date(expiry_year, expiry_month, last_day) >= today


def validate_credit_card(
    number, expiry_month: int, expiry_year: int, today: Optional[date] = None
) -> bool:
    number = str(number).replace(" ", "")
    return luhn_check(number) and expiry_valid(expiry_month, expiry_year, today)
