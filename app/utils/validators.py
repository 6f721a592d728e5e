"""
Утилиты валидации данных
"""

import re
from datetime import date, timedelta

from app.domain.errors import InvalidRangeError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_phone(phone: str) -> bool:
    """
    Валидация номера телефона.
    Accepts +420 / +421 followed by 9 digits, whitespace ignored.
    """
    clean_phone = re.sub(r"\s", "", phone or "")

    pattern = r"^\+42[01]\d{9}$"
    return bool(re.match(pattern, clean_phone))


def format_phone(phone: str) -> str:
    """
    Форматирование телефона в стандартный вид +420 XXX XXX XXX
    """
    clean_phone = re.sub(r"\s", "", phone or "")

    if validate_phone(clean_phone):
        prefix, number = clean_phone[:4], clean_phone[4:]
        return f"{prefix} {number[0:3]} {number[3:6]} {number[6:]}"

    return phone


def validate_booking_dates(
    start: date,
    end: date,
    today: date,
    horizon_days: int,
    allow_past: bool = False,
) -> None:
    """
    Валидация дат заезда и выезда.
    Raises InvalidRangeError; returns None when the range is acceptable.
    """
    if start >= end:
        raise InvalidRangeError("End date must be after start date", start=start, end=end)

    if not allow_past and start < today:
        raise InvalidRangeError(
            "Start date is in the past", start=start, end=end, message_key="past_start"
        )

    if start > today + timedelta(days=horizon_days):
        raise InvalidRangeError(
            "Start date is too far ahead", start=start, end=end, message_key="beyond_horizon"
        )
