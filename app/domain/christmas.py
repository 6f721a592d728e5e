"""
Christmas period rules.

Until 30 September of the year a period starts in, nights inside the period
can only be booked with an access code, and internal guests may take at
most two rooms. From 1 October the code is no longer needed for single
rooms, but the whole chalet can no longer be booked as one unit for that
period.
"""
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from app.domain.calendar import overlaps
from app.domain.errors import ChristmasAccessError
from app.domain.pricing import BulkBooking, PerRoomBooking, ReservationRequest, RoomStay
from app.schemas.settings import ChristmasPeriod, ChristmasSettings

MAX_INTERNAL_ROOMS = 2


def touches(stay: RoomStay, period: ChristmasPeriod) -> bool:
    """True when at least one night of the stay falls inside the period."""
    return overlaps(stay.start_date, stay.end_date, period.start, period.end + timedelta(days=1))


def touched_periods(
    stays: Iterable[RoomStay], periods: Sequence[ChristmasPeriod]
) -> list[ChristmasPeriod]:
    stays = list(stays)
    return [period for period in periods if any(touches(stay, period) for stay in stays)]


def code_required(today: date, period: ChristmasPeriod) -> bool:
    return today <= date(period.start.year, 9, 30)


def check_christmas(
    booking: ReservationRequest,
    christmas: ChristmasSettings,
    today: date,
    access_code: Optional[str] = None,
    previous: Sequence[RoomStay] = (),
) -> None:
    """
    Raises ChristmasAccessError when ``booking`` may not be placed today.

    ``previous`` holds the stays of the booking being edited: a period it
    already touched needs no fresh access code.
    """
    for period in touched_periods(booking.stays, christmas.periods):
        if not code_required(today, period):
            if isinstance(booking, BulkBooking):
                raise ChristmasAccessError(
                    f"Bulk bookings are closed for {period.start} - {period.end}",
                    period.start,
                    period.end,
                    message_key="christmas_bulk_closed",
                    status_code=409,
                )
            continue

        if any(touches(stay, period) for stay in previous):
            continue

        if access_code not in christmas.access_codes:
            raise ChristmasAccessError(
                f"Access code required for {period.start} - {period.end}",
                period.start,
                period.end,
            )

        if isinstance(booking, PerRoomBooking) and booking.guests.has_internal_guest:
            rooms = [stay for stay in booking.stays if touches(stay, period)]
            if len(rooms) > MAX_INTERNAL_ROOMS:
                raise ChristmasAccessError(
                    f"Internal guests may book at most {MAX_INTERNAL_ROOMS} rooms "
                    f"for {period.start} - {period.end}",
                    period.start,
                    period.end,
                    message_key="christmas_room_limit",
                    status_code=400,
                    max_rooms=MAX_INTERNAL_ROOMS,
                )
