import calendar
import datetime


def overlaps(
    start_a: datetime.date,
    end_a: datetime.date,
    start_b: datetime.date,
    end_b: datetime.date,
) -> bool:
    """Half-open overlap of [start_a, end_a) and [start_b, end_b).

    Back-to-back stays never overlap: a range ending on day D and another
    starting on D share no night.
    """
    return start_a < end_b and start_b < end_a


def contains(start: datetime.date, end: datetime.date, day: datetime.date) -> bool:
    return start <= day < end


def nights(start: datetime.date, end: datetime.date) -> int:
    return max(0, (end - start).days)


def enumerate_dates(start: datetime.date, end: datetime.date) -> list[datetime.date]:
    """Every day in [start, end), ascending."""
    return [
        start + datetime.timedelta(days=offset)
        for offset in range(nights(start, end))
    ]


def get_month_dates(year: int, month: int) -> list[datetime.date]:
    _, days_in_month = calendar.monthrange(year, month)
    return [
        datetime.date(year, month, day)
        for day in range(1, days_in_month + 1)
    ]
