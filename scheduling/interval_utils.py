import datetime


def overlaps(
    a_start: datetime.datetime,
    a_end: datetime.datetime,
    b_start: datetime.datetime,
    b_end: datetime.datetime,
) -> bool:
    """
    Half-open interval overlap: `[a_start, a_end)` and `[b_start, b_end)` share
    time. An appointment ending at 10:00 does not overlap one starting at 10:00.
    """
    return a_start < b_end and a_end > b_start


def build_time_slots(step_minutes: int = 5) -> list[datetime.time]:
    """All start times of a day, every `step_minutes` from 00:00."""
    step_minutes = max(1, int(step_minutes))
    return [
        datetime.time(hour, minute)
        for hour in range(24)
        for minute in range(0, 60, step_minutes)
    ]


def day_bounds(day: datetime.date) -> tuple[datetime.datetime, datetime.datetime]:
    start = datetime.datetime.combine(day, datetime.time.min)
    return start, start + datetime.timedelta(days=1)
