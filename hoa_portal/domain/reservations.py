from datetime import date, time
from typing import Any, Iterable, List, Optional, Union

from .dues import field

PAST_DATE = "Cannot book a date in the past."
START_AFTER_END = "Start time must be before end time."
OVERLAP_REFUSED = "This time slot overlaps an approved reservation for the same amenity."

TimeValue = Union[str, time]


def parse_time(value: TimeValue) -> time:
    if isinstance(value, time):
        return value
    hours, minutes = str(value).split(":")[:2]
    return time(int(hours), int(minutes))


def window_problem(
    reservation_date: date,
    start_time: TimeValue,
    end_time: TimeValue,
    today: Optional[date] = None,
) -> Optional[str]:
    """Return why a booking window is refused, or None."""
    today = today or date.today()
    if reservation_date < today:
        return PAST_DATE
    if parse_time(start_time) >= parse_time(end_time):
        return START_AFTER_END
    return None


def windows_overlap(first: Any, second: Any) -> bool:
    if field(first, "amenity_name") != field(second, "amenity_name"):
        return False
    if field(first, "reservation_date") != field(second, "reservation_date"):
        return False
    return parse_time(field(first, "start_time")) < parse_time(field(second, "end_time")) and parse_time(
        field(second, "start_time")
    ) < parse_time(field(first, "end_time"))


def overlapping(reservation: Any, others: Iterable[Any], statuses=("approved",)) -> List[Any]:
    own_id = field(reservation, "reservation_id")
    return [
        other
        for other in others
        if field(other, "reservation_id") != own_id
        and field(other, "status") in statuses
        and windows_overlap(reservation, other)
    ]
