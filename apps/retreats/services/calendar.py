"""Date arithmetic relative to a retreat's start date."""

from datetime import date


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months from ``start`` to ``end``.

    A month only counts once its day of month is reached, so 15 Jan to
    14 Mar is one month and 15 Jan to 15 Mar is two.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months
