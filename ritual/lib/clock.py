from datetime import date, datetime

__all__ = ["now", "today"]


def now() -> datetime:
    return datetime.now()


def today() -> date:
    """Local calendar date."""
    return date.today()
