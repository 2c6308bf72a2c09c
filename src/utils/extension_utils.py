from datetime import date, datetime, time, timezone


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_midnight(value: datetime) -> datetime:
    return datetime.combine(to_utc(value).date(), time.min, tzinfo=timezone.utc)


def utc_date(value: datetime) -> date:
    return to_utc(value).date()


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole UTC calendar days from `earlier` to `later`."""
    return abs((utc_midnight(later) - utc_midnight(earlier)).days)
