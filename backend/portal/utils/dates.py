from datetime import date, datetime, timedelta, timezone


def today() -> date:
    return date.today()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
