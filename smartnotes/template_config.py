"""Centralized Jinja2 template configuration with timezone support."""
import os
from datetime import date, datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

# App timezone setting - "today" (the only writable note) is computed here
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def get_app_tz() -> ZoneInfo:
    """Get the application timezone."""
    return ZoneInfo(APP_TIMEZONE)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime. Use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def today_local() -> date:
    """Current calendar day in the app timezone."""
    return datetime.now(get_app_tz()).date()


def to_local(dt: datetime) -> datetime:
    """Convert a datetime to the app's local timezone for display.

    Naive datetimes are assumed to be UTC (SQLite drops tzinfo on the way back).
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(get_app_tz())


def longdate(value) -> str:
    """Jinja filter: 'Monday, January 1, 2024'."""
    if value is None:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def shortdate(value) -> str:
    """Jinja filter: 'Jan 1, 2024' (sidebar entries)."""
    if value is None:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def create_templates() -> Jinja2Templates:
    """Create a Jinja2Templates instance with custom filters."""
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    templates.env.filters["longdate"] = longdate
    templates.env.filters["shortdate"] = shortdate

    return templates


# Singleton template instance - import this in route files
templates = create_templates()
