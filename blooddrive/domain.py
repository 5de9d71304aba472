"""
Donation rules shared by the HTTP layer and the participation workflows.

Everything here is pure: rows come in as the dicts the backend returns and
nothing touches the network.
"""

from __future__ import annotations

import math
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

from blooddrive.config import settings

# No I, O, 0 or 1: codes are read aloud and typed by hand.
VALIDATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 8

STATUS_REGISTERED = "inscrita"
STATUS_VALIDATED = "validated"
STATUS_CANCELLED = "cancelada"

HISTORY_FILTERS = ("all", "validated", "pending")
ADMIN_TABS = ("active", "history")


# =============================================================================
# Validation codes
# =============================================================================


def generate_validation_code(length: int | None = None) -> str:
    """Return a random code drawn from VALIDATION_CODE_ALPHABET."""
    size = settings.validation_code_length if length is None else length
    if not MIN_CODE_LENGTH <= size <= MAX_CODE_LENGTH:
        raise ValueError(f"validation code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}")
    return "".join(secrets.choice(VALIDATION_CODE_ALPHABET) for _ in range(size))


def normalize_code(raw: str | None) -> str:
    """Trim, uppercase and cap a code the way the entry field does."""
    return (raw or "").strip().upper()[:MAX_CODE_LENGTH]


# =============================================================================
# Dates
# =============================================================================


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a backend timestamp into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC) and ISO strings, including the
    trailing ``Z`` PostgREST emits. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return parse_timestamp(value).date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_timestamp(text).date()


def next_eligible_date(donated_on: date, cooldown_days: int | None = None) -> date:
    days = settings.donation_cooldown_days if cooldown_days is None else cooldown_days
    return donated_on + timedelta(days=days)


def advance_next_date(current: Any, validated_on: date, cooldown_days: int | None = None) -> date:
    """
    Next-eligible date after a validated donation.

    Only ever moves forward: a later date already on the profile is kept.
    """
    candidate = next_eligible_date(validated_on, cooldown_days)
    existing = parse_date(current)
    if existing is not None and existing > candidate:
        return existing
    return candidate


def is_eligible(next_date: Any, campaign_start: Any) -> bool:
    """A donor may sign up when they have no next date or it falls on/before the start date."""
    eligible_from = parse_date(next_date)
    if eligible_from is None:
        return True
    start = parse_date(campaign_start)
    if start is None:
        return False
    return eligible_from <= start


def can_donate_on(next_date: Any, today: date) -> bool:
    eligible_from = parse_date(next_date)
    return eligible_from is None or eligible_from <= today


def age_on(birthday: date, today: date) -> int:
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


# =============================================================================
# Embedded rows
# =============================================================================


def one(value: Any) -> dict[str, Any] | None:
    """PostgREST embeds to-one relations as an object, sometimes as a one-item list."""
    if isinstance(value, list):
        return value[0] if value else None
    if isinstance(value, dict):
        return value
    return None


def campaign_location(campaign: dict[str, Any]) -> dict[str, Any] | None:
    return one(campaign.get("locacion"))


def location_entity(location: dict[str, Any] | None) -> dict[str, Any] | None:
    if not location:
        return None
    return one(location.get("entidad"))


def _contains(haystack: Any, needle: str) -> bool:
    return bool(haystack) and needle in str(haystack).lower()


# =============================================================================
# Campaign listings
# =============================================================================


def filter_campaigns(
    campaigns: Iterable[dict[str, Any]],
    *,
    q: str | None = None,
    on_date: date | None = None,
    city: str | None = None,
) -> list[dict[str, Any]]:
    """
    Donor-side campaign filters, ordered by start ascending.

    ``q`` matches location name/address, entity name, type and component;
    ``city`` matches the location address; ``on_date`` the UTC start date.
    """
    items = list(campaigns)

    query = (q or "").strip().lower()
    if query:

        def matches(c: dict[str, Any]) -> bool:
            loc = campaign_location(c) or {}
            ent = location_entity(loc) or {}
            return (
                _contains(loc.get("nombre"), query)
                or _contains(loc.get("direccion"), query)
                or _contains(ent.get("nombre"), query)
                or _contains(c.get("tipo"), query)
                or _contains(c.get("componente"), query)
            )

        items = [c for c in items if matches(c)]

    if on_date is not None:
        items = [c for c in items if parse_date(c.get("fecha_inicio")) == on_date]

    city_q = (city or "").strip().lower()
    if city_q:
        items = [c for c in items if _contains((campaign_location(c) or {}).get("direccion"), city_q)]

    return sorted(items, key=lambda c: parse_timestamp(c.get("fecha_inicio")) or datetime.max.replace(tzinfo=timezone.utc))


def in_admin_tab(campaign: dict[str, Any], tab: str, now: datetime) -> bool:
    """`active`: running or upcoming and still active; `history`: ended or not active."""
    ends_at = parse_timestamp(campaign.get("fecha_fin"))
    is_active = campaign.get("status") == "active"
    current = ends_at is not None and ends_at >= now
    if tab == "active":
        return current and is_active
    return not current or not is_active


def filter_admin_campaigns(
    campaigns: Iterable[dict[str, Any]],
    *,
    tab: str = "active",
    q: str | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    moment = now or utcnow()
    items = [c for c in campaigns if in_admin_tab(c, tab, moment)]

    query = (q or "").strip().lower()
    if query:

        def matches(c: dict[str, Any]) -> bool:
            loc = campaign_location(c) or {}
            ent = location_entity(loc) or {}
            return (
                _contains(c.get("nombre"), query)
                or _contains(c.get("tipo"), query)
                or _contains(c.get("componente"), query)
                or _contains(loc.get("nombre"), query)
                or _contains(ent.get("nombre"), query)
            )

        items = [c for c in items if matches(c)]
    return items


def filter_locations(locations: Iterable[dict[str, Any]], q: str | None = None) -> list[dict[str, Any]]:
    query = (q or "").strip().lower()
    if not query:
        return list(locations)
    out = []
    for loc in locations:
        ent = location_entity(loc) or {}
        if _contains(loc.get("nombre"), query) or _contains(loc.get("direccion"), query) or _contains(ent.get("nombre"), query):
            out.append(loc)
    return out


# =============================================================================
# History
# =============================================================================


@dataclass
class Page:
    items: list[dict[str, Any]]
    page: int
    page_size: int
    total: int
    total_pages: int


def filter_history(registrations: Iterable[dict[str, Any]], status_filter: str = "all") -> list[dict[str, Any]]:
    if status_filter == "validated":
        return [r for r in registrations if r.get("status") == STATUS_VALIDATED]
    if status_filter == "pending":
        return [r for r in registrations if r.get("status") == STATUS_REGISTERED]
    return list(registrations)


def paginate(items: list[dict[str, Any]], page: int, page_size: int) -> Page:
    """Slice one page out of ``items``; out-of-range pages are clamped."""
    total = len(items)
    total_pages = max(1, math.ceil(total / page_size)) if page_size > 0 else 1
    current = max(1, min(int(page), total_pages))
    start = (current - 1) * page_size
    return Page(
        items=items[start : start + page_size],
        page=current,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
    )


# =============================================================================
# Profile
# =============================================================================


def full_name(name: str | None, last_name: str | None, fallback: str = "User") -> str:
    if name and last_name:
        return f"{name} {last_name}"
    return name or fallback


def initials(name: str) -> str:
    return "".join(part[0] for part in name.split() if part)[:2].upper()


@dataclass
class LevelProgress:
    current_level: str | None
    current_order: int | None
    next_level: str | None
    next_level_points: int | None
    progress_percentage: float


def level_progress(points: int, current: dict[str, Any] | None, next_level: dict[str, Any] | None) -> LevelProgress:
    """
    Progress bar towards the next level: points over the next level's
    threshold, capped at 100. Top-level donors sit at 100.
    """
    next_points = (next_level or {}).get("puntaje_minimo")
    if next_points:
        pct = min(points * 100 / float(next_points), 100.0)
    else:
        pct = 100.0
    return LevelProgress(
        current_level=(current or {}).get("nombre"),
        current_order=(current or {}).get("orden"),
        next_level=(next_level or {}).get("nombre"),
        next_level_points=next_points,
        progress_percentage=round(pct, 2),
    )


# =============================================================================
# Maps
# =============================================================================


def has_coordinates(location: dict[str, Any] | None) -> bool:
    if not location:
        return False
    lat, lng = location.get("latitud"), location.get("longitud")
    if lat is None or lng is None:
        return False
    try:
        return not (math.isnan(float(lat)) or math.isnan(float(lng)))
    except (TypeError, ValueError):
        return False


def map_href(location: dict[str, Any] | None) -> str | None:
    """Explicit map link first, then an OpenStreetMap pin from coordinates."""
    if not location:
        return None
    link = (location.get("map_link") or "").strip()
    if link:
        return link
    if has_coordinates(location):
        lat, lng = location["latitud"], location["longitud"]
        return f"https://www.openstreetmap.org/?mlat={lat}&mlon={lng}#map=17/{lat}/{lng}"
    return None


def static_map_url(
    location: dict[str, Any] | None,
    *,
    access_token: str | None,
    width: int = 960,
    height: int = 380,
    zoom: int = 16,
) -> str | None:
    """Mapbox static image with a red pin. Note the lng,lat order."""
    if not access_token or not has_coordinates(location):
        return None
    lat, lng = location["latitud"], location["longitud"]
    return (
        "https://api.mapbox.com/styles/v1/mapbox/streets-v12/static/"
        f"pin-s+ff0000({lng},{lat})/{lng},{lat},{zoom},0/{width}x{height}"
        f"?access_token={access_token}"
    )
