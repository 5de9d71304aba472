"""
Form validation for sign-up, profiles, campaigns and locations.

Each validator checks fields in the order the forms show them and stops at
the first problem, raising ValidationError with the message to display.
On success it returns the row payload to send to the backend.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from blooddrive.config import BLOOD_TYPES, CAMPAIGN_STATUSES, CAMPAIGN_TYPES, DONATION_COMPONENTS, LOCATION_STATUSES
from blooddrive.domain import age_on, next_eligible_date, parse_timestamp, utcnow
from blooddrive.exceptions import ValidationError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD_LENGTH = 8
PHONE_DIGITS = 8
MIN_DONOR_AGE = 18
MAX_DONOR_AGE = 65
MIN_DONOR_WEIGHT_KG = 50.0
MAX_CAMPAIGN_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _blank_to_none(value: Any) -> str | None:
    text = _clean(value)
    return text or None


# =============================================================================
# Sign-up
# =============================================================================


def validate_signup(email: str | None, password: str | None, confirm_password: str | None, accepted_terms: bool) -> str:
    """Return the normalized email."""
    if not email or not password or not confirm_password:
        raise ValidationError("Please fill in all fields")
    email_clean = _clean(email).lower()
    if not _EMAIL_PATTERN.match(email_clean):
        raise ValidationError("Enter a valid email address", field="email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")
    if password != confirm_password:
        raise ValidationError("Passwords do not match", field="confirm_password")
    if not accepted_terms:
        raise ValidationError("You must accept the terms and conditions", field="accepted_terms")
    return email_clean


# =============================================================================
# Donor profile
# =============================================================================


def _check_phone(phone: str | None) -> str | None:
    text = _blank_to_none(phone)
    if text is None:
        return None
    digits = re.sub(r"\D", "", text)
    if len(digits) != PHONE_DIGITS:
        raise ValidationError(f"Phone number must have {PHONE_DIGITS} digits", field="phone")
    return text


def _check_weight(weight: float | None) -> float | None:
    if weight is None:
        return None
    if weight < MIN_DONOR_WEIGHT_KG:
        raise ValidationError(f"The minimum weight to donate is {MIN_DONOR_WEIGHT_KG:g} kg", field="weight")
    return float(weight)


def _check_height(height: float | None) -> float | None:
    if height is None:
        return None
    if height <= 0:
        raise ValidationError("Height must be a positive number", field="height")
    return float(height)


def _check_blood_type(blood_type: str | None) -> str:
    value = _clean(blood_type).upper()
    if value not in BLOOD_TYPES:
        raise ValidationError("Select a valid blood type", field="blood_type")
    return value


def validate_profile(
    *,
    name: str | None,
    last_name: str | None,
    email: str | None,
    blood_type: str | None,
    phone: str | None = None,
    birthday: date | None = None,
    height: float | None = None,
    weight: float | None = None,
    last_donation: date | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Validate the complete-profile form and build the profile update."""
    if not _clean(name) or not _clean(last_name) or not _clean(blood_type):
        raise ValidationError("Please fill in the required fields")

    phone_clean = _check_phone(phone)

    current_day = today or utcnow().date()
    if birthday is not None:
        age = age_on(birthday, current_day)
        if age < MIN_DONOR_AGE or age > MAX_DONOR_AGE:
            raise ValidationError(
                f"You must be between {MIN_DONOR_AGE} and {MAX_DONOR_AGE} years old to donate blood",
                field="birthday",
            )

    weight_clean = _check_weight(weight)
    height_clean = _check_height(height)
    blood = _check_blood_type(blood_type)

    if last_donation is not None and last_donation > current_day:
        raise ValidationError("The last donation date cannot be in the future", field="last_donation")
    next_date = next_eligible_date(last_donation) if last_donation else None

    return {
        "name": _clean(name),
        "last_name": _clean(last_name),
        "email": _blank_to_none(email),
        "phone": phone_clean,
        "birthday": birthday.isoformat() if birthday else None,
        "height": height_clean,
        "weight": weight_clean,
        "blood_type": blood,
        "next_date": next_date.isoformat() if next_date else None,
        "role": "user",
        "status": "active",
        "is_complete": True,
    }


def validate_profile_update(
    *,
    phone: str | None = None,
    height: float | None = None,
    weight: float | None = None,
    blood_type: str | None = None,
    fields_set: set[str] | frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Validate a partial profile edit. Only fields the client sent are touched."""
    changes: dict[str, Any] = {}
    if "phone" in fields_set:
        changes["phone"] = _check_phone(phone)
    if "height" in fields_set:
        changes["height"] = _check_height(height)
    if "weight" in fields_set:
        changes["weight"] = _check_weight(weight)
    if "blood_type" in fields_set:
        changes["blood_type"] = _check_blood_type(blood_type)
    if not changes:
        raise ValidationError("Nothing to update")
    return changes


# =============================================================================
# Campaigns
# =============================================================================


def validate_campaign(
    *,
    name: str | None,
    campaign_type: str | None,
    component: str | None,
    location_id: Any,
    starts_at: datetime | None,
    ends_at: datetime | None,
    description: str | None = None,
    status: str | None = None,
    creating: bool = True,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Validate the campaign form.

    The end must come after the start. New campaigns must also start in the
    future; edits may keep a start that has already passed.
    """
    if not _clean(name):
        raise ValidationError("The campaign name is required", field="name")
    if len(_clean(name)) > MAX_CAMPAIGN_NAME_LENGTH:
        raise ValidationError(f"The name cannot exceed {MAX_CAMPAIGN_NAME_LENGTH} characters", field="name")
    if campaign_type not in CAMPAIGN_TYPES:
        raise ValidationError("Select a campaign type", field="type")
    if component not in DONATION_COMPONENTS:
        raise ValidationError("Select a donation type", field="component")
    if location_id is None or _clean(location_id) == "":
        raise ValidationError("Select a location", field="location_id")
    if starts_at is None:
        raise ValidationError("Start date and time are required", field="starts_at")
    if ends_at is None:
        raise ValidationError("End date and time are required", field="ends_at")
    if len(_clean(description)) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"The description cannot exceed {MAX_DESCRIPTION_LENGTH} characters", field="description"
        )

    start = parse_timestamp(starts_at)
    end = parse_timestamp(ends_at)
    if end <= start:
        raise ValidationError("The end date/time must be after the start", field="ends_at")
    if creating and start < (now or utcnow()):
        raise ValidationError("The start date must be in the future", field="starts_at")

    if creating:
        status_value = "active"
    else:
        status_value = status or "active"
        if status_value not in CAMPAIGN_STATUSES:
            raise ValidationError("Invalid campaign status", field="status")

    return {
        "nombre": _clean(name),
        "tipo": campaign_type,
        "componente": component,
        "descripcion": _blank_to_none(description),
        "fecha_inicio": start.isoformat(),
        "fecha_fin": end.isoformat(),
        "id_locacion": location_id,
        "status": status_value,
    }


# =============================================================================
# Locations
# =============================================================================


def validate_location(
    *,
    name: str | None,
    address: str | None,
    entity_id: Any,
    latitude: float | None = None,
    longitude: float | None = None,
    map_link: str | None = None,
    status: str | None = None,
) -> dict[str, Any]:
    if not _clean(name):
        raise ValidationError("The location name is required", field="name")
    if not _clean(address):
        raise ValidationError("The address is required", field="address")
    if entity_id is None or _clean(entity_id) == "":
        raise ValidationError("Select an entity", field="entity_id")
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationError("Latitude must be between -90 and 90", field="latitude")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationError("Longitude must be between -180 and 180", field="longitude")

    status_value = status or "active"
    if status_value not in LOCATION_STATUSES:
        raise ValidationError("Invalid location status", field="status")

    return {
        "nombre": _clean(name),
        "direccion": _clean(address),
        "latitud": latitude,
        "longitud": longitude,
        "map_link": _blank_to_none(map_link),
        "id_entidad": entity_id,
        "status": status_value,
    }
