"""
Donor dashboard, donation history and profile routes.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Query, Request

from blooddrive.api.dependencies import require_member
from blooddrive.api.models import DashboardResponse, HistoryResponse, ProfileResponse, ProfileUpdateRequest
from blooddrive.config import settings
from blooddrive.domain import (
    HISTORY_FILTERS,
    can_donate_on,
    filter_history,
    full_name,
    initials,
    level_progress,
    one,
    paginate,
    parse_date,
    parse_timestamp,
    utcnow,
)
from blooddrive.exceptions import ProfileNotFoundError, ValidationError
from blooddrive.logging_config import log_event
from blooddrive.repository import ProfileRepo, RegistrationRepo
from blooddrive.validators import validate_profile_update

router = APIRouter(prefix="/v1", tags=["donors"])


def _next_registered_campaign(registrations: list[dict[str, Any]]) -> dict[str, Any] | None:
    now = utcnow()
    upcoming = []
    for reg in registrations:
        campaign = one(reg.get("campana"))
        if not campaign:
            continue
        starts_at = parse_timestamp(campaign.get("fecha_inicio"))
        if starts_at is not None and starts_at >= now:
            upcoming.append((starts_at, campaign, reg))
    if not upcoming:
        return None
    _, campaign, reg = min(upcoming, key=lambda item: item[0])
    return {**campaign, "registration_id": reg.get("id"), "validation_code": reg.get("validation_code")}


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(request: Request) -> dict:
    session = require_member(request)
    profile = session.profile or {}
    pending = RegistrationRepo(session.client).pending_for_user(session.user.id)
    return {
        "name": profile.get("name") or "User",
        "next_date": parse_date(profile.get("next_date")),
        "can_donate": can_donate_on(profile.get("next_date"), utcnow().date()),
        "next_campaign": _next_registered_campaign(pending),
    }


@router.get(
    "/history",
    response_model=HistoryResponse,
    responses={400: {"description": "Unknown status filter"}},
)
def history(
    request: Request,
    status: str = Query(default="all", max_length=20),
    page: int = Query(default=1, ge=1),
) -> dict:
    """The caller's registrations, newest first, one page at a time."""
    session = require_member(request)
    if status not in HISTORY_FILTERS:
        raise ValidationError(f"Status must be one of: {', '.join(HISTORY_FILTERS)}", field="status")

    registrations = RegistrationRepo(session.client).list_for_user(session.user.id)
    result = paginate(filter_history(registrations, status), page, settings.history_page_size)
    request.state.result_count = len(result.items)
    return {
        "items": result.items,
        "status": status,
        "page": result.page,
        "page_size": result.page_size,
        "total": result.total,
        "total_pages": result.total_pages,
    }


@router.get("/profile", response_model=ProfileResponse)
def get_profile(request: Request) -> dict:
    session = require_member(request)
    profiles = ProfileRepo(session.client)
    profile = profiles.get_with_level(session.user.id)
    if profile is None:
        raise ProfileNotFoundError(session.user.id)

    registrations = RegistrationRepo(session.client)
    points = int(profile.get("puntos") or 0)
    current_level = one(profile.get("nivel"))
    next_level = None
    if current_level and current_level.get("orden") is not None:
        next_level = profiles.level_by_order(int(current_level["orden"]) + 1)
    progress = level_progress(points, current_level, next_level)

    name = full_name(profile.get("name"), profile.get("last_name"))
    return {
        "id": session.user.id,
        "full_name": name,
        "initials": initials(name),
        "email": profile.get("email") or session.user.email,
        "phone": profile.get("phone"),
        "birthday": parse_date(profile.get("birthday")),
        "height": profile.get("height"),
        "weight": profile.get("weight"),
        "blood_type": profile.get("blood_type"),
        "points": points,
        "donations": registrations.count_validated(session.user.id),
        "recent_donations": registrations.recent_validated(session.user.id, settings.recent_donations_limit),
        "level": asdict(progress),
        "next_date": parse_date(profile.get("next_date")),
        "can_donate": can_donate_on(profile.get("next_date"), utcnow().date()),
    }


@router.patch(
    "/profile",
    responses={400: {"description": "Invalid field"}},
)
def update_profile(payload: ProfileUpdateRequest, request: Request) -> dict:
    session = require_member(request)
    changes = validate_profile_update(
        phone=payload.phone,
        height=payload.height,
        weight=payload.weight,
        blood_type=payload.blood_type,
        fields_set=payload.model_fields_set,
    )
    updated = ProfileRepo(session.client).update(session.user.id, changes)
    if updated is None:
        raise ProfileNotFoundError(session.user.id)
    log_event("profile_updated", user_id=session.user.id, fields=sorted(changes))
    return {"profile": updated}
