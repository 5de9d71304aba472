"""
Administrator campaign routes: listing by tab, CRUD, cancellation and
participant validation.
"""

from __future__ import annotations

from collections import Counter

from fastapi import APIRouter, Query, Request

from blooddrive.api.dependencies import require_admin
from blooddrive.api.models import (
    AdminCampaignListResponse,
    CampaignFormOptionsResponse,
    CampaignRequest,
    DeletedResponse,
    ParticipantsResponse,
    RedemptionResponse,
    ValidationCodeRequest,
)
from blooddrive.config import BLOOD_TYPES, CAMPAIGN_TYPES, DONATION_COMPONENTS
from blooddrive.domain import (
    ADMIN_TABS,
    STATUS_CANCELLED,
    STATUS_REGISTERED,
    STATUS_VALIDATED,
    filter_admin_campaigns,
    utcnow,
)
from blooddrive.exceptions import CampaignNotFoundError, ValidationError
from blooddrive.logging_config import log_event
from blooddrive.participation import mark_attended, validate_participant
from blooddrive.repository import CampaignRepo, LocationRepo, RegistrationRepo
from blooddrive.validators import validate_campaign

router = APIRouter(prefix="/v1/admin/campaigns", tags=["admin"])

_NOT_FOUND = {404: {"description": "Campaign not found"}}


def _validated_form(payload: CampaignRequest, *, creating: bool) -> dict:
    return validate_campaign(
        name=payload.name,
        campaign_type=payload.campaign_type,
        component=payload.component,
        location_id=payload.location_id,
        starts_at=payload.starts_at,
        ends_at=payload.ends_at,
        description=payload.description,
        status=payload.status,
        creating=creating,
    )


def _existing(repo: CampaignRepo, campaign_id: str) -> dict:
    campaign = repo.get(campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(campaign_id)
    return campaign


@router.get("", response_model=AdminCampaignListResponse)
def list_campaigns(
    request: Request,
    tab: str = Query(default="active", max_length=20),
    q: str | None = Query(default=None, max_length=200),
) -> dict:
    session = require_admin(request)
    if tab not in ADMIN_TABS:
        raise ValidationError(f"Tab must be one of: {', '.join(ADMIN_TABS)}", field="tab")
    items = filter_admin_campaigns(CampaignRepo(session.client).list_all(), tab=tab, q=q, now=utcnow())
    request.state.result_count = len(items)
    return {"items": items, "tab": tab, "total": len(items)}


@router.get("/form-options", response_model=CampaignFormOptionsResponse)
def form_options(request: Request) -> dict:
    session = require_admin(request)
    named_components = sorted(c for c in DONATION_COMPONENTS if c not in BLOOD_TYPES)
    return {
        "types": sorted(CAMPAIGN_TYPES),
        "components": named_components + list(BLOOD_TYPES),
        "locations": LocationRepo(session.client).list_active(),
    }


@router.post("", status_code=201, responses={400: {"description": "Invalid form"}})
def create_campaign(payload: CampaignRequest, request: Request) -> dict:
    session = require_admin(request)
    row = _validated_form(payload, creating=True)
    created = CampaignRepo(session.client).create(row) or row
    log_event("campaign_created", campaign_id=str(created.get("id")), user_id=session.user.id)
    return created


@router.get("/{campaign_id}", responses=_NOT_FOUND)
def get_campaign(campaign_id: str, request: Request) -> dict:
    session = require_admin(request)
    return _existing(CampaignRepo(session.client), campaign_id)


@router.put("/{campaign_id}", responses={**_NOT_FOUND, 400: {"description": "Invalid form"}})
def update_campaign(campaign_id: str, payload: CampaignRequest, request: Request) -> dict:
    session = require_admin(request)
    repo = CampaignRepo(session.client)
    _existing(repo, campaign_id)
    row = _validated_form(payload, creating=False)
    updated = repo.update(campaign_id, row)
    if updated is None:
        raise CampaignNotFoundError(campaign_id)
    log_event("campaign_updated", campaign_id=campaign_id, user_id=session.user.id)
    return updated


@router.delete("/{campaign_id}", response_model=DeletedResponse, responses=_NOT_FOUND)
def delete_campaign(campaign_id: str, request: Request) -> dict:
    session = require_admin(request)
    if not CampaignRepo(session.client).delete(campaign_id):
        raise CampaignNotFoundError(campaign_id)
    log_event("campaign_deleted", campaign_id=campaign_id, user_id=session.user.id)
    return {"id": campaign_id, "deleted": True}


@router.post("/{campaign_id}/cancel", responses=_NOT_FOUND)
def cancel_campaign(campaign_id: str, request: Request) -> dict:
    session = require_admin(request)
    repo = CampaignRepo(session.client)
    campaign = _existing(repo, campaign_id)
    if campaign.get("status") == "cancelled":
        return campaign
    cancelled = repo.cancel(campaign_id) or {**campaign, "status": "cancelled"}
    log_event("campaign_cancelled", campaign_id=campaign_id, user_id=session.user.id)
    return cancelled


# =============================================================================
# Participants
# =============================================================================


@router.get("/{campaign_id}/participants", response_model=ParticipantsResponse, responses=_NOT_FOUND)
def list_participants(campaign_id: str, request: Request) -> dict:
    session = require_admin(request)
    campaign = _existing(CampaignRepo(session.client), campaign_id)
    items = RegistrationRepo(session.client).list_for_campaign(campaign_id)
    by_status = Counter(item.get("status") for item in items)
    request.state.result_count = len(items)
    return {
        "campaign": campaign,
        "items": items,
        "counts": {
            "total": len(items),
            STATUS_REGISTERED: by_status.get(STATUS_REGISTERED, 0),
            STATUS_VALIDATED: by_status.get(STATUS_VALIDATED, 0),
            STATUS_CANCELLED: by_status.get(STATUS_CANCELLED, 0),
        },
    }


@router.post(
    "/{campaign_id}/participants/{registration_id}/validate",
    response_model=RedemptionResponse,
    responses={
        400: {"description": "Missing or invalid code"},
        404: {"description": "Registration not found"},
        409: {"description": "Already validated or cancelled"},
    },
)
def validate_with_code(campaign_id: str, registration_id: str, payload: ValidationCodeRequest, request: Request) -> dict:
    session = require_admin(request)
    result = validate_participant(
        session.client,
        campaign_id=campaign_id,
        registration_id=registration_id,
        code=payload.code,
    )
    return result.to_dict()


@router.post(
    "/{campaign_id}/participants/{registration_id}/attend",
    response_model=RedemptionResponse,
    responses={404: {"description": "Registration not found"}, 409: {"description": "Already validated or cancelled"}},
)
def attend(campaign_id: str, registration_id: str, request: Request) -> dict:
    session = require_admin(request)
    result = mark_attended(session.client, campaign_id=campaign_id, registration_id=registration_id)
    return result.to_dict()
