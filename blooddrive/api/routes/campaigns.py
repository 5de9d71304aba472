"""
Donor-facing campaign routes: browse, inspect, sign up, cancel a sign-up.

The validation code on a registration is shown to the donor at the venue;
only an administrator redeems it.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, Request

from blooddrive.api.dependencies import require_member
from blooddrive.api.models import CampaignDetailResponse, CampaignListResponse, RegistrationResponse
from blooddrive.config import settings
from blooddrive.domain import campaign_location, filter_campaigns, is_eligible, map_href, parse_date, static_map_url, utcnow
from blooddrive.exceptions import CampaignNotFoundError
from blooddrive.participation import cancel_registration, register_for_campaign
from blooddrive.repository import CampaignRepo, RegistrationRepo

router = APIRouter(prefix="/v1/campaigns", tags=["campaigns"])
registrations_router = APIRouter(prefix="/v1/registrations", tags=["campaigns"])


@router.get("", response_model=CampaignListResponse)
def list_campaigns(
    request: Request,
    q: str | None = Query(default=None, max_length=200),
    on_date: date | None = Query(default=None, alias="date"),
    city: str | None = Query(default=None, max_length=100),
) -> dict:
    """Upcoming active campaigns, soonest first."""
    session = require_member(request)
    campaigns = CampaignRepo(session.client).list_upcoming(utcnow())
    items = filter_campaigns(campaigns, q=q, on_date=on_date, city=city)
    request.state.result_count = len(items)
    return {"items": items, "total": len(items)}


@router.get(
    "/{campaign_id}",
    response_model=CampaignDetailResponse,
    responses={404: {"description": "Campaign not found"}},
)
def get_campaign(campaign_id: str, request: Request) -> dict:
    session = require_member(request)
    campaign = CampaignRepo(session.client).get(campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(campaign_id)

    registration = RegistrationRepo(session.client).find(session.user.id, campaign_id)
    next_date = (session.profile or {}).get("next_date")
    location = campaign_location(campaign)
    return {
        "campaign": campaign,
        "registration": registration,
        "eligible": is_eligible(next_date, campaign.get("fecha_inicio")),
        "next_date": parse_date(next_date),
        "map_url": map_href(location),
        "static_map_url": static_map_url(location, access_token=settings.mapbox_key),
    }


@router.post(
    "/{campaign_id}/register",
    response_model=RegistrationResponse,
    status_code=201,
    responses={
        404: {"description": "Campaign not found"},
        409: {"description": "Already registered"},
        422: {"description": "Not eligible or campaign closed"},
    },
)
def register(campaign_id: str, request: Request) -> dict:
    session = require_member(request)
    return register_for_campaign(session.client, user_id=session.user.id, campaign_id=campaign_id)


@registrations_router.post(
    "/{registration_id}/cancel",
    response_model=RegistrationResponse,
    responses={404: {"description": "Registration not found"}, 409: {"description": "Not cancellable"}},
)
def cancel(registration_id: str, request: Request) -> dict:
    session = require_member(request)
    return cancel_registration(session.client, user_id=session.user.id, registration_id=registration_id)
