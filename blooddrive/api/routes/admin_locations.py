"""
Administrator location and entity routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from blooddrive.api.dependencies import require_admin
from blooddrive.api.models import DeletedResponse, EntityListResponse, LocationListResponse, LocationRequest
from blooddrive.domain import filter_locations
from blooddrive.exceptions import LocationNotFoundError
from blooddrive.logging_config import log_event
from blooddrive.repository import LocationRepo
from blooddrive.validators import validate_location

router = APIRouter(prefix="/v1/admin", tags=["admin"])

_NOT_FOUND = {404: {"description": "Location not found"}}


def _validated_form(payload: LocationRequest) -> dict:
    return validate_location(
        name=payload.name,
        address=payload.address,
        entity_id=payload.entity_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        map_link=payload.map_link,
        status=payload.status,
    )


@router.get("/locations", response_model=LocationListResponse)
def list_locations(request: Request, q: str | None = Query(default=None, max_length=200)) -> dict:
    session = require_admin(request)
    items = filter_locations(LocationRepo(session.client).list_all(), q)
    request.state.result_count = len(items)
    return {"items": items, "total": len(items)}


@router.post("/locations", status_code=201, responses={400: {"description": "Invalid form"}})
def create_location(payload: LocationRequest, request: Request) -> dict:
    session = require_admin(request)
    row = _validated_form(payload)
    row["status"] = "active"
    created = LocationRepo(session.client).create(row) or row
    log_event("location_created", location_id=str(created.get("id")), user_id=session.user.id)
    return created


@router.get("/locations/{location_id}", responses=_NOT_FOUND)
def get_location(location_id: str, request: Request) -> dict:
    session = require_admin(request)
    location = LocationRepo(session.client).get(location_id)
    if location is None:
        raise LocationNotFoundError(location_id)
    return location


@router.put("/locations/{location_id}", responses={**_NOT_FOUND, 400: {"description": "Invalid form"}})
def update_location(location_id: str, payload: LocationRequest, request: Request) -> dict:
    session = require_admin(request)
    row = _validated_form(payload)
    updated = LocationRepo(session.client).update(location_id, row)
    if updated is None:
        raise LocationNotFoundError(location_id)
    log_event("location_updated", location_id=location_id, user_id=session.user.id)
    return updated


@router.delete("/locations/{location_id}", response_model=DeletedResponse, responses=_NOT_FOUND)
def delete_location(location_id: str, request: Request) -> dict:
    session = require_admin(request)
    if not LocationRepo(session.client).delete(location_id):
        raise LocationNotFoundError(location_id)
    log_event("location_deleted", location_id=location_id, user_id=session.user.id)
    return {"id": location_id, "deleted": True}


@router.get("/entities", response_model=EntityListResponse)
def list_entities(request: Request) -> dict:
    session = require_admin(request)
    return {"items": LocationRepo(session.client).list_entities()}
