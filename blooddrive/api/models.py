"""
Pydantic models for API requests and responses.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


# =============================================================================
# Auth Request Models
# =============================================================================


class SignUpRequest(BaseModel):
    """Request model for account creation."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "email": "donor@example.org",
                    "password": "s3cure-pass",
                    "confirm_password": "s3cure-pass",
                    "accepted_terms": True,
                }
            ]
        }
    )

    email: str | None = Field(default=None, max_length=254)
    password: str | None = Field(default=None, max_length=128)
    confirm_password: str | None = Field(default=None, max_length=128)
    accepted_terms: bool = False


class LoginRequest(BaseModel):
    email: str | None = Field(default=None, max_length=254)
    password: str | None = Field(default=None, max_length=128)


class CompleteProfileRequest(BaseModel):
    """Donor details collected after the email is confirmed."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Ana",
                    "last_name": "Rojas",
                    "blood_type": "O+",
                    "phone": "7123-4567",
                    "birthday": "1994-06-12",
                    "height": 165,
                    "weight": 62,
                    "last_donation": "2025-01-10",
                }
            ]
        }
    )

    name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    blood_type: str | None = Field(default=None, max_length=3)
    phone: str | None = Field(default=None, max_length=30)
    birthday: date | None = None
    height: float | None = Field(default=None, description="Height in cm")
    weight: float | None = Field(default=None, description="Weight in kg")
    last_donation: date | None = None


class ProfileUpdateRequest(BaseModel):
    """Partial profile edit; only the fields sent are changed."""

    phone: str | None = Field(default=None, max_length=30)
    height: float | None = None
    weight: float | None = None
    blood_type: str | None = Field(default=None, max_length=3)


class ValidationCodeRequest(BaseModel):
    code: str | None = Field(default=None, max_length=32, description="Code shown by the donor")


# =============================================================================
# Admin Request Models
# =============================================================================


class CampaignRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "name": "Jornada de invierno",
                    "type": "Jornada",
                    "component": "Sangre total",
                    "location_id": 3,
                    "starts_at": "2025-07-01T08:00:00Z",
                    "ends_at": "2025-07-01T16:00:00Z",
                    "description": "Bring an ID document.",
                }
            ]
        },
    )

    name: str | None = Field(default=None, max_length=500)
    campaign_type: str | None = Field(default=None, alias="type", max_length=40)
    component: str | None = Field(default=None, max_length=40)
    location_id: int | str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    description: str | None = Field(default=None, max_length=5000)
    status: str | None = Field(default=None, max_length=20)


class LocationRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    address: str | None = Field(default=None, max_length=500)
    entity_id: int | str | None = None
    latitude: float | None = None
    longitude: float | None = None
    map_link: str | None = Field(default=None, max_length=1000)
    status: str | None = Field(default=None, max_length=20)


# =============================================================================
# Response Models
# =============================================================================


class SessionUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None
    is_complete: bool = False


class SessionResponse(BaseModel):
    authenticated: bool
    user: SessionUser | None = None


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    user: SessionUser
    redirect_to: str = Field(description="Where the client should go next")


class SignUpResponse(BaseModel):
    user_id: str
    email: str
    confirmation_required: bool = True
    redirect_to: str


class ConfirmEmailResponse(BaseModel):
    email: str | None = None
    message: str


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    id_usuario: str | None = None
    id_campana: int | str | None = None
    status: str
    validation_code: str | None = None


class RedemptionResponse(BaseModel):
    registration_id: int | str
    campaign_id: int | str | None = None
    user_id: str
    validated_at: datetime
    next_date: date
    points_awarded: bool
    message: str = "Participation validated"


class CampaignListResponse(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class CampaignDetailResponse(BaseModel):
    campaign: dict[str, Any]
    registration: dict[str, Any] | None = None
    eligible: bool
    next_date: date | None = None
    map_url: str | None = None
    static_map_url: str | None = None


class HistoryResponse(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    status: str = "all"
    page: int = 1
    page_size: int
    total: int = 0
    total_pages: int = 1


class LevelResponse(BaseModel):
    current_level: str | None = None
    current_order: int | None = None
    next_level: str | None = None
    next_level_points: int | None = None
    progress_percentage: float = 0.0


class ProfileResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    full_name: str
    initials: str
    email: str | None = None
    phone: str | None = None
    birthday: date | None = None
    height: float | None = None
    weight: float | None = None
    blood_type: str | None = None
    points: int = 0
    donations: int = 0
    recent_donations: list[dict[str, Any]] = Field(default_factory=list)
    level: LevelResponse
    next_date: date | None = None
    can_donate: bool = True


class DashboardResponse(BaseModel):
    name: str
    next_date: date | None = None
    can_donate: bool = True
    next_campaign: dict[str, Any] | None = None


class AdminCampaignListResponse(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    tab: str = "active"
    total: int = 0


class CampaignFormOptionsResponse(BaseModel):
    types: list[str]
    components: list[str]
    locations: list[dict[str, Any]] = Field(default_factory=list)


class ParticipantsResponse(BaseModel):
    campaign: dict[str, Any]
    items: list[dict[str, Any]] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)


class LocationListResponse(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class EntityListResponse(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)


class DeletedResponse(BaseModel):
    id: int | str
    deleted: bool = True
