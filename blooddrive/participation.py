"""
Participation workflows: signing up for a campaign, redeeming the
validation code at the venue, and cancelling a sign-up.

A redemption touches three things in order: the registration row (status
and validation time), the donor's next-eligible date, and the remote
points function. Only the first is guarded; the backend has no
multi-table transactions, so a failure after the status change leaves the
registration validated.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from supabase import Client

from blooddrive.backend import Backend
from blooddrive.config import settings
from blooddrive.domain import (
    STATUS_CANCELLED,
    STATUS_REGISTERED,
    STATUS_VALIDATED,
    advance_next_date,
    generate_validation_code,
    is_eligible,
    normalize_code,
    parse_date,
    utcnow,
)
from blooddrive.exceptions import (
    AlreadyRegisteredError,
    AlreadyValidatedError,
    CampaignClosedError,
    CampaignNotFoundError,
    ConflictError,
    InvalidValidationCodeError,
    NotEligibleError,
    ProfileNotFoundError,
    RegistrationCancelledError,
    RegistrationNotFoundError,
    ValidationError,
)
from blooddrive.logging_config import LogLevel, log_event
from blooddrive.repository import CampaignRepo, ProfileRepo, RegistrationRepo


@dataclass
class RedemptionResult:
    registration_id: Any
    campaign_id: Any
    user_id: str
    validated_at: datetime
    next_date: date
    points_awarded: bool

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["validated_at"] = self.validated_at.isoformat()
        data["next_date"] = self.next_date.isoformat()
        return data


def _same_id(left: Any, right: Any) -> bool:
    return str(left) == str(right)


# =============================================================================
# Sign-up
# =============================================================================


def register_for_campaign(client: Client, *, user_id: str, campaign_id: Any) -> dict[str, Any]:
    """
    Sign the donor up for a campaign and return the registration row,
    including its freshly generated validation code.

    Raises:
        CampaignNotFoundError, CampaignClosedError, ProfileNotFoundError,
        NotEligibleError, AlreadyRegisteredError
    """
    campaign = CampaignRepo(client).get(campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(str(campaign_id))
    if campaign.get("status") != "active":
        raise CampaignClosedError(str(campaign.get("status")))
    # Store the key as the backend typed it, not as the URL spelled it.
    campaign_id = campaign.get("id", campaign_id)

    profile = ProfileRepo(client).get(user_id)
    if profile is None:
        raise ProfileNotFoundError(user_id)
    if not is_eligible(profile.get("next_date"), campaign.get("fecha_inicio")):
        raise NotEligibleError(str(parse_date(profile.get("next_date"))))

    registrations = RegistrationRepo(client)
    existing = registrations.find(user_id, campaign_id)
    code = generate_validation_code()

    if existing is None:
        row = registrations.create(user_id, campaign_id, code)
        event = "registration_created"
    elif existing.get("status") == STATUS_CANCELLED:
        row = registrations.reactivate(existing["id"], code)
        event = "registration_reactivated"
    else:
        raise AlreadyRegisteredError()

    if row is None:
        row = {
            "id": existing["id"] if existing else None,
            "id_usuario": user_id,
            "id_campana": campaign_id,
            "status": STATUS_REGISTERED,
            "validation_code": code,
        }

    log_event(event, user_id=user_id, campaign_id=str(campaign_id), registration_id=str(row.get("id")))
    return row


def cancel_registration(client: Client, *, user_id: str, registration_id: Any) -> dict[str, Any]:
    """Withdraw the donor's own pending registration."""
    registrations = RegistrationRepo(client)
    registration = registrations.get(registration_id)
    if registration is None or not _same_id(registration.get("id_usuario"), user_id):
        raise RegistrationNotFoundError(str(registration_id))

    status = registration.get("status")
    if status == STATUS_VALIDATED:
        raise AlreadyValidatedError()
    if status == STATUS_CANCELLED:
        raise RegistrationCancelledError()

    updated = registrations.transition(
        registration_id,
        {"status": STATUS_CANCELLED},
        message="Could not cancel the registration. Please try again.",
    )
    if updated is None:
        raise ConflictError("This registration can no longer be cancelled", error_code="registration_locked")

    log_event("registration_cancelled", user_id=user_id, registration_id=str(registration_id))
    return updated


# =============================================================================
# Redemption
# =============================================================================


def _check_redeemable(registration: dict[str, Any]) -> None:
    status = registration.get("status")
    if status == STATUS_VALIDATED:
        raise AlreadyValidatedError()
    if status == STATUS_CANCELLED:
        raise RegistrationCancelledError()


def award_points(client: Client, user_id: str) -> bool:
    return Backend.invoke(
        client,
        settings.points_function_name,
        {"points": settings.points_per_donation, "id": user_id},
    )


def _complete_validation(client: Client, registration: dict[str, Any], moment: datetime) -> RedemptionResult:
    registration_id = registration["id"]
    user_id = registration["id_usuario"]

    updated = RegistrationRepo(client).transition(
        registration_id,
        {"status": STATUS_VALIDATED, "fecha_validacion": moment.isoformat()},
        message="Could not validate the participation. Please try again.",
    )
    if updated is None:
        # Another request redeemed it between our read and this update.
        raise AlreadyValidatedError()

    profiles = ProfileRepo(client)
    profile = profiles.get(user_id) or {}
    next_date = advance_next_date(profile.get("next_date"), moment.date())
    profiles.set_next_date(user_id, next_date.isoformat())

    points_awarded = award_points(client, user_id)
    if not points_awarded:
        log_event(
            "points_award_failed",
            level=LogLevel.WARNING,
            user_id=user_id,
            registration_id=str(registration_id),
        )

    log_event(
        "participation_validated",
        user_id=user_id,
        campaign_id=str(registration.get("id_campana")),
        registration_id=str(registration_id),
        next_date=next_date.isoformat(),
        points_awarded=points_awarded,
    )
    return RedemptionResult(
        registration_id=registration_id,
        campaign_id=registration.get("id_campana"),
        user_id=user_id,
        validated_at=moment,
        next_date=next_date,
        points_awarded=points_awarded,
    )


def redeem_validation_code(
    client: Client,
    *,
    user_id: str,
    campaign_id: Any,
    code: str | None,
    now: datetime | None = None,
) -> RedemptionResult:
    """
    Validate the (user, campaign) participation whose code matches.

    Raises:
        ValidationError: empty code
        InvalidValidationCodeError: no registration carries this code
        AlreadyValidatedError / RegistrationCancelledError: not redeemable
    """
    normalized = normalize_code(code)
    if not normalized:
        raise ValidationError("Please enter a validation code", field="code")

    registration = RegistrationRepo(client).find_by_code(user_id, campaign_id, normalized)
    if registration is None:
        log_event(
            "validation_code_rejected",
            level=LogLevel.WARNING,
            user_id=user_id,
            campaign_id=str(campaign_id),
        )
        raise InvalidValidationCodeError()

    _check_redeemable(registration)
    return _complete_validation(client, registration, now or utcnow())


def _participant(client: Client, campaign_id: Any, registration_id: Any) -> dict[str, Any]:
    registration = RegistrationRepo(client).get(registration_id)
    if registration is None or not _same_id(registration.get("id_campana"), campaign_id):
        raise RegistrationNotFoundError(str(registration_id))
    return registration


def validate_participant(
    client: Client,
    *,
    campaign_id: Any,
    registration_id: Any,
    code: str | None,
    now: datetime | None = None,
) -> RedemptionResult:
    """Administrator entry point: redeem the code a participant shows at the venue."""
    registration = _participant(client, campaign_id, registration_id)
    return redeem_validation_code(
        client,
        user_id=registration["id_usuario"],
        campaign_id=campaign_id,
        code=code,
        now=now,
    )


def mark_attended(
    client: Client,
    *,
    campaign_id: Any,
    registration_id: Any,
    now: datetime | None = None,
) -> RedemptionResult:
    """Validate a participant without a code, with the same side effects."""
    registration = _participant(client, campaign_id, registration_id)
    _check_redeemable(registration)
    return _complete_validation(client, registration, now or utcnow())
