"""
Account routes: sign-up, sign-in, sign-out, session lookup, the email
confirmation callback and donor profile completion.
"""

from __future__ import annotations

from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import RedirectResponse

from blooddrive.api.dependencies import (
    clear_session_cookies,
    get_access_token,
    get_backend,
    get_optional_session,
    get_session,
    landing_path,
    set_session_cookies,
)
from blooddrive.api.models import (
    CompleteProfileRequest,
    ConfirmEmailResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
    SessionUser,
    SignUpRequest,
    SignUpResponse,
)
from blooddrive.config import settings
from blooddrive.domain import full_name
from blooddrive.exceptions import ProfileAlreadyCompleteError, ProfileNotFoundError, ValidationError
from blooddrive.logging_config import get_logger, log_event
from blooddrive.repository import ProfileRepo
from blooddrive.validators import validate_profile, validate_signup

router = APIRouter(prefix="/v1/auth", tags=["auth"])
callback_router = APIRouter(tags=["auth"])

logger = get_logger(__name__)


def _session_user(user_id: str, email: str | None, profile: dict | None) -> SessionUser:
    profile = profile or {}
    return SessionUser(
        id=user_id,
        email=profile.get("email") or email,
        name=full_name(profile.get("name"), profile.get("last_name"), fallback="") or None,
        role=profile.get("role"),
        is_complete=bool(profile.get("is_complete")),
    )


@router.post(
    "/register",
    response_model=SignUpResponse,
    status_code=201,
    responses={
        201: {"description": "Account created; confirmation email sent"},
        400: {"description": "Invalid form or rejected by the auth service"},
    },
)
def register(payload: SignUpRequest, request: Request) -> dict:
    email = validate_signup(payload.email, payload.password, payload.confirm_password, payload.accepted_terms)
    user = get_backend(request).sign_up(email, payload.password, redirect_to=settings.email_redirect_url)
    log_event("account_created", user_id=user.id)
    return {
        "user_id": user.id,
        "email": email,
        "confirmation_required": True,
        "redirect_to": "/v1/auth/confirm-email?" + urlencode({"email": email}),
    }


@router.get("/confirm-email", response_model=ConfirmEmailResponse)
def confirm_email(email: str | None = Query(default=None, max_length=254)) -> dict:
    target = email or "your email"
    return {
        "email": email,
        "message": f"We sent a confirmation link to {target}. Open it to activate your account.",
    }


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"description": "Invalid credentials"}},
)
def login(payload: LoginRequest, request: Request, response: Response) -> dict:
    email = (payload.email or "").strip().lower()
    if not email or not payload.password:
        raise ValidationError("Please enter your email and password")

    backend = get_backend(request)
    session = backend.sign_in(email, payload.password)
    profile = ProfileRepo(backend.client(session.access_token)).get(session.user.id)

    set_session_cookies(response, session)
    log_event("signed_in", user_id=session.user.id)
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_in": session.expires_in,
        "user": _session_user(session.user.id, session.user.email, profile),
        "redirect_to": landing_path(profile),
    }


@router.post("/logout")
def logout(request: Request, response: Response) -> dict:
    token = get_access_token(request)
    if token:
        get_backend(request).sign_out(token)
    clear_session_cookies(response)
    return {"ok": True}


@router.get("/session", response_model=SessionResponse)
def current_session(request: Request) -> dict:
    session = get_optional_session(request)
    if session is None:
        return {"authenticated": False, "user": None}
    return {
        "authenticated": True,
        "user": _session_user(session.user.id, session.user.email, session.profile),
    }


@router.post(
    "/complete-profile",
    responses={
        200: {"description": "Profile completed"},
        400: {"description": "Invalid form"},
        409: {"description": "Profile already complete"},
    },
)
def complete_profile(payload: CompleteProfileRequest, request: Request) -> dict:
    session = get_session(request)
    if session.is_complete:
        raise ProfileAlreadyCompleteError()

    changes = validate_profile(
        name=payload.name,
        last_name=payload.last_name,
        email=payload.email or session.user.email,
        blood_type=payload.blood_type,
        phone=payload.phone,
        birthday=payload.birthday,
        height=payload.height,
        weight=payload.weight,
        last_donation=payload.last_donation,
    )
    updated = ProfileRepo(session.client).update(session.user.id, changes)
    if updated is None:
        raise ProfileNotFoundError(session.user.id)

    log_event("profile_completed", user_id=session.user.id)
    return {"profile": updated, "redirect_to": landing_path(updated)}


@callback_router.get("/auth/callback", include_in_schema=False)
def auth_callback(request: Request, code: str | None = Query(default=None, max_length=512)) -> RedirectResponse:
    response = RedirectResponse(f"{settings.site_base_url}/register/complete-profile")
    if code:
        session = get_backend(request).exchange_code_for_session(code)
        if session is not None:
            set_session_cookies(response, session)
            log_event("email_confirmed", user_id=session.user.id)
    else:
        logger.info("auth_callback_without_code")
    return response
