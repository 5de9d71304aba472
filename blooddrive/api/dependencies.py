"""
Dependency helpers for API routes.

These are kept as simple functions (not FastAPI Depends): handlers call
them first thing, and they raise the access errors the app-level
handlers turn into 401/403 responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request, Response
from supabase import Client

from blooddrive.api.observability import bind_user
from blooddrive.api.state import AppState
from blooddrive.backend import AuthSession, AuthUser, Backend
from blooddrive.config import ROLE_ADMIN, settings
from blooddrive.exceptions import AdminRequiredError, AuthenticationRequiredError, ProfileIncompleteError
from blooddrive.repository import ProfileRepo


@dataclass
class RequestSession:
    """The caller's identity plus a backend client acting as them."""

    user: AuthUser
    access_token: str
    client: Client
    profile: dict[str, Any] | None

    @property
    def is_complete(self) -> bool:
        return bool(self.profile and self.profile.get("is_complete"))

    @property
    def is_admin(self) -> bool:
        return bool(self.profile and self.profile.get("role") == ROLE_ADMIN)


def get_state(request: Request) -> AppState:
    state = getattr(request.app.state, "state", None)
    if state is None:
        state = AppState(backend=Backend())
        request.app.state.state = state
    return state


def get_backend(request: Request) -> Backend:
    return get_state(request).backend


def get_access_token(request: Request) -> str | None:
    """Bearer token first, then the session cookie."""
    auth = request.headers.get("authorization") or ""
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(settings.access_cookie_name) or None


def get_optional_session(request: Request) -> RequestSession | None:
    cached = getattr(request.state, "session", None)
    if cached is not None:
        return cached

    token = get_access_token(request)
    if not token:
        return None
    backend = get_backend(request)
    user = backend.get_user(token)
    if user is None:
        return None

    bind_user(request, user.id)
    client = backend.client(token)
    session = RequestSession(
        user=user,
        access_token=token,
        client=client,
        profile=ProfileRepo(client).get(user.id),
    )
    request.state.session = session
    return session


def get_session(request: Request) -> RequestSession:
    session = get_optional_session(request)
    if session is None:
        if get_access_token(request):
            raise AuthenticationRequiredError("Your session has expired. Please sign in again.")
        raise AuthenticationRequiredError()
    return session


def require_member(request: Request) -> RequestSession:
    """Signed in with a completed donor profile."""
    session = get_session(request)
    if not session.is_complete:
        raise ProfileIncompleteError()
    return session


def require_admin(request: Request) -> RequestSession:
    session = require_member(request)
    if not session.is_admin:
        raise AdminRequiredError()
    return session


def landing_path(profile: dict[str, Any] | None) -> str:
    """Where the web client should send a user after sign-in."""
    if not profile or not profile.get("is_complete"):
        return "/register/complete-profile"
    if profile.get("role") == ROLE_ADMIN:
        return "/admin"
    return "/dashboard"


# =============================================================================
# Session cookies
# =============================================================================


def set_session_cookies(response: Response, session: AuthSession) -> None:
    common = {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }
    response.set_cookie(
        settings.access_cookie_name,
        session.access_token,
        max_age=session.expires_in or settings.cookie_max_age,
        **common,
    )
    if session.refresh_token:
        response.set_cookie(
            settings.refresh_cookie_name,
            session.refresh_token,
            max_age=settings.cookie_max_age,
            **common,
        )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(settings.access_cookie_name, path="/")
    response.delete_cookie(settings.refresh_cookie_name, path="/")
