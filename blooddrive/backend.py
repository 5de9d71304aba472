"""
Wrapper around the hosted Supabase backend.

Owns client creation (one client per request, carrying the caller's access
token so row-level policies apply), the auth calls, remote function
invocation, and translation of client-library errors into BackendError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import httpx
from supabase import AuthError, Client, FunctionsError, PostgrestAPIError, create_client

from blooddrive.config import settings
from blooddrive.exceptions import AuthBackendError, BackendError
from blooddrive.logging_config import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str, str], Client]


@dataclass
class AuthUser:
    id: str
    email: str | None = None


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    user: AuthUser


def _user_from(raw: Any) -> AuthUser | None:
    if raw is None:
        return None
    return AuthUser(id=str(raw.id), email=getattr(raw, "email", None))


def _session_from(raw_session: Any, raw_user: Any = None) -> AuthSession | None:
    if raw_session is None:
        return None
    user = _user_from(raw_user or getattr(raw_session, "user", None))
    if user is None:
        return None
    return AuthSession(
        access_token=raw_session.access_token,
        refresh_token=getattr(raw_session, "refresh_token", None),
        expires_in=getattr(raw_session, "expires_in", None),
        user=user,
    )


def _error_text(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def first_row(response: Any) -> dict[str, Any] | None:
    rows = response.data or []
    return rows[0] if rows else None


def _unreachable(message: str, operation: str, exc: Exception) -> BackendError:
    logger.error("backend_unreachable", extra={"operation": operation, "error_message": str(exc)})
    return BackendError(message, operation=operation)


def execute(query: Any, *, message: str, operation: str) -> Any:
    """
    Run a PostgREST query builder and return its response.

    Any client or transport failure becomes a BackendError whose message is
    the user-facing text for ``operation``. The backend's own error text is
    logged, never returned to the client.
    """
    try:
        return query.execute()
    except PostgrestAPIError as exc:
        logger.error(
            "backend_query_failed",
            extra={"operation": operation, "error_code": getattr(exc, "code", None), "error_message": _error_text(exc)},
        )
        raise BackendError(message, operation=operation, backend_code=getattr(exc, "code", None)) from exc
    except httpx.HTTPError as exc:
        raise _unreachable(message, operation, exc) from exc


class Backend:
    """
    Process-wide entry point to the hosted backend.

    Holds only the project URL and anon key; every call builds its own
    client so no session state is shared between requests.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.url = url or settings.supabase_url
        self.key = key or settings.supabase_anon_key or ""
        self._factory = client_factory or create_client
        if not self.key:
            logger.warning("SUPABASE_ANON_KEY is not set; backend calls will be rejected")

    def client(self, access_token: str | None = None) -> Client:
        """Create a client; with a token, table and function calls run as that user."""
        client = self._factory(self.url, self.key)
        if access_token:
            client.postgrest.auth(access_token)
            client.functions.set_auth(access_token)
        return client

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def sign_up(self, email: str, password: str, *, redirect_to: str | None = None) -> AuthUser:
        credentials: dict[str, Any] = {"email": email, "password": password}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        try:
            response = self.client().auth.sign_up(credentials)
        except AuthError as exc:
            raise AuthBackendError(_error_text(exc), operation="sign_up") from exc
        except httpx.HTTPError as exc:
            raise _unreachable("Could not create the account. Please try again.", "sign_up", exc) from exc

        user = _user_from(response.user)
        if user is None:
            raise BackendError("Could not create the account. Please try again.", operation="sign_up")
        return user

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client().auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            raise AuthBackendError(_error_text(exc), operation="sign_in") from exc
        except httpx.HTTPError as exc:
            raise _unreachable("Could not sign in. Please try again.", "sign_in", exc) from exc

        session = _session_from(response.session, response.user)
        if session is None:
            raise AuthBackendError("Email not confirmed", operation="sign_in")
        return session

    def get_user(self, access_token: str) -> AuthUser | None:
        """Resolve an access token to its user; None when the token is invalid or expired."""
        try:
            response = self.client().auth.get_user(access_token)
        except AuthError as exc:
            logger.info("session_rejected", extra={"error_message": _error_text(exc)})
            return None
        except httpx.HTTPError as exc:
            raise _unreachable("Could not verify your session. Please try again.", "get_user", exc) from exc
        if response is None:
            return None
        return _user_from(response.user)

    def sign_out(self, access_token: str) -> None:
        try:
            self.client().auth.admin.sign_out(access_token)
        except (AuthError, httpx.HTTPError) as exc:
            # Cookies are cleared regardless; the token simply expires on its own.
            logger.warning("sign_out_failed", extra={"error_message": _error_text(exc)})

    def exchange_code_for_session(self, code: str) -> AuthSession | None:
        try:
            response = self.client().auth.exchange_code_for_session({"auth_code": code})
        except (AuthError, httpx.HTTPError) as exc:
            logger.warning("code_exchange_failed", extra={"error_message": _error_text(exc)})
            return None
        return _session_from(response.session, response.user)

    # -------------------------------------------------------------------------
    # Remote functions
    # -------------------------------------------------------------------------

    @staticmethod
    def invoke(client: Client, function_name: str, body: dict[str, Any]) -> bool:
        """
        Fire a remote function. Returns False instead of raising when it fails;
        callers decide whether that matters.
        """
        try:
            client.functions.invoke(function_name, invoke_options={"body": body})
        except (FunctionsError, httpx.HTTPError) as exc:
            logger.warning(
                "function_invoke_failed",
                extra={"function_name": function_name, "error_message": _error_text(exc)},
            )
            return False
        return True
