"""
Campaign sign-ups (`registro`).
"""

from __future__ import annotations

from typing import Any

from supabase import Client

from blooddrive.backend import execute, first_row
from blooddrive.domain import STATUS_REGISTERED, STATUS_VALIDATED
from blooddrive.exceptions import AlreadyRegisteredError, BackendError

REGISTRATION_TABLE = "registro"

# Postgres unique_violation: (id_usuario, id_campana) is unique.
UNIQUE_VIOLATION = "23505"

REGISTRATION_COLUMNS = "id, id_usuario, id_campana, status, validation_code, fecha_validacion, created_at"

WITH_CAMPAIGN = (
    f"{REGISTRATION_COLUMNS}, "
    "campana(id, nombre, tipo, componente, fecha_inicio, fecha_fin, status, "
    "locacion(id, nombre, direccion, entidad(nombre)))"
)

WITH_DONOR = f"{REGISTRATION_COLUMNS}, user_info(id, name, last_name, email, blood_type)"


class RegistrationRepo:
    def __init__(self, client: Client) -> None:
        self._client = client

    def find(self, user_id: str, campaign_id: Any) -> dict[str, Any] | None:
        """The user's registration for a campaign, if any."""
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select(REGISTRATION_COLUMNS)
            .eq("id_usuario", user_id)
            .eq("id_campana", campaign_id)
            .limit(1),
            message="Could not check your registration. Please try again.",
            operation="registration.find",
        )
        return first_row(response)

    def find_by_code(self, user_id: str, campaign_id: Any, code: str) -> dict[str, Any] | None:
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select(REGISTRATION_COLUMNS)
            .eq("id_usuario", user_id)
            .eq("id_campana", campaign_id)
            .eq("validation_code", code)
            .limit(1),
            message="Could not verify the code. Please try again.",
            operation="registration.find_by_code",
        )
        return first_row(response)

    def get(self, registration_id: Any) -> dict[str, Any] | None:
        response = execute(
            self._client.table(REGISTRATION_TABLE).select(REGISTRATION_COLUMNS).eq("id", registration_id).limit(1),
            message="Could not load the registration. Please try again.",
            operation="registration.get",
        )
        return first_row(response)

    def create(self, user_id: str, campaign_id: Any, code: str) -> dict[str, Any] | None:
        """Insert a sign-up. A concurrent duplicate raises AlreadyRegisteredError."""
        try:
            response = execute(
                self._client.table(REGISTRATION_TABLE).insert(
                    {
                        "id_usuario": user_id,
                        "id_campana": campaign_id,
                        "status": STATUS_REGISTERED,
                        "validation_code": code,
                    }
                ),
                message="Could not complete the registration. Please try again.",
                operation="registration.create",
            )
        except BackendError as exc:
            if exc.backend_code == UNIQUE_VIOLATION:
                raise AlreadyRegisteredError() from exc
            raise
        return first_row(response)

    def reactivate(self, registration_id: Any, code: str) -> dict[str, Any] | None:
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .update({"status": STATUS_REGISTERED, "validation_code": code, "fecha_validacion": None})
            .eq("id", registration_id),
            message="Could not complete the registration. Please try again.",
            operation="registration.reactivate",
        )
        return first_row(response)

    def transition(
        self,
        registration_id: Any,
        changes: dict[str, Any],
        *,
        from_status: str = STATUS_REGISTERED,
        message: str = "Could not update the registration. Please try again.",
    ) -> dict[str, Any] | None:
        """
        Update a registration only while it is still in ``from_status``.

        Returns the updated row, or None when another request changed the
        status first.
        """
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .update(changes)
            .eq("id", registration_id)
            .eq("status", from_status),
            message=message,
            operation="registration.transition",
        )
        return first_row(response)

    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """All of the user's registrations with campaign and venue, newest first."""
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select(WITH_CAMPAIGN)
            .eq("id_usuario", user_id)
            .order("created_at", desc=True),
            message="Could not load your history. Please try again.",
            operation="registration.list_for_user",
        )
        return response.data or []

    def recent_validated(self, user_id: str, limit: int) -> list[dict[str, Any]]:
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select(WITH_CAMPAIGN)
            .eq("id_usuario", user_id)
            .eq("status", STATUS_VALIDATED)
            .order("fecha_validacion", desc=True)
            .limit(limit),
            message="Could not load your donations. Please try again.",
            operation="registration.recent_validated",
        )
        return response.data or []

    def count_validated(self, user_id: str) -> int:
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select("id", count="exact")
            .eq("id_usuario", user_id)
            .eq("status", STATUS_VALIDATED),
            message="Could not load your donations. Please try again.",
            operation="registration.count_validated",
        )
        if response.count is not None:
            return int(response.count)
        return len(response.data or [])

    def pending_for_user(self, user_id: str) -> list[dict[str, Any]]:
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select(WITH_CAMPAIGN)
            .eq("id_usuario", user_id)
            .eq("status", STATUS_REGISTERED),
            message="Could not load your registrations. Please try again.",
            operation="registration.pending_for_user",
        )
        return response.data or []

    def list_for_campaign(self, campaign_id: Any) -> list[dict[str, Any]]:
        """Participants of a campaign, newest sign-up first."""
        response = execute(
            self._client.table(REGISTRATION_TABLE)
            .select(WITH_DONOR)
            .eq("id_campana", campaign_id)
            .order("created_at", desc=True),
            message="Could not load participants. Please try again.",
            operation="registration.list_for_campaign",
        )
        return response.data or []
