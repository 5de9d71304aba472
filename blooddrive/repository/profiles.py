"""
Donor profiles (`user_info`) and donor levels (`nivel`).
"""

from __future__ import annotations

from typing import Any

from supabase import Client

from blooddrive.backend import execute, first_row

PROFILE_TABLE = "user_info"
LEVEL_TABLE = "nivel"

PROFILE_COLUMNS = (
    "id, name, last_name, email, phone, birthday, height, weight, blood_type, "
    "next_date, puntos, id_nivel, role, status, is_complete"
)
LEVEL_COLUMNS = "id, nombre, puntaje_minimo, orden"


class ProfileRepo:
    """Reads and writes the signed-in donor's profile row."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, user_id: str) -> dict[str, Any] | None:
        response = execute(
            self._client.table(PROFILE_TABLE).select(PROFILE_COLUMNS).eq("id", user_id).limit(1),
            message="Could not load your profile. Please try again.",
            operation="profile.get",
        )
        return first_row(response)

    def get_with_level(self, user_id: str) -> dict[str, Any] | None:
        """Profile row with its level embedded under ``nivel``."""
        response = execute(
            self._client.table(PROFILE_TABLE)
            .select(f"{PROFILE_COLUMNS}, nivel({LEVEL_COLUMNS})")
            .eq("id", user_id)
            .limit(1),
            message="Could not load your profile. Please try again.",
            operation="profile.get_with_level",
        )
        return first_row(response)

    def update(self, user_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        response = execute(
            self._client.table(PROFILE_TABLE).update(changes).eq("id", user_id),
            message="Could not save your profile. Please try again.",
            operation="profile.update",
        )
        return first_row(response)

    def set_next_date(self, user_id: str, next_date: str) -> None:
        execute(
            self._client.table(PROFILE_TABLE).update({"next_date": next_date}).eq("id", user_id),
            message="Could not update the donor's next donation date.",
            operation="profile.set_next_date",
        )

    def level_by_order(self, order: int) -> dict[str, Any] | None:
        response = execute(
            self._client.table(LEVEL_TABLE).select(LEVEL_COLUMNS).eq("orden", order).limit(1),
            message="Could not load donor levels. Please try again.",
            operation="level.by_order",
        )
        return first_row(response)
