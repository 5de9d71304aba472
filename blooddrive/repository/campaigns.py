"""
Donation campaigns (`campana`), read with their location and entity embedded.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from supabase import Client

from blooddrive.backend import execute, first_row

CAMPAIGN_TABLE = "campana"

CAMPAIGN_COLUMNS = (
    "id, nombre, tipo, componente, descripcion, fecha_inicio, fecha_fin, status, created_at, id_locacion, "
    "locacion(id, nombre, direccion, latitud, longitud, map_link, entidad(id, nombre, imagen))"
)


class CampaignRepo:
    def __init__(self, client: Client) -> None:
        self._client = client

    def list_upcoming(self, now: datetime) -> list[dict[str, Any]]:
        """Active campaigns that have not started yet, soonest first."""
        response = execute(
            self._client.table(CAMPAIGN_TABLE)
            .select(CAMPAIGN_COLUMNS)
            .eq("status", "active")
            .gte("fecha_inicio", now.isoformat())
            .order("fecha_inicio"),
            message="Could not load campaigns. Please try again.",
            operation="campaign.list_upcoming",
        )
        return response.data or []

    def list_all(self) -> list[dict[str, Any]]:
        response = execute(
            self._client.table(CAMPAIGN_TABLE).select(CAMPAIGN_COLUMNS).order("fecha_inicio", desc=True),
            message="Could not load campaigns. Please try again.",
            operation="campaign.list_all",
        )
        return response.data or []

    def get(self, campaign_id: Any) -> dict[str, Any] | None:
        response = execute(
            self._client.table(CAMPAIGN_TABLE).select(CAMPAIGN_COLUMNS).eq("id", campaign_id).limit(1),
            message="Could not load the campaign. Please try again.",
            operation="campaign.get",
        )
        return first_row(response)

    def create(self, row: dict[str, Any]) -> dict[str, Any] | None:
        response = execute(
            self._client.table(CAMPAIGN_TABLE).insert(row),
            message="Could not create the campaign. Please try again.",
            operation="campaign.create",
        )
        return first_row(response)

    def update(self, campaign_id: Any, changes: dict[str, Any]) -> dict[str, Any] | None:
        response = execute(
            self._client.table(CAMPAIGN_TABLE).update(changes).eq("id", campaign_id),
            message="Could not update the campaign. Please try again.",
            operation="campaign.update",
        )
        return first_row(response)

    def cancel(self, campaign_id: Any) -> dict[str, Any] | None:
        response = execute(
            self._client.table(CAMPAIGN_TABLE).update({"status": "cancelled"}).eq("id", campaign_id),
            message="Could not cancel the campaign. Please try again.",
            operation="campaign.cancel",
        )
        return first_row(response)

    def delete(self, campaign_id: Any) -> bool:
        """Returns False when no row matched."""
        response = execute(
            self._client.table(CAMPAIGN_TABLE).delete().eq("id", campaign_id),
            message="Could not delete the campaign. It may have registrations.",
            operation="campaign.delete",
        )
        return bool(response.data)
