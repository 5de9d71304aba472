"""
Donation venues (`locacion`) and the entities that run them (`entidad`).
"""

from __future__ import annotations

from typing import Any

from supabase import Client

from blooddrive.backend import execute, first_row

LOCATION_TABLE = "locacion"
ENTITY_TABLE = "entidad"

LOCATION_COLUMNS = (
    "id, nombre, direccion, latitud, longitud, map_link, id_entidad, status, entidad(id, nombre, imagen)"
)


class LocationRepo:
    def __init__(self, client: Client) -> None:
        self._client = client

    def list_all(self) -> list[dict[str, Any]]:
        response = execute(
            self._client.table(LOCATION_TABLE).select(LOCATION_COLUMNS).order("nombre"),
            message="Could not load locations. Please try again.",
            operation="location.list_all",
        )
        return response.data or []

    def list_active(self) -> list[dict[str, Any]]:
        """Locations offered by the campaign form."""
        response = execute(
            self._client.table(LOCATION_TABLE)
            .select("id, nombre, direccion")
            .eq("status", "active")
            .order("nombre"),
            message="Could not load locations. Please try again.",
            operation="location.list_active",
        )
        return response.data or []

    def get(self, location_id: Any) -> dict[str, Any] | None:
        response = execute(
            self._client.table(LOCATION_TABLE).select(LOCATION_COLUMNS).eq("id", location_id).limit(1),
            message="Could not load the location. Please try again.",
            operation="location.get",
        )
        return first_row(response)

    def create(self, row: dict[str, Any]) -> dict[str, Any] | None:
        response = execute(
            self._client.table(LOCATION_TABLE).insert(row),
            message="Could not create the location. Please try again.",
            operation="location.create",
        )
        return first_row(response)

    def update(self, location_id: Any, changes: dict[str, Any]) -> dict[str, Any] | None:
        response = execute(
            self._client.table(LOCATION_TABLE).update(changes).eq("id", location_id),
            message="Could not update the location. Please try again.",
            operation="location.update",
        )
        return first_row(response)

    def delete(self, location_id: Any) -> bool:
        response = execute(
            self._client.table(LOCATION_TABLE).delete().eq("id", location_id),
            message="Could not delete the location. It may be used by campaigns.",
            operation="location.delete",
        )
        return bool(response.data)

    def list_entities(self) -> list[dict[str, Any]]:
        response = execute(
            self._client.table(ENTITY_TABLE).select("id, nombre, imagen").eq("status", "activa").order("nombre"),
            message="Could not load entities. Please try again.",
            operation="entity.list",
        )
        return response.data or []
