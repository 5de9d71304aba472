"""
Pytest configuration and shared fixtures for BloodDrive tests.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from blooddrive.api import create_app
from blooddrive.backend import Backend
from blooddrive.domain import utcnow

from tests.fakes import FakeSupabase, iso


@pytest.fixture
def fake() -> FakeSupabase:
    """Backend state shared by every client the app creates during a test."""
    db = FakeSupabase()
    db.seed(
        "nivel",
        {"id": 1, "nombre": "Bronce", "puntaje_minimo": 0, "orden": 1},
        {"id": 2, "nombre": "Plata", "puntaje_minimo": 50, "orden": 2},
        {"id": 3, "nombre": "Oro", "puntaje_minimo": 150, "orden": 3},
    )
    db.seed("entidad", {"id": 1, "nombre": "Cruz Roja", "imagen": None, "status": "activa"})
    db.seed(
        "locacion",
        {
            "id": 1,
            "nombre": "Hospital Central",
            "direccion": "Av. Siempre Viva 123, La Paz",
            "latitud": -16.5,
            "longitud": -68.15,
            "map_link": None,
            "id_entidad": 1,
            "status": "active",
        },
    )
    return db


@pytest.fixture
def backend(fake: FakeSupabase) -> Backend:
    return Backend("http://supabase.test", "anon-key", client_factory=lambda url, key: fake)


@pytest.fixture
def api(backend: Backend) -> TestClient:
    return TestClient(create_app(backend=backend))


def add_donor(
    fake: FakeSupabase,
    *,
    email: str = "donor@example.org",
    next_date: date | None = None,
    role: str = "user",
    complete: bool = True,
    **profile: Any,
) -> tuple[str, str]:
    """Create an auth user with a profile; returns (user_id, access token)."""
    user_id = fake.auth.create_user(email)
    fake.seed(
        "user_info",
        {
            "id": user_id,
            "name": "Ana",
            "last_name": "Rojas",
            "email": email,
            "blood_type": "O+",
            "next_date": next_date.isoformat() if next_date else None,
            "puntos": 0,
            "id_nivel": 1,
            "role": role,
            "status": "active",
            "is_complete": complete,
            **profile,
        },
    )
    return user_id, fake.auth.issue_token(user_id)


def add_campaign(fake: FakeSupabase, *, starts_in: timedelta = timedelta(days=7), **fields: Any) -> dict[str, Any]:
    start = utcnow() + starts_in
    row = {
        "nombre": "Jornada de invierno",
        "tipo": "Jornada",
        "componente": "Sangre total",
        "descripcion": None,
        "fecha_inicio": iso(start),
        "fecha_fin": iso(start + timedelta(hours=8)),
        "id_locacion": 1,
        "status": "active",
        **fields,
    }
    return fake.seed("campana", row)[0]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def donor(fake: FakeSupabase) -> tuple[str, str]:
    return add_donor(fake)


@pytest.fixture
def admin(fake: FakeSupabase) -> tuple[str, str]:
    return add_donor(fake, email="admin@example.org", role="admin", name="Luis", last_name="Vargas")


@pytest.fixture
def campaign(fake: FakeSupabase) -> dict[str, Any]:
    return add_campaign(fake)


@pytest.fixture
def now() -> datetime:
    return utcnow()
