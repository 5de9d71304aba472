"""
BloodDrive API package.

Public exports:
- create_app: FastAPI factory
- app: default global FastAPI instance (for `uvicorn blooddrive.api:app`)
- AppState: app.state container used by tests
"""

from __future__ import annotations

from blooddrive.api.app import app, create_app
from blooddrive.api.state import AppState

__all__ = ["AppState", "app", "create_app"]
