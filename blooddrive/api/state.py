from __future__ import annotations

from dataclasses import dataclass

from blooddrive.backend import Backend


@dataclass
class AppState:
    backend: Backend
