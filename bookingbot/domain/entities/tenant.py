from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tenant:
    id: int
    name: str
    owner_chat_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    invite_token: str | None = None  # `/start <token>` deep-link parameter
    reminder_hours: int = 24

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class Employee:
    id: int
    tenant_id: int
    name: str
