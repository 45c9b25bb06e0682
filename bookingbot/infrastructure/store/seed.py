from __future__ import annotations

import json
import logging
from datetime import time, timedelta
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field

from bookingbot.domain.entities.schedule import WorkInterval
from bookingbot.domain.entities.service import Service
from bookingbot.domain.entities.tenant import Employee, Tenant
from bookingbot.infrastructure.store.memory_repository import MemoryBookingRepository

logger = logging.getLogger(__name__)


class TenantSeed(BaseModel):
    id: int
    name: str
    owner_chat_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    invite_token: str | None = None
    reminder_hours: int = Field(default=24, gt=0)


class EmployeeSeed(BaseModel):
    id: int
    tenant_id: int
    name: str


class ServiceSeed(BaseModel):
    id: int
    employee_id: int
    name: str
    duration_minutes: int = Field(gt=0)
    price: Decimal
    currency: str = "EUR"
    description: str | None = None


class BreakSeed(BaseModel):
    start: time
    end: time


class WorkIntervalSeed(BaseModel):
    employee_id: int
    day_of_week: int = Field(ge=0, le=6)
    start: time
    end: time
    timezone: str
    breaks: list[BreakSeed] = Field(default_factory=list)


class InviteSeed(BaseModel):
    chat_id: int
    tenant_id: int


class SeedData(BaseModel):
    tenants: list[TenantSeed] = Field(default_factory=list)
    employees: list[EmployeeSeed] = Field(default_factory=list)
    services: list[ServiceSeed] = Field(default_factory=list)
    work_intervals: list[WorkIntervalSeed] = Field(default_factory=list)
    invites: list[InviteSeed] = Field(default_factory=list)

    def apply(self, repository: MemoryBookingRepository) -> None:
        for t in self.tenants:
            repository.add_tenant(
                Tenant(
                    id=t.id,
                    name=t.name,
                    owner_chat_id=t.owner_chat_id,
                    latitude=t.latitude,
                    longitude=t.longitude,
                    invite_token=t.invite_token,
                    reminder_hours=t.reminder_hours,
                )
            )
        for e in self.employees:
            repository.add_employee(Employee(id=e.id, tenant_id=e.tenant_id, name=e.name))
        for s in self.services:
            repository.add_service(
                Service(
                    id=s.id,
                    employee_id=s.employee_id,
                    name=s.name,
                    duration=timedelta(minutes=s.duration_minutes),
                    price=s.price,
                    currency=s.currency,
                    description=s.description,
                )
            )
        for w in self.work_intervals:
            repository.save_work_interval(
                WorkInterval(
                    employee_id=w.employee_id,
                    day_of_week=w.day_of_week,
                    start=w.start,
                    end=w.end,
                    timezone=w.timezone,
                )
            )
            for b in w.breaks:
                repository.add_break(w.employee_id, w.day_of_week, b.start, b.end)
        for invite in self.invites:
            repository.invite_client(invite.chat_id, invite.tenant_id)


def load_seed(repository: MemoryBookingRepository, path: str | Path) -> SeedData:
    with open(path, "r", encoding="utf-8") as f:
        seed = SeedData.model_validate(json.load(f))
    seed.apply(repository)
    logger.info(
        "Seed data loaded",
        extra={"reason": f"tenants={len(seed.tenants)} services={len(seed.services)} path={path}"},
    )
    return seed
