from __future__ import annotations

import json
import tempfile
from datetime import time, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from bookingbot.infrastructure.store.memory_repository import MemoryBookingRepository
from bookingbot.infrastructure.store.seed import load_seed

SAMPLE_SEED = Path(__file__).resolve().parents[1] / "data" / "seed.json"


def test_sample_seed_loads():
    """The shipped seed file gives a bookable tenant for local runs."""
    repository = MemoryBookingRepository()

    load_seed(repository, SAMPLE_SEED)

    assert repository.find_tenant_by_owner(1001).name == "Studio Lumen"
    assert [t.id for t in repository.list_tenants_for_client(2001)] == [1]
    assert repository.get_service(1).duration == timedelta(minutes=60)
    schedule = repository.get_schedule(1)
    assert schedule.working_days() == [0, 1, 3]
    assert [(b.start, b.end) for b in schedule.for_day(0).breaks] == [(time(12), time(13))]
    assert repository.find_tenant_by_invite_token("studio-lumen").id == 1


def test_invalid_seed_is_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "seed.json"
        path.write_text(
            json.dumps({"services": [{"id": 1, "employee_id": 1, "name": "x", "duration_minutes": 0, "price": "1"}]}),
            encoding="utf-8",
        )

        with pytest.raises(ValidationError):
            load_seed(MemoryBookingRepository(), path)
