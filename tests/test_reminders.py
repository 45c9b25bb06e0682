from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from bookingbot.application.exceptions import DeliveryError
from bookingbot.application.use_cases.send_reminders import SendRemindersUseCase
from bookingbot.domain.entities.appointment import AppointmentStatus
from bookingbot.infrastructure.scheduler.reminder_scheduler import (
    REMINDER_JOB_ID,
    run_reminders,
    start_reminder_scheduler,
)

CLIENT_CHAT = 2001
TUESDAY_13_UTC = datetime(2030, 1, 8, 13, tzinfo=timezone.utc)  # 29 hours after the fixture clock


@pytest.fixture
def reminders(repository, reply, clock) -> SendRemindersUseCase:
    return SendRemindersUseCase(repository=repository, reply=reply, clock=clock, default_timezone="Europe/Lisbon")


def _confirmed(repository, instant, chat_id=CLIENT_CHAT):
    client = repository.get_or_create_client(chat_id, "Maria")
    appointment = repository.create_appointment(repository.get_service(1), client.id, instant)
    return repository.update_status(appointment.id, AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


def test_reminder_is_sent_once_inside_the_window(reminders, repository, platform, clock):
    appointment = _confirmed(repository, TUESDAY_13_UTC)

    assert reminders.execute() == 0
    assert platform.for_chat(CLIENT_CHAT) == []

    clock.advance(timedelta(hours=6))
    assert reminders.execute() == 1
    assert platform.last_for(CLIENT_CHAT).text == (
        "Reminder: Haircut at Studio Lumen on 08.01.2030 at 13:00 (Europe/Lisbon)."
    )
    assert repository.get_appointment(appointment.id).reminder_sent

    assert reminders.execute() == 0
    assert len(platform.for_chat(CLIENT_CHAT)) == 1


def test_only_upcoming_confirmed_appointments_are_reminded(reminders, repository, platform, clock):
    client = repository.get_or_create_client(CLIENT_CHAT, "Maria")
    repository.create_appointment(repository.get_service(1), client.id, TUESDAY_13_UTC)
    _confirmed(repository, datetime(2030, 1, 7, 7, tzinfo=timezone.utc))
    clock.advance(timedelta(hours=6))

    assert reminders.execute() == 0
    assert platform.outbox == []


def test_reminder_window_is_per_tenant(reminders, repository, platform, clock):
    repository.add_tenant(replace(repository.get_tenant(1), reminder_hours=2))
    _confirmed(repository, TUESDAY_13_UTC)

    clock.advance(timedelta(hours=26))  # Tuesday 10:00, three hours ahead
    assert reminders.execute() == 0

    clock.advance(timedelta(hours=1))
    assert reminders.execute() == 1


def test_reminder_uses_client_zone_and_language(reminders, repository, platform, clock):
    appointment = _confirmed(repository, TUESDAY_13_UTC)
    repository.set_client_timezone(appointment.client_id, "Europe/Kyiv")
    repository.set_language(CLIENT_CHAT, "UK")
    clock.advance(timedelta(hours=6))

    reminders.execute()

    assert platform.last_for(CLIENT_CHAT).text == (
        "Нагадування: Haircut у Studio Lumen, 08.01.2030 о 15:00 (Europe/Kyiv)."
    )


def test_failed_delivery_is_retried_on_the_next_pass(reminders, repository, platform, clock, monkeypatch):
    appointment = _confirmed(repository, TUESDAY_13_UTC)
    clock.advance(timedelta(hours=6))

    def blocked(chat_id, text, buttons=None):
        raise DeliveryError("bot was blocked by the user")

    monkeypatch.setattr(platform, "send_message", blocked)
    assert reminders.execute() == 0
    assert not repository.get_appointment(appointment.id).reminder_sent

    monkeypatch.undo()
    assert reminders.execute() == 1
    assert repository.get_appointment(appointment.id).reminder_sent


def test_scheduler_runs_a_single_reminder_job(reminders):
    scheduler = start_reminder_scheduler(reminders, timedelta(minutes=30))
    try:
        job = scheduler.get_job(REMINDER_JOB_ID)
        assert job.trigger.interval == timedelta(minutes=30)
        assert job.max_instances == 1
        assert job.coalesce
    finally:
        scheduler.shutdown(wait=False)


def test_failed_pass_is_logged_not_raised(caplog):
    class Broken:
        def execute(self):
            raise RuntimeError("store unavailable")

    with caplog.at_level(logging.ERROR):
        run_reminders(Broken())

    assert "Reminder pass failed" in caplog.text
