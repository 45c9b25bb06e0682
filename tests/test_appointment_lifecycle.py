from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bookingbot.application.exceptions import AccessDeniedError, DeliveryError
from bookingbot.application.use_cases.appointment_lifecycle import AppointmentLifecycleUseCase
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.domain.entities.appointment import AppointmentStatus
from bookingbot.domain.exceptions import InvalidTransitionError, SlotUnavailableError
from bookingbot.infrastructure.telegram.mock_platform import MockTelegramPlatform

OWNER_CHAT = 1001
CLIENT_CHAT = 2001
TUESDAY_13_UTC = datetime(2030, 1, 8, 13, tzinfo=timezone.utc)


@pytest.fixture
def pending(repository):
    client = repository.get_or_create_client(CLIENT_CHAT, "Maria")
    return repository.create_appointment(repository.get_service(1), client.id, TUESDAY_13_UTC)


class FailingPlatform(MockTelegramPlatform):
    """Refuses every delivery to one chat."""

    def __init__(self, dead_chat: int) -> None:
        super().__init__()
        self.dead_chat = dead_chat

    def send_message(self, chat_id, text, buttons=None):
        if chat_id == self.dead_chat:
            raise DeliveryError("bot was blocked by the user")
        return super().send_message(chat_id, text, buttons)

    def send_location(self, chat_id, latitude, longitude):
        if chat_id == self.dead_chat:
            raise DeliveryError("bot was blocked by the user")
        super().send_location(chat_id, latitude, longitude)


def test_confirm_notifies_owner_and_client(lifecycle, pending, repository, platform):
    updated = lifecycle.confirm(pending.id, OWNER_CHAT)

    assert updated.status is AppointmentStatus.CONFIRMED
    assert repository.get_appointment(pending.id).status is AppointmentStatus.CONFIRMED
    assert platform.last_for(OWNER_CHAT).text == "Booking #1 confirmed."

    client_records = platform.for_chat(CLIENT_CHAT)
    assert client_records[0].text == "Your booking for Haircut on 08.01.2030 at 13:00 (Europe/Lisbon) is confirmed."
    assert client_records[1].action == "location"
    assert client_records[1].location == (38.7223, -9.1393)


def test_client_hears_before_the_owner_acknowledgement(lifecycle, pending, platform):
    lifecycle.confirm(pending.id, OWNER_CHAT)

    assert [(r.chat_id, r.action) for r in platform.outbox] == [
        (CLIENT_CHAT, "send"),
        (CLIENT_CHAT, "location"),
        (OWNER_CHAT, "send"),
    ]


def test_client_is_told_in_their_own_zone(lifecycle, pending, repository, platform):
    repository.set_client_timezone(pending.client_id, "Europe/Kyiv")

    lifecycle.reject(pending.id, OWNER_CHAT)

    assert platform.last_for(CLIENT_CHAT).text == (
        "Your booking for Haircut on 08.01.2030 at 15:00 (Europe/Kyiv) was rejected."
    )
    assert platform.last_for(OWNER_CHAT).text == "Booking #1 rejected."


def test_second_transition_is_refused(lifecycle, pending):
    lifecycle.confirm(pending.id, OWNER_CHAT)

    with pytest.raises(InvalidTransitionError) as excinfo:
        lifecycle.confirm(pending.id, OWNER_CHAT)
    assert excinfo.value.current == "confirmed"

    with pytest.raises(InvalidTransitionError):
        lifecycle.reject(pending.id, OWNER_CHAT)


def test_only_the_owner_may_decide(lifecycle, pending, repository):
    with pytest.raises(AccessDeniedError):
        lifecycle.confirm(pending.id, CLIENT_CHAT)
    assert repository.get_appointment(pending.id).status is AppointmentStatus.PENDING


def test_rejection_frees_the_slot(lifecycle, pending, repository):
    service = repository.get_service(1)
    other = repository.get_or_create_client(2002, "Jo")
    with pytest.raises(SlotUnavailableError):
        repository.create_appointment(service, other.id, TUESDAY_13_UTC + timedelta(minutes=30))

    lifecycle.reject(pending.id, OWNER_CHAT)

    retaken = repository.create_appointment(service, other.id, TUESDAY_13_UTC)
    assert retaken.status is AppointmentStatus.PENDING


def test_stale_status_is_detected_by_the_store(pending, repository):
    repository.update_status(pending.id, AppointmentStatus.PENDING, AppointmentStatus.REJECTED)

    with pytest.raises(InvalidTransitionError):
        repository.update_status(pending.id, AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


def test_failed_client_notification_keeps_the_confirmation(repository, translator, pending):
    platform = FailingPlatform(dead_chat=CLIENT_CHAT)
    reply = SendReplyUseCase(platform=platform, translator=translator, repository=repository)
    lifecycle = AppointmentLifecycleUseCase(repository=repository, reply=reply, default_timezone="Europe/Lisbon")

    lifecycle.confirm(pending.id, OWNER_CHAT)

    assert repository.get_appointment(pending.id).status is AppointmentStatus.CONFIRMED
    assert platform.last_for(OWNER_CHAT).text == "Booking #1 confirmed."
    assert platform.for_chat(CLIENT_CHAT) == []


def test_owner_buttons_through_the_dispatcher(bot, pending, platform):
    bot.on_callback(OWNER_CHAT, f"confirm_booking:{pending.id}")
    assert platform.last_for(OWNER_CHAT).text == "Booking #1 confirmed."

    bot.on_callback(OWNER_CHAT, f"reject_booking:{pending.id}")
    assert platform.last_for(OWNER_CHAT).text == "Booking #1 is already confirmed."

    bot.confirm_appointment(999, OWNER_CHAT)
    assert platform.last_for(OWNER_CHAT).text == "Booking #999 was not found."

    bot.reject_appointment(pending.id, CLIENT_CHAT)
    assert platform.last_for(CLIENT_CHAT).text == "You are not allowed to do that."
