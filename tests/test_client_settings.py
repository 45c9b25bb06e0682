from __future__ import annotations

from datetime import datetime, timedelta, timezone

from bookingbot.domain.entities.appointment import AppointmentStatus

CLIENT_CHAT = 2001


def _book(repository, chat_id, instant, confirm=True):
    client = repository.get_or_create_client(chat_id, "Maria")
    appointment = repository.create_appointment(repository.get_service(1), client.id, instant)
    if confirm:
        repository.update_status(appointment.id, AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)
    return appointment


def test_no_upcoming_bookings(press, platform):
    press(CLIENT_CHAT, "view_bookings")

    assert platform.last_for(CLIENT_CHAT).text == "You have no upcoming confirmed bookings."


def test_upcoming_confirmed_bookings_in_client_zone(press, platform, repository, clock):
    _book(repository, CLIENT_CHAT, datetime(2030, 1, 9, 10, tzinfo=timezone.utc))
    _book(repository, CLIENT_CHAT, datetime(2030, 1, 8, 14, tzinfo=timezone.utc))
    _book(repository, CLIENT_CHAT, datetime(2030, 1, 10, 9, tzinfo=timezone.utc), confirm=False)
    past = _book(repository, CLIENT_CHAT, datetime(2030, 1, 7, 9, tzinfo=timezone.utc))
    clock.advance(timedelta(hours=2))  # 10:00 UTC, the 09:00 booking is behind us
    assert past.booking_instant < clock.now_utc()

    press(CLIENT_CHAT, "set_timezone:Europe/Kyiv")
    assert platform.last_for(CLIENT_CHAT).text == "Timezone set to Europe/Kyiv."

    press(CLIENT_CHAT, "view_bookings")
    assert platform.last_for(CLIENT_CHAT).text == (
        "Your upcoming bookings (Europe/Kyiv):\n"
        "08.01.2030 16:00 · Haircut\n"
        "09.01.2030 12:00 · Haircut"
    )


def test_change_timezone_lists_supported_zones(press, platform):
    press(CLIENT_CHAT, "change_timezone")

    prompt = platform.last_for(CLIENT_CHAT)
    assert prompt.text == "Your timezone is Europe/Lisbon. Choose a new one:"
    assert prompt.callbacks() == [
        "set_timezone:Europe/London",
        "set_timezone:Europe/Lisbon",
        "set_timezone:Europe/Kyiv",
        "main_menu",
    ]


def test_unknown_timezone_is_rejected(press, platform, repository):
    press(CLIENT_CHAT, "set_timezone:Mars/Olympus")

    assert platform.last_for(CLIENT_CHAT).text == "Sorry, I could not understand that. Please try again."
    assert repository.get_or_create_client(CLIENT_CHAT, None).timezone is None


def test_change_language(press, platform, repository, translator):
    press(CLIENT_CHAT, "change_language")
    prompt = platform.last_for(CLIENT_CHAT)
    assert [row[0].text for row in prompt.buttons] == ["English", "Українська", "Back"]

    press(CLIENT_CHAT, "set_language:uk")
    assert repository.get_language(CLIENT_CHAT) == "UK"
    assert platform.last_for(CLIENT_CHAT).text == translator.get("UK", "LanguageUpdated")

    press(CLIENT_CHAT, "set_language:xx")
    assert repository.get_language(CLIENT_CHAT) == "UK"
