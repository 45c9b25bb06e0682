from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bookingbot.application.use_cases.tenant_profile import parse_coordinates, parse_price
from bookingbot.domain.entities.conversation_state import (
    AwaitingLocation,
    AwaitingServiceName,
    AwaitingServicePrice,
    Idle,
    SelectingServiceCurrency,
    SelectingServiceDuration,
)
from bookingbot.domain.entities.inbound_event import EventKind, InboundEvent

OWNER_CHAT = 1001
CLIENT_CHAT = 2001
NEW_CLIENT_CHAT = 3001
TUESDAY_13_UTC = datetime(2030, 1, 8, 13, tzinfo=timezone.utc)


def test_service_list_for_owner(press, platform):
    press(OWNER_CHAT, "list_services")

    listing = platform.last_for(OWNER_CHAT)
    assert listing.text == (
        "Services of Studio Lumen:\n"
        "• Haircut · 25 EUR · 60 min\n"
        "• Beard trim · 12.5 EUR · 30 min"
    )
    assert listing.callbacks() == ["add_service", "main_menu"]


def test_add_service_with_typed_duration(bot, press, platform, store, repository):
    press(OWNER_CHAT, "add_service")
    assert store.get_step(OWNER_CHAT) == AwaitingServiceName()

    bot.on_message(OWNER_CHAT, "  Colour_and   cut ")
    assert store.get_step(OWNER_CHAT) == SelectingServiceCurrency(name="Colour_and cut")
    assert platform.last_for(OWNER_CHAT).callbacks() == [
        "service_currency:EUR",
        "service_currency:USD",
        "service_currency:UAH",
    ]

    press(OWNER_CHAT, "service_currency:USD")
    assert store.get_step(OWNER_CHAT) == AwaitingServicePrice(currency="USD", name="Colour_and cut")
    assert platform.last_for(OWNER_CHAT).text == "Send the price in USD, for example 25 or 12.50."

    for bad in ("free", "-1", "12.345"):
        bot.on_message(OWNER_CHAT, bad)
        assert platform.last_for(OWNER_CHAT).text.startswith("Please send a non-negative amount")

    bot.on_message(OWNER_CHAT, "40,50")
    assert store.get_step(OWNER_CHAT) == SelectingServiceDuration(
        price_cents=4050, currency="USD", name="Colour_and cut"
    )
    assert "service_duration:45" in platform.last_for(OWNER_CHAT).callbacks()

    bot.on_message(OWNER_CHAT, "0")
    assert platform.last_for(OWNER_CHAT).text == "Please send the duration as whole minutes, less than a day."

    bot.on_message(OWNER_CHAT, "75")
    service = repository.list_services(1)[-1]
    assert (service.id, service.name, service.duration, service.price, service.currency) == (
        3,
        "Colour_and cut",
        timedelta(minutes=75),
        Decimal("40.50"),
        "USD",
    )
    assert platform.last_for(OWNER_CHAT).text == "Service added: Colour_and cut · 40.5 USD · 75 min."
    assert store.get_step(OWNER_CHAT) == Idle()


def test_service_added_by_button_is_bookable(bot, press, platform, repository):
    press(OWNER_CHAT, "add_service")
    bot.on_message(OWNER_CHAT, "Wash")
    press(OWNER_CHAT, "service_currency:EUR")
    bot.on_message(OWNER_CHAT, "0")
    press(OWNER_CHAT, "service_duration:15")

    assert repository.get_service(3).duration == timedelta(minutes=15)

    bot.on_message(CLIENT_CHAT, "/start")
    press(CLIENT_CHAT, "book_appointment")
    press(CLIENT_CHAT, "choose_tenant:1")
    assert "choose_service:3" in platform.last_for(CLIENT_CHAT).callbacks()


def test_duration_button_needs_a_price_step(bot, press, platform, repository):
    press(OWNER_CHAT, "service_duration:30")

    assert platform.last_for(OWNER_CHAT).text == "This session has expired. Send any message to start again."
    assert len(repository.list_services(1)) == 2


def test_text_during_currency_choice_asks_for_buttons(bot, press, platform, store):
    press(OWNER_CHAT, "add_service")
    bot.on_message(OWNER_CHAT, "Wash")

    bot.on_message(OWNER_CHAT, "EUR")

    assert platform.last_for(OWNER_CHAT).text == "Please use the buttons above, or send /cancel to start over."
    assert store.get_step(OWNER_CHAT) == SelectingServiceCurrency(name="Wash")


def test_location_shared_from_the_map(bot, press, platform, store, repository):
    press(OWNER_CHAT, "add_location")
    assert store.get_step(OWNER_CHAT) == AwaitingLocation()

    bot.handle(InboundEvent(kind=EventKind.MESSAGE, chat_id=OWNER_CHAT, payload="", location=(41.1579, -8.6291)))

    tenant = repository.get_tenant(1)
    assert (tenant.latitude, tenant.longitude) == (41.1579, -8.6291)
    assert platform.last_for(OWNER_CHAT).text.startswith("The location of Studio Lumen is saved.")
    assert store.get_step(OWNER_CHAT) == Idle()


def test_location_typed_as_coordinates(bot, press, platform, repository):
    press(OWNER_CHAT, "add_location")

    bot.on_message(OWNER_CHAT, "somewhere nice")
    assert platform.last_for(OWNER_CHAT).text.startswith("That is not a valid location.")

    bot.on_message(OWNER_CHAT, "50.4501, 30.5234")
    tenant = repository.get_tenant(1)
    assert (tenant.latitude, tenant.longitude) == (50.4501, 30.5234)


def test_confirmation_carries_the_new_location(bot, press, repository, lifecycle, platform):
    press(OWNER_CHAT, "add_location")
    bot.on_message(OWNER_CHAT, "50.4501, 30.5234")
    client = repository.get_or_create_client(CLIENT_CHAT, "Maria")
    pending = repository.create_appointment(repository.get_service(1), client.id, TUESDAY_13_UTC)

    lifecycle.confirm(pending.id, OWNER_CHAT)

    pushed = [r.location for r in platform.for_chat(CLIENT_CHAT) if r.action == "location"]
    assert pushed == [(50.4501, 30.5234)]


def test_client_link_is_stable(press, platform, repository):
    press(OWNER_CHAT, "get_client_link")
    token = repository.get_tenant(1).invite_token
    first = platform.last_for(OWNER_CHAT).text

    press(OWNER_CHAT, "get_client_link")

    assert token
    assert first == f"Share this link with the clients of Studio Lumen:\nhttps://t.me/mock_booking_bot?start={token}"
    assert platform.last_for(OWNER_CHAT).text == first


def test_joining_through_the_invite_link(bot, press, platform, repository):
    bot.on_message(NEW_CLIENT_CHAT, "/start", sender_name="Lee")
    press(NEW_CLIENT_CHAT, "book_appointment", sender_name="Lee")
    assert repository.list_tenants_for_client(NEW_CLIENT_CHAT) == []

    token = repository.ensure_invite_token(1)
    bot.on_message(NEW_CLIENT_CHAT, f"/start {token}", sender_name="Lee")

    texts = [r.text for r in platform.for_chat(NEW_CLIENT_CHAT)][-2:]
    assert texts == ["You can now book at Studio Lumen.", "Hello Lee! What would you like to do?"]
    assert [t.id for t in repository.list_tenants_for_client(NEW_CLIENT_CHAT)] == [1]

    bot.on_message(NEW_CLIENT_CHAT, f"/start={token}", sender_name="Lee")
    assert [t.id for t in repository.list_tenants_for_client(NEW_CLIENT_CHAT)] == [1]


def test_unknown_invite_token(bot, platform, repository):
    bot.on_message(NEW_CLIENT_CHAT, "/start not-a-token", sender_name="Lee")

    assert platform.last_for(NEW_CLIENT_CHAT).text == "This invite link is not valid."
    assert repository.list_tenants_for_client(NEW_CLIENT_CHAT) == []


@pytest.mark.parametrize("command", ["list_services", "add_service", "add_location", "get_client_link"])
def test_profile_commands_are_owner_only(press, platform, store, command):
    press(CLIENT_CHAT, command)

    assert platform.last_for(CLIENT_CHAT).text == "You are not allowed to do that."
    assert store.get_step(CLIENT_CHAT) == Idle()


def test_price_and_coordinate_parsing():
    assert parse_price("12") == Decimal("12")
    assert parse_price("0,5") == Decimal("0.5")
    assert parse_price("1e40") is None
    assert parse_price("NaN") is None
    assert parse_price(None) is None
    assert parse_coordinates("38.72; -9.14") == (38.72, -9.14)
    assert parse_coordinates("91, 0") is None
    assert parse_coordinates("1, 2, 3") is None
