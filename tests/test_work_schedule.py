from __future__ import annotations

from datetime import time

from bookingbot.domain.entities.conversation_state import AwaitingBreakEnd, AwaitingWorkEnd, AwaitingWorkStart, Idle

OWNER_CHAT = 1001
CLIENT_CHAT = 2001


def _texts(platform, chat_id):
    return [r.text for r in platform.for_chat(chat_id) if r.text]


def test_toggle_work_days(bot, press, repository, platform):
    press(OWNER_CHAT, "setup_work_days")
    menu = platform.last_for(OWNER_CHAT)
    assert menu.text == "Tap a day to switch it on or off:"
    assert [row[0].text for row in menu.buttons[:7]][0] == "✅ Monday"
    assert [row[0].text for row in menu.buttons[:7]][5] == "❌ Saturday"

    press(OWNER_CHAT, "workingdays:5")
    saturday = repository.get_schedule(1).for_day(5)
    assert (saturday.start, saturday.end, saturday.timezone) == (time(9), time(17), "Europe/Lisbon")
    assert platform.last_for(OWNER_CHAT).buttons[5][0].text == "✅ Saturday"

    press(OWNER_CHAT, "workingdays:0")
    assert repository.get_schedule(1).for_day(0) is None
    assert repository.get_schedule(1).working_days() == [1, 2, 3, 4, 5]


def test_change_work_time(bot, press, repository, platform, store):
    press(OWNER_CHAT, "change_work_time")
    assert "select_day_for_work_time_start:1_0" in platform.last_for(OWNER_CHAT).callbacks()

    press(OWNER_CHAT, "select_day_for_work_time_start:1_0")
    assert platform.last_for(OWNER_CHAT).text == "Monday: currently 09:00-17:00. Send the new start time (HH:MM)."
    assert store.get_step(OWNER_CHAT) == AwaitingWorkStart(employee_id=1, day_of_week=0)

    bot.on_message(OWNER_CHAT, "half past nine")
    assert platform.last_for(OWNER_CHAT).text == "Please send the time as HH:MM, for example 09:30."

    bot.on_message(OWNER_CHAT, "9:30")
    assert store.get_step(OWNER_CHAT) == AwaitingWorkEnd(employee_id=1, day_of_week=0, start=time(9, 30))

    bot.on_message(OWNER_CHAT, "08:00")
    assert platform.last_for(OWNER_CHAT).text == "The end time must be after 09:30."

    bot.on_message(OWNER_CHAT, "18:00")
    assert platform.last_for(OWNER_CHAT).text == "Monday: work time set to 09:30-18:00."
    monday = repository.get_schedule(1).for_day(0)
    assert (monday.start, monday.end) == (time(9, 30), time(18))
    assert [(b.start, b.end) for b in monday.breaks] == [(time(12), time(13))]
    assert store.get_step(OWNER_CHAT) == Idle()


def test_new_hours_must_keep_existing_breaks(bot, press, repository, platform):
    press(OWNER_CHAT, "select_day_for_work_time_start:1_0")
    bot.on_message(OWNER_CHAT, "13:00")
    bot.on_message(OWNER_CHAT, "18:00")

    assert platform.last_for(OWNER_CHAT).text == "Existing breaks do not fit in 13:00-18:00. Remove them first."
    assert repository.get_schedule(1).for_day(0).start == time(9)


def test_change_work_timezone(bot, press, repository, platform):
    press(OWNER_CHAT, "change_work_timezone")
    assert platform.last_for(OWNER_CHAT).text == "Work timezone is Europe/Lisbon. Choose a new one:"

    press(OWNER_CHAT, "set_work_timezone:Europe/Kyiv")
    assert platform.last_for(OWNER_CHAT).text == "Work timezone set to Europe/Kyiv."
    assert {i.timezone for i in repository.get_schedule(1).intervals.values()} == {"Europe/Kyiv"}

    press(OWNER_CHAT, "set_work_timezone:Asia/Tokyo")
    assert platform.last_for(OWNER_CHAT).text == "Sorry, I could not understand that. Please try again."


def test_add_break(bot, press, repository, platform, store):
    press(OWNER_CHAT, "manage_breaks")
    press(OWNER_CHAT, "select_day_for_breaks:1_0")
    day = platform.last_for(OWNER_CHAT)
    assert day.text == "Monday: tap a break to remove it."
    assert day.callbacks() == ["remove_break:1_0_1", "add_break:1_0", "manage_breaks"]

    press(OWNER_CHAT, "add_break:1_0")
    assert platform.last_for(OWNER_CHAT).text == "Work time is 09:00-17:00. Send the break start (HH:MM)."

    bot.on_message(OWNER_CHAT, "08:00")
    assert platform.last_for(OWNER_CHAT).text == "The break must be within 09:00-17:00."

    bot.on_message(OWNER_CHAT, "13:00")
    assert store.get_step(OWNER_CHAT) == AwaitingBreakEnd(employee_id=1, day_of_week=0, start=time(13))

    bot.on_message(OWNER_CHAT, "13:30")
    assert "Break 13:00-13:30 added." in _texts(platform, OWNER_CHAT)
    assert store.get_step(OWNER_CHAT) == Idle()
    assert [(b.start, b.end) for b in repository.get_schedule(1).for_day(0).breaks] == [
        (time(12), time(13)),
        (time(13), time(13, 30)),
    ]


def test_overlapping_break_is_refused(bot, press, repository, platform, store):
    press(OWNER_CHAT, "add_break:1_0")
    bot.on_message(OWNER_CHAT, "12:30")
    bot.on_message(OWNER_CHAT, "13:30")

    assert platform.last_for(OWNER_CHAT).text == "The break 12:30-13:30 overlaps another break."
    assert len(repository.get_schedule(1).for_day(0).breaks) == 1
    # Still waiting for a usable end time
    assert isinstance(store.get_step(OWNER_CHAT), AwaitingBreakEnd)


def test_remove_break_after_confirmation(bot, press, repository, platform):
    press(OWNER_CHAT, "select_day_for_breaks:1_0")
    press(OWNER_CHAT, "remove_break:1_0_1")

    prompt = platform.last_for(OWNER_CHAT)
    assert prompt.text == "Remove the break 12:00-13:00?"
    assert prompt.callbacks() == ["remove_break_confirmation:1_0_1", "select_day_for_breaks:1_0"]
    assert len(repository.get_schedule(1).for_day(0).breaks) == 1

    press(OWNER_CHAT, "remove_break_confirmation:1_0_1")

    assert repository.get_schedule(1).for_day(0).breaks == ()
    assert "Break removed." in _texts(platform, OWNER_CHAT)
    assert platform.last_for(OWNER_CHAT).text == "Monday: no breaks yet."

    # Pressing the stale confirmation again finds nothing to remove.
    press(OWNER_CHAT, "remove_break_confirmation:1_0_1")
    assert platform.last_for(OWNER_CHAT).text == "This session has expired. Send any message to start again."


def test_clients_cannot_edit_schedules(bot, press, repository, platform):
    press(CLIENT_CHAT, "setup_work_days")
    assert platform.last_for(CLIENT_CHAT).text == "You are not allowed to do that."

    press(CLIENT_CHAT, "remove_break_confirmation:1_0_1")
    assert platform.last_for(CLIENT_CHAT).text == "You are not allowed to do that."
    assert len(repository.get_schedule(1).for_day(0).breaks) == 1
