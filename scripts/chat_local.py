#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP, no Telegram).

Usage:
  SEED_DATA_PATH=data/seed.json python3 scripts/chat_local.py

What it does:
- Runs your typed messages through the same HandleIncomingEventUseCase the webhook uses
- `/press <callback>` simulates a button press, `/as <chat_id>` switches chat
  (the sample seed has owner 1001 and client 2001)
- Prints every outbound message with its buttons
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "local")
os.environ.setdefault("SEED_DATA_PATH", str(ROOT / "data" / "seed.json"))

from bookingbot.infrastructure.telegram.mock_platform import MockTelegramPlatform  # noqa: E402
from bookingbot.wiring.dependencies import get_handle_incoming_event_use_case, get_message_platform  # noqa: E402


def _print_header(chat_id: int) -> None:
    print("\nLocal Chat Harness")
    print("-" * 60)
    print(f"chat_id: {chat_id}")
    print("Type a message and press Enter.")
    print("Commands: /press <callback>, /as <chat_id>, /quit, /help")
    print("-" * 60)


def _print_new(platform: MockTelegramPlatform, seen: int) -> int:
    for record in platform.outbox[seen:]:
        if record.action == "location":
            print(f"[{record.chat_id}] 📍 {record.location}")
            continue
        if record.action == "delete":
            print(f"[{record.chat_id}] (deleted message {record.message_id})")
            continue
        print(f"[{record.chat_id}] {record.action}: {record.text}")
        for row in record.buttons or []:
            print("    " + " | ".join(f"{b.text} <{b.callback_data}>" for b in row))
    return len(platform.outbox)


def main() -> None:
    platform = get_message_platform()
    if not isinstance(platform, MockTelegramPlatform):
        raise SystemExit("chat_local needs the mock platform: unset TELEGRAM_BOT_TOKEN")

    use_case = get_handle_incoming_event_use_case()
    chat_id = 2001
    seen = 0
    _print_header(chat_id)

    while True:
        try:
            line = input(f"{chat_id}> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not line:
            continue
        if line == "/quit":
            break
        if line == "/help":
            _print_header(chat_id)
            continue
        if line.startswith("/as "):
            chat_id = int(line[4:].strip())
            print(f"now chatting as {chat_id}")
            continue

        last = platform.last_for(chat_id)
        if line.startswith("/press "):
            use_case.on_callback(chat_id, line[7:].strip(), message_id=last.message_id if last else None)
        else:
            use_case.on_message(chat_id, line, sender_name="Local")
        seen = _print_new(platform, seen)


if __name__ == "__main__":
    main()
