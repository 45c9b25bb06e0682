#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import time
from typing import Any

import httpx
from httpx import ConnectError


def build_payload(chat_id: int, text: str | None, callback: str | None, message_id: int) -> dict[str, Any]:
    update_id = int(time.time())
    sender = {"id": chat_id, "is_bot": False, "first_name": "Local"}
    if callback:
        return {
            "update_id": update_id,
            "callback_query": {
                "id": str(update_id),
                "from": sender,
                "message": {"message_id": message_id, "chat": {"id": chat_id, "type": "private"}},
                "data": callback,
            },
        }
    return {
        "update_id": update_id,
        "message": {
            "message_id": message_id,
            "date": update_id,
            "chat": {"id": chat_id, "type": "private"},
            "from": sender,
            "text": text or "/start",
        },
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a test Telegram webhook POST")
    parser.add_argument("--url", default="http://127.0.0.1:8001/webhooks/telegram")
    parser.add_argument("--chat", type=int, default=2001)
    parser.add_argument("--text", default=None)
    parser.add_argument("--callback", default=None, help="callback data, e.g. choose_date:2030-01-08")
    parser.add_argument("--message-id", type=int, default=1)
    parser.add_argument("--secret", default="", help="webhook secret token")
    args = parser.parse_args()

    payload = build_payload(args.chat, args.text, args.callback, args.message_id)
    body = json.dumps(payload).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    if args.secret:
        headers["X-Telegram-Bot-Api-Secret-Token"] = args.secret

    try:
        resp = httpx.post(args.url, content=body, headers=headers, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn bookingbot.main:app --reload --port 8001")
        return

    print(resp.status_code)
    if resp.text:
        print(resp.text)


if __name__ == "__main__":
    main()
