from __future__ import annotations

import logging
from typing import Any

import httpx

from bookingbot.application.exceptions import DeliveryError


class TelegramClient:
    def __init__(
        self,
        bot_token: str,
        base_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/bot{bot_token}"
        self._client = http_client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def call(self, method: str, payload: dict[str, Any]) -> Any:
        """POST a Bot API method and return its `result`, raising DeliveryError on any failure."""
        try:
            resp = self._client.post(f"{self._endpoint}/{method}", json=payload)
        except httpx.HTTPError as e:
            self._logger.error(
                "Telegram request failed",
                extra={"chat_id": payload.get("chat_id"), "command": method, "reason": str(e)},
            )
            raise DeliveryError(f"{method} failed: {e}") from e

        if resp.status_code >= 400:
            try:
                error_json = resp.json()
                error_code = error_json.get("error_code")
                description = error_json.get("description")
            except ValueError:
                error_code = None
                description = resp.text

            self._logger.error(
                "Telegram API rejected request",
                extra={
                    "chat_id": payload.get("chat_id"),
                    "command": method,
                    "reason": f"status={resp.status_code} code={error_code} {description}",
                },
            )
            raise DeliveryError(f"{method} rejected with {resp.status_code}: {description}")

        body = resp.json()
        if not body.get("ok", False):
            raise DeliveryError(f"{method} returned not ok: {body.get('description')}")
        return body.get("result")

    def close(self) -> None:
        self._client.close()
