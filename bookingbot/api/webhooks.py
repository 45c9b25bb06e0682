from __future__ import annotations

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Request, Response
from pydantic import ValidationError

from bookingbot.application.dto.telegram_update import TelegramUpdateDTO
from bookingbot.core.config import settings
from bookingbot.infrastructure.telegram.webhook_verify import verify_secret_token
from bookingbot.wiring.dependencies import get_handle_incoming_event_use_case

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhooks/telegram")
async def telegram_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
) -> Response:
    try:
        if not verify_secret_token(request.headers.get(SECRET_HEADER), settings.TELEGRAM_WEBHOOK_SECRET, settings.ENV):
            return Response(status_code=403)

        try:
            use_case = get_handle_incoming_event_use_case()
        except Exception as e:
            logger.exception("Failed to initialize use case", extra={"reason": str(e)})
            return Response(status_code=500)

        body = await request.body()
        try:
            payload = json.loads(body.decode("utf-8")) if body else {}
            update = TelegramUpdateDTO.model_validate(payload)
        except (ValueError, ValidationError):
            logger.exception("Failed to parse webhook body")
            return Response(status_code=400)

        event = update.extract_event()
        if event is None:
            logger.info("Update ignored", extra={"reason": f"update_id={update.update_id}"})
            return Response(status_code=200)

        logger.info(
            "Webhook received",
            extra={"chat_id": event.chat_id, "reason": f"{event.kind.value} update_id={update.update_id}"},
        )
        background_tasks.add_task(use_case.handle, event)
        return Response(status_code=200)
    except Exception as e:
        logger.exception("Fatal error in webhook handler", extra={"reason": str(e)})
        return Response(status_code=500)
