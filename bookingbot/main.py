import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bookingbot.api.webhooks import router as webhooks_router
from bookingbot.core.config import settings
from bookingbot.infrastructure.scheduler.reminder_scheduler import start_reminder_scheduler
from bookingbot.wiring.dependencies import get_send_reminders_use_case

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("chat_id", "step", "command", "appointment_id", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)
# Request lines carry the bot token in the URL.
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.REMINDERS_ENABLED:
        scheduler = start_reminder_scheduler(get_send_reminders_use_case(), settings.reminder_interval)
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Booking Bot", version="1.0.0", lifespan=lifespan)

app.include_router(webhooks_router, tags=["webhooks"])
