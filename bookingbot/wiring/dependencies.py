from functools import lru_cache
import logging

from bookingbot.application.ports.clock import ClockPort
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.ports.message_platform import MessagePlatformPort
from bookingbot.application.ports.translator import TranslatorPort
from bookingbot.application.use_cases.appointment_lifecycle import AppointmentLifecycleUseCase
from bookingbot.application.use_cases.client_booking import ClientBookingUseCase
from bookingbot.application.use_cases.client_settings import ClientSettingsUseCase
from bookingbot.application.use_cases.handle_incoming_event import HandleIncomingEventUseCase
from bookingbot.application.use_cases.send_reminders import SendRemindersUseCase
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.use_cases.tenant_profile import TenantProfileUseCase
from bookingbot.application.use_cases.work_schedule import WorkScheduleUseCase
from bookingbot.core.config import settings
from bookingbot.infrastructure.clock import SystemClock
from bookingbot.infrastructure.i18n.json_translator import JsonTranslator
from bookingbot.infrastructure.store.json_store import JsonConversationStore
from bookingbot.infrastructure.store.memory_repository import MemoryBookingRepository
from bookingbot.infrastructure.store.memory_store import MemoryConversationStore
from bookingbot.infrastructure.store.seed import load_seed
from bookingbot.infrastructure.telegram.mock_platform import MockTelegramPlatform
from bookingbot.infrastructure.telegram.telegram_client import TelegramClient
from bookingbot.infrastructure.telegram.telegram_platform import TelegramPlatform


@lru_cache
def get_clock() -> ClockPort:
    return SystemClock()


@lru_cache
def get_repository() -> MemoryBookingRepository:
    repository = MemoryBookingRepository()
    if settings.SEED_DATA_PATH:
        load_seed(repository, settings.SEED_DATA_PATH)
    return repository


@lru_cache
def get_conversation_store() -> ConversationStorePort:
    if settings.is_dev:
        return JsonConversationStore(
            clock=get_clock(), data_dir=settings.STATE_STORE_DIR, ttl=settings.conversation_ttl
        )
    return MemoryConversationStore(clock=get_clock(), ttl=settings.conversation_ttl)


@lru_cache
def get_translator() -> TranslatorPort:
    return JsonTranslator(settings.LOCALES_DIR, default_language=settings.DEFAULT_LANGUAGE)


@lru_cache
def get_message_platform() -> MessagePlatformPort:
    logger = logging.getLogger(__name__)
    logger.info("TELEGRAM_BOT_TOKEN present=%s", bool(settings.TELEGRAM_BOT_TOKEN))
    logger.info("ENV=%s", settings.ENV)

    if not settings.TELEGRAM_BOT_TOKEN:
        if settings.is_dev:
            logger.info("Using MockTelegramPlatform (token missing, ENV=dev/local)")
            return MockTelegramPlatform()
        raise ValueError("TELEGRAM_BOT_TOKEN is required to send Telegram messages.")

    logger.info("Using real TelegramPlatform")
    client = TelegramClient(bot_token=settings.TELEGRAM_BOT_TOKEN, base_url=settings.TELEGRAM_API_BASE_URL)
    return TelegramPlatform(client=client)


def get_send_reply() -> SendReplyUseCase:
    return SendReplyUseCase(
        platform=get_message_platform(),
        translator=get_translator(),
        repository=get_repository(),
        enabled=settings.AUTO_REPLY_ENABLED,
    )


@lru_cache
def get_handle_incoming_event_use_case() -> HandleIncomingEventUseCase:
    # Cached: the per-chat locks live on this instance and must be shared by all requests.
    repository = get_repository()
    store = get_conversation_store()
    reply = get_send_reply()
    clock = get_clock()
    return HandleIncomingEventUseCase(
        store=store,
        reply=reply,
        client_booking=ClientBookingUseCase(
            repository=repository,
            store=store,
            reply=reply,
            clock=clock,
            granularity=settings.slot_granularity,
            default_timezone=settings.DEFAULT_TIMEZONE,
        ),
        work_schedule=WorkScheduleUseCase(
            repository=repository,
            store=store,
            reply=reply,
            default_timezone=settings.DEFAULT_TIMEZONE,
            supported_timezones=settings.SUPPORTED_TIMEZONES,
            default_start=settings.DEFAULT_WORK_START,
            default_end=settings.DEFAULT_WORK_END,
        ),
        client_settings=ClientSettingsUseCase(
            repository=repository,
            reply=reply,
            clock=clock,
            default_timezone=settings.DEFAULT_TIMEZONE,
            supported_timezones=settings.SUPPORTED_TIMEZONES,
        ),
        lifecycle=AppointmentLifecycleUseCase(
            repository=repository,
            reply=reply,
            default_timezone=settings.DEFAULT_TIMEZONE,
        ),
        tenant_profile=TenantProfileUseCase(
            repository=repository,
            store=store,
            reply=reply,
            platform=get_message_platform(),
            supported_currencies=settings.SUPPORTED_CURRENCIES,
            duration_options=settings.SERVICE_DURATION_OPTIONS,
        ),
    )


@lru_cache
def get_send_reminders_use_case() -> SendRemindersUseCase:
    return SendRemindersUseCase(
        repository=get_repository(),
        reply=get_send_reply(),
        clock=get_clock(),
        default_timezone=settings.DEFAULT_TIMEZONE,
    )
