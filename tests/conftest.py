from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.use_cases.appointment_lifecycle import AppointmentLifecycleUseCase
from bookingbot.application.use_cases.client_booking import ClientBookingUseCase
from bookingbot.application.use_cases.client_settings import ClientSettingsUseCase
from bookingbot.application.use_cases.handle_incoming_event import HandleIncomingEventUseCase
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.use_cases.tenant_profile import TenantProfileUseCase
from bookingbot.application.use_cases.work_schedule import WorkScheduleUseCase
from bookingbot.domain.entities.schedule import WorkInterval
from bookingbot.domain.entities.service import Service
from bookingbot.domain.entities.tenant import Employee, Tenant
from bookingbot.infrastructure.clock import FixedClock
from bookingbot.infrastructure.i18n.json_translator import JsonTranslator
from bookingbot.infrastructure.store.memory_repository import MemoryBookingRepository
from bookingbot.infrastructure.store.memory_store import MemoryConversationStore
from bookingbot.infrastructure.telegram.mock_platform import MockTelegramPlatform

LOCALES_DIR = Path(__file__).resolve().parents[1] / "bookingbot" / "locales"

# Monday 2030-01-07, 08:00 UTC. Lisbon is on UTC in winter, so local == UTC.
NOW = datetime(2030, 1, 7, 8, 0, tzinfo=timezone.utc)
LISBON = "Europe/Lisbon"
SUPPORTED_TIMEZONES = ["Europe/London", "Europe/Lisbon", "Europe/Kyiv"]
SUPPORTED_CURRENCIES = ["EUR", "USD", "UAH"]
DURATION_OPTIONS = [15, 30, 45, 60, 90]

OWNER_CHAT = 1001
CLIENT_CHAT = 2001
OTHER_CLIENT_CHAT = 2002
TENANT_ID = 1
EMPLOYEE_ID = 1
HAIRCUT_ID = 1  # 60 minutes
TRIM_ID = 2  # 30 minutes


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def repository() -> MemoryBookingRepository:
    """One tenant with one employee working Mon-Fri 09:00-17:00 Lisbon, lunch 12:00-13:00."""
    repo = MemoryBookingRepository()
    repo.add_tenant(
        Tenant(id=TENANT_ID, name="Studio Lumen", owner_chat_id=OWNER_CHAT, latitude=38.7223, longitude=-9.1393)
    )
    repo.add_employee(Employee(id=EMPLOYEE_ID, tenant_id=TENANT_ID, name="Ana"))
    repo.add_service(
        Service(id=HAIRCUT_ID, employee_id=EMPLOYEE_ID, name="Haircut", duration=timedelta(minutes=60), price=Decimal("25.00"))
    )
    repo.add_service(
        Service(id=TRIM_ID, employee_id=EMPLOYEE_ID, name="Beard trim", duration=timedelta(minutes=30), price=Decimal("12.50"))
    )
    for day_of_week in range(5):
        repo.save_work_interval(
            WorkInterval(employee_id=EMPLOYEE_ID, day_of_week=day_of_week, start=time(9), end=time(17), timezone=LISBON)
        )
        repo.add_break(EMPLOYEE_ID, day_of_week, time(12), time(13))
    repo.invite_client(CLIENT_CHAT, TENANT_ID)
    repo.invite_client(OTHER_CLIENT_CHAT, TENANT_ID)
    return repo


@pytest.fixture
def translator() -> JsonTranslator:
    return JsonTranslator(LOCALES_DIR, default_language="EN")


@pytest.fixture
def platform() -> MockTelegramPlatform:
    return MockTelegramPlatform()


@pytest.fixture
def store(clock: FixedClock) -> MemoryConversationStore:
    return MemoryConversationStore(clock=clock, ttl=timedelta(minutes=60))


@pytest.fixture
def reply(platform, translator, repository) -> SendReplyUseCase:
    return SendReplyUseCase(platform=platform, translator=translator, repository=repository)


@pytest.fixture
def lifecycle(repository, reply) -> AppointmentLifecycleUseCase:
    return AppointmentLifecycleUseCase(repository=repository, reply=reply, default_timezone=LISBON)


@pytest.fixture
def build_bot(repository, reply, clock, lifecycle, platform):
    def build(store: ConversationStorePort) -> HandleIncomingEventUseCase:
        return HandleIncomingEventUseCase(
            store=store,
            reply=reply,
            client_booking=ClientBookingUseCase(
                repository=repository,
                store=store,
                reply=reply,
                clock=clock,
                granularity=timedelta(minutes=30),
                default_timezone=LISBON,
            ),
            work_schedule=WorkScheduleUseCase(
                repository=repository,
                store=store,
                reply=reply,
                default_timezone=LISBON,
                supported_timezones=SUPPORTED_TIMEZONES,
                default_start=time(9),
                default_end=time(17),
            ),
            client_settings=ClientSettingsUseCase(
                repository=repository,
                reply=reply,
                clock=clock,
                default_timezone=LISBON,
                supported_timezones=SUPPORTED_TIMEZONES,
            ),
            lifecycle=lifecycle,
            tenant_profile=TenantProfileUseCase(
                repository=repository,
                store=store,
                reply=reply,
                platform=platform,
                supported_currencies=SUPPORTED_CURRENCIES,
                duration_options=DURATION_OPTIONS,
            ),
        )

    return build


@pytest.fixture
def bot(build_bot, store) -> HandleIncomingEventUseCase:
    return build_bot(store)


@pytest.fixture
def press(bot, platform):
    """Press a button on the chat's latest message, the way Telegram reports it."""

    def _press(chat_id: int, callback_data: str, sender_name: str | None = "Maria") -> None:
        last = platform.last_for(chat_id)
        bot.on_callback(chat_id, callback_data, message_id=last.message_id if last else None, sender_name=sender_name)

    return _press
