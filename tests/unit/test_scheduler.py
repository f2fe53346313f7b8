import logging
from collections.abc import Generator
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from amctrack.base.clock import FixedClock
from amctrack.base.errors import DispatchFailure, QueryFailure
from amctrack.customer.models import Customer
from amctrack.equipment.models import Equipment
from amctrack.maintenance.models import MaintenanceRecord, ServiceStatus
from amctrack.reminder.composer import ReminderMessage
from amctrack.reminder.executor import DueReminder
from amctrack.reminder.mail import MailSender
from amctrack.scheduler import REMINDER_HORIZONS, run_amc_reminder_scan

TODAY = date(2026, 10, 19)


def _due(target: date, count: int = 1) -> list[DueReminder]:
    return [
        DueReminder(
            record_id=uuid4(),
            customer_email=f"hospital-{i}@example.com",
            customer_name=f"Hospital {i}",
            equipment_name="Hematology Analyzer",
            amc_end_date=target,
        )
        for i in range(count)
    ]


@pytest.fixture
def mailer() -> AsyncMock:
    return AsyncMock(spec=MailSender)


@pytest.fixture
def fake_session() -> Generator[MagicMock]:
    with patch("amctrack.scheduler.async_session", MagicMock()) as factory:
        yield factory


class TestRunAmcReminderScan:
    async def test_queries_each_horizon(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        fetch = AsyncMock(return_value=[])

        with patch("amctrack.scheduler.get_due_reminders", fetch):
            report = await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        targets = {c.args[1] for c in fetch.await_args_list}
        assert targets == {TODAY + timedelta(days=h) for h in REMINDER_HORIZONS}
        assert report.attempted == 0
        mailer.send.assert_not_awaited()

    async def test_subject_uses_matching_horizon(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        target = TODAY + timedelta(days=15)

        async def fetch(session: object, day: date) -> list[DueReminder]:
            return _due(day) if day == target else []

        with patch("amctrack.scheduler.get_due_reminders", side_effect=fetch):
            report = await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        mailer.send.assert_awaited_once()
        message: ReminderMessage = mailer.send.await_args.args[0]
        assert message.subject == "AMC Renewal Reminder - 15 days remaining"
        assert target.isoformat() in message.body
        assert [h for h, _ in report.sent] == [15]

    async def test_dispatch_failure_does_not_stop_remaining_matches(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        target = TODAY + timedelta(days=5)
        due = _due(target, count=3)
        mailer.send.side_effect = [None, DispatchFailure("mailbox full"), None]

        async def fetch(session: object, day: date) -> list[DueReminder]:
            return due if day == target else []

        with patch("amctrack.scheduler.get_due_reminders", side_effect=fetch):
            report = await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        assert mailer.send.await_count == 3
        assert report.sent == [(5, due[0].record_id), (5, due[2].record_id)]
        assert report.failed_dispatches == [(5, due[1].record_id)]

    async def test_query_failure_skips_only_that_horizon(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        failing = TODAY + timedelta(days=30)

        async def fetch(session: object, day: date) -> list[DueReminder]:
            if day == failing:
                raise QueryFailure("connection reset")
            return _due(day)

        with patch("amctrack.scheduler.get_due_reminders", side_effect=fetch):
            report = await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        assert report.failed_horizons == [30]
        assert sorted(h for h, _ in report.sent) == [5, 15]
        assert mailer.send.await_count == 2

    async def test_rerun_same_day_sends_again(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        due = _due(TODAY + timedelta(days=30))

        async def fetch(session: object, day: date) -> list[DueReminder]:
            return due if day == TODAY + timedelta(days=30) else []

        with patch("amctrack.scheduler.get_due_reminders", side_effect=fetch):
            await run_amc_reminder_scan(FixedClock(TODAY), mailer)
            await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        assert mailer.send.await_count == 2

    async def test_builds_mail_sender_when_not_given(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        with (
            patch("amctrack.scheduler.get_due_reminders", AsyncMock(return_value=[])),
            patch(
                "amctrack.scheduler.create_mail_sender", return_value=mailer
            ) as create,
        ):
            await run_amc_reminder_scan(FixedClock(TODAY))

        create.assert_called_once()

    async def test_compose_failure_does_not_stop_remaining_matches(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        target = TODAY + timedelta(days=5)
        due = _due(target, count=2)
        compose = MagicMock(
            side_effect=[ValueError("bad address"), MagicMock(spec=ReminderMessage)]
        )

        async def fetch(session: object, day: date) -> list[DueReminder]:
            return due if day == target else []

        with (
            patch("amctrack.scheduler.get_due_reminders", side_effect=fetch),
            patch("amctrack.scheduler.compose_amc_reminder", compose),
        ):
            report = await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        assert report.failed_dispatches == [(5, due[0].record_id)]
        assert report.sent == [(5, due[1].record_id)]
        mailer.send.assert_awaited_once()

    async def test_warns_when_staff_list_is_empty(
        self,
        fake_session: MagicMock,
        mailer: AsyncMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with (
            patch("amctrack.scheduler.get_due_reminders", AsyncMock(return_value=[])),
            patch("amctrack.scheduler.STAFF_EMAILS", ()),
            caplog.at_level(logging.WARNING, logger="amctrack.scheduler"),
        ):
            await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        assert "AMCTRACK_STAFF_EMAILS is empty" in caplog.text

    async def test_staff_list_is_copied_on_every_reminder(
        self, fake_session: MagicMock, mailer: AsyncMock
    ) -> None:
        target = TODAY + timedelta(days=30)

        async def fetch(session: object, day: date) -> list[DueReminder]:
            return _due(day) if day == target else []

        with (
            patch("amctrack.scheduler.get_due_reminders", side_effect=fetch),
            patch("amctrack.scheduler.STAFF_EMAILS", ("service@company.example",)),
        ):
            await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        message: ReminderMessage = mailer.send.await_args.args[0]
        assert message.recipients == (
            "hospital-0@example.com",
            "service@company.example",
        )


async def _make_record(
    session: AsyncSession, *, amc_start_date: date | None
) -> MaintenanceRecord:
    customer = Customer(hospital_name="City Hospital", email="biomed@city.example")
    equipment = Equipment(name="Hematology Analyzer", model_number="HA-500")
    session.add_all([customer, equipment])
    await session.flush()
    record = MaintenanceRecord(
        customer_id=customer.id,
        equipment_id=equipment.id,
        serial_no=f"SN-{uuid4().hex[:8]}",
        installation_date=date(2022, 3, 1),
        warranty_years=2,
        service_status=ServiceStatus.AMC,
        amc_start_date=amc_start_date,
        invoice_amount=Decimal("1200.00"),
        responsibility="Field team",
    )
    session.add(record)
    await session.flush()
    return record


@pytest.fixture
def test_session_factory(
    db_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False)


class TestRunAmcReminderScanAgainstStore:
    async def test_only_exact_horizon_match_is_reminded(
        self,
        db_session: AsyncSession,
        test_session_factory: async_sessionmaker[AsyncSession],
        mailer: AsyncMock,
    ) -> None:
        # AMC end dates: today + 30 and today + 31.
        due = await _make_record(db_session, amc_start_date=date(2025, 11, 18))
        await _make_record(db_session, amc_start_date=date(2025, 11, 19))
        await _make_record(db_session, amc_start_date=None)
        await db_session.commit()

        with patch("amctrack.scheduler.async_session", test_session_factory):
            report = await run_amc_reminder_scan(FixedClock(TODAY), mailer)

        assert report.sent == [(30, due.id)]
        mailer.send.assert_awaited_once()
        message: ReminderMessage = mailer.send.await_args.args[0]
        assert message.recipients[0] == "biomed@city.example"
        assert "2026-11-18" in message.body
