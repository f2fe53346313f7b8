import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from amctrack.base.clock import Clock, system_clock
from amctrack.base.db import async_session
from amctrack.reminder.composer import STAFF_EMAILS, compose_amc_reminder
from amctrack.reminder.executor import DueReminder, get_due_reminders
from amctrack.reminder.mail import MailSender, create_mail_sender

logger = logging.getLogger(__name__)

# Days before the AMC end date at which a reminder goes out.
REMINDER_HORIZONS: tuple[int, ...] = (30, 15, 5)


@dataclass
class ScanReport:
    run_date: date
    sent: list[tuple[int, UUID]] = field(default_factory=list)
    failed_dispatches: list[tuple[int, UUID]] = field(default_factory=list)
    failed_horizons: list[int] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.sent) + len(self.failed_dispatches)


async def run_amc_reminder_scan(
    clock: Clock = system_clock,
    mailer: MailSender | None = None,
    horizons: Sequence[int] = REMINDER_HORIZONS,
) -> ScanReport:
    """
    Email a renewal reminder for each AMC ending exactly `horizon` days out.

    Per horizon:
    1. Fetch due contracts → DTOs (short DB session)
    2. Compose and send one message per contract (no DB session open)

    A failed query skips its horizon, a failed send skips its contract; the
    run always visits every horizon. Nothing records what was already sent,
    so running twice on the same day sends every reminder twice.
    """
    today = clock.today()
    report = ScanReport(run_date=today)
    if mailer is None:
        mailer = create_mail_sender()
    if not STAFF_EMAILS:
        logger.warning(
            "AMCTRACK_STAFF_EMAILS is empty; reminders go to customers only"
        )

    for horizon in horizons:
        target = today + timedelta(days=horizon)

        try:
            async with async_session() as session:
                due: list[DueReminder] = await get_due_reminders(session, target)
        except Exception:
            report.failed_horizons.append(horizon)
            logger.exception("AMC reminder query for %s failed", target.isoformat())
            continue

        if due:
            logger.info(
                "%d AMC contracts end on %s (%d days)",
                len(due),
                target.isoformat(),
                horizon,
            )

        for reminder in due:
            try:
                message = compose_amc_reminder(
                    customer_email=reminder.customer_email,
                    customer_name=reminder.customer_name,
                    equipment_name=reminder.equipment_name,
                    days_remaining=horizon,
                    amc_end_date=reminder.amc_end_date,
                    staff_emails=STAFF_EMAILS,
                )
                await mailer.send(message)
            except Exception:
                report.failed_dispatches.append((horizon, reminder.record_id))
                logger.exception(
                    "Failed to send AMC reminder for record %s", reminder.record_id
                )
                continue
            report.sent.append((horizon, reminder.record_id))

    logger.info(
        "AMC reminder scan for %s: %d sent, %d failed, %d horizons skipped",
        today.isoformat(),
        len(report.sent),
        len(report.failed_dispatches),
        len(report.failed_horizons),
    )
    return report
