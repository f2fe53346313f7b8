from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date


def _parse_address_list(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


STAFF_EMAILS = _parse_address_list(os.environ.get("AMCTRACK_STAFF_EMAILS", ""))

COMPANY_SIGNATURE = os.environ.get("AMCTRACK_COMPANY_SIGNATURE", "Service Team")


@dataclass(frozen=True)
class ReminderMessage:
    recipients: tuple[str, ...]
    subject: str
    body: str


def _unique_recipients(addresses: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    result: list[str] = []
    for address in addresses:
        address = address.strip()
        if not address or address.lower() in seen:
            continue
        seen.add(address.lower())
        result.append(address)
    return tuple(result)


def compose_amc_reminder(
    customer_email: str,
    customer_name: str,
    equipment_name: str,
    days_remaining: int,
    amc_end_date: date,
    staff_emails: Iterable[str] = STAFF_EMAILS,
) -> ReminderMessage:
    """Renewal reminder for one contract, to the customer and the staff list."""
    end = amc_end_date.isoformat()
    body = (
        f"Dear {customer_name},\n\n"
        f"This is a reminder that your Annual Maintenance Contract (AMC) for "
        f"{equipment_name} will expire in {days_remaining} days on {end}.\n\n"
        "Please contact us to arrange the renewal of your AMC to ensure "
        "continued support and maintenance of your equipment.\n\n"
        f"Best regards,\n{COMPANY_SIGNATURE}\n"
    )
    return ReminderMessage(
        recipients=_unique_recipients([customer_email, *staff_emails]),
        subject=f"AMC Renewal Reminder - {days_remaining} days remaining",
        body=body,
    )
