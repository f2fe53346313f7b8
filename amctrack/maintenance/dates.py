"""
Derived dates for maintenance records.

Year arithmetic uses `dateutil.relativedelta`, which clamps to the last
valid day of the target month: 2024-02-29 plus one year is 2025-02-28,
plus four years is 2028-02-29.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from amctrack.base.clock import system_clock
from amctrack.base.errors import InvalidInputError

logger = logging.getLogger(__name__)

AMC_TERM = relativedelta(years=1)

# Day residue of equipment_age is taken modulo this, not a true calendar count.
_AGE_DAY_MODULUS = 30


def parse_iso_date(value: date | str) -> date:
    """Accept a `date` or a `yyyy-MM-dd` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidInputError(f"Not a valid calendar date: {value!r}")


def warranty_end_date(installation_date: date | str, warranty_years: int) -> date:
    """Installation date plus `warranty_years` whole calendar years."""
    installed = parse_iso_date(installation_date)
    if (
        isinstance(warranty_years, bool)
        or not isinstance(warranty_years, int)
        or warranty_years < 1
    ):
        raise InvalidInputError(
            f"Warranty duration must be a positive number of years: {warranty_years!r}"
        )
    try:
        return installed + relativedelta(years=warranty_years)
    except (OverflowError, ValueError) as e:
        raise InvalidInputError(f"Warranty end date out of range: {e}") from e


def amc_end_date(amc_start_date: date | str | None) -> date | None:
    if amc_start_date is None or amc_start_date == "":
        return None
    start = parse_iso_date(amc_start_date)
    try:
        return start + AMC_TERM
    except (OverflowError, ValueError) as e:
        raise InvalidInputError(f"AMC end date out of range: {e}") from e


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


@dataclass(frozen=True)
class EquipmentAge:
    years: int
    months: int
    days: int

    def __str__(self) -> str:
        return " ".join(
            (
                _plural(self.years, "year"),
                _plural(self.months, "month"),
                _plural(self.days, "day"),
            )
        )


ZERO_AGE = EquipmentAge(0, 0, 0)


def _as_of_or_today(as_of: date | str | None) -> date:
    if as_of is None:
        return system_clock.today()
    return parse_iso_date(as_of)


def equipment_age(
    installation_date: date | str, as_of: date | str | None = None
) -> EquipmentAge:
    """
    Elapsed time since installation as whole years, months and days.

    `years` and `months` are exact calendar differences. `days` is the day
    count between `as_of` and the installation anniversary in year `years`,
    reduced modulo 30. That residue is an approximation kept for display
    compatibility; it is not the true number of days past the last whole
    month and must not be used for date math.

    `as_of` defaults to today on the system clock.

    Raises InvalidInputError when `as_of` precedes the installation date.
    """
    installed = parse_iso_date(installation_date)
    today = _as_of_or_today(as_of)
    if today < installed:
        raise InvalidInputError(
            f"Installation date {installed.isoformat()} is after {today.isoformat()}"
        )

    delta = relativedelta(today, installed)
    anniversary = installed + relativedelta(years=delta.years)
    days = (today - anniversary).days % _AGE_DAY_MODULUS
    return EquipmentAge(years=delta.years, months=delta.months, days=days)


def format_equipment_age(
    installation_date: date | str | None, as_of: date | str | None = None
) -> str:
    """
    Display form of `equipment_age`.

    Missing installation dates render as an empty string. Installation dates
    in the future are shown as a zero age and logged, never as a negative one.
    """
    if installation_date is None or installation_date == "":
        return ""
    as_of = _as_of_or_today(as_of)
    try:
        return str(equipment_age(installation_date, as_of))
    except InvalidInputError:
        if parse_iso_date(installation_date) > parse_iso_date(as_of):
            logger.warning(
                "Installation date %s is in the future; showing zero age",
                installation_date,
            )
            return str(ZERO_AGE)
        raise
