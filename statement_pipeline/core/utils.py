"""Shared utility functions for the statement pipeline."""

import datetime as dt
import logging
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import colorlog

ROOT_LOGGER_NAME = "statement-pipeline"


def get_logger(name: str) -> logging.Logger:
    """Get a project logger; the colorized handler lives on the service root logger only."""
    logger = logging.getLogger(name)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
    return logger


def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount (e.g. 45.20) to integer minor units (4520), rounding half up."""
    try:
        return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, OverflowError) as exc:
        msg = f"Not a monetary amount: {amount!r}"
        raise ValueError(msg) from exc


MAX_MINOR_UNITS = 2**63 - 1


def is_storable_amount(amount: float) -> bool:
    """True when the amount is finite and its minor units fit a 64-bit integer column."""
    if not math.isfinite(amount) or abs(amount) * 100 > MAX_MINOR_UNITS:
        return False
    return abs(to_minor_units(amount)) <= MAX_MINOR_UNITS


def to_major_units(amount_minor: int) -> float:
    """Convert integer minor units back to a major-unit float."""
    return amount_minor / 100


def round_whole(value: float) -> int:
    """Round a major-unit amount to whole currency units, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def add_months(day: dt.date, months: int) -> dt.date:
    """Shift a date by a number of calendar months, clamping the day to the target month's length."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    next_month_start = dt.date(year + month // 12, month % 12 + 1, 1)
    last_day = (next_month_start - dt.timedelta(days=1)).day
    return dt.date(year, month, min(day.day, last_day))


def month_start(day: dt.date) -> dt.date:
    """Return the first day of the month containing ``day``."""
    return day.replace(day=1)


MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_label(month: int) -> str:
    """Short English month name, independent of the process locale."""
    return MONTH_LABELS[month - 1]
