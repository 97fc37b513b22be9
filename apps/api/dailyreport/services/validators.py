import re
from datetime import date, time
from typing import Optional

VISIT_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# 03-1234-5678, 090-1234-5678, 0312345678 ...
PHONE_RE = re.compile(r"^(0\d{1,4}-?\d{1,4}-?\d{4}|0\d{9,10})$")


def parse_visit_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    if not VISIT_TIME_RE.match(value):
        raise ValueError("visit_time must be in HH:MM format")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_visit_time(value: Optional[time]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%H:%M")


def validate_report_date(report_date: date, today: Optional[date] = None) -> None:
    today = today or date.today()
    if report_date > today:
        raise ValueError("report_date cannot be in the future")


def validate_phone(value: Optional[str]) -> Optional[str]:
    if value and not PHONE_RE.match(value):
        raise ValueError("Invalid phone number format (e.g. 03-1234-5678, 090-1234-5678)")
    return value
