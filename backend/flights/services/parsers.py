"""Loose-input parsers for vendor scalars.

Every function here accepts whatever the upstream API happened to send
(str, int, float, None) and returns a usable value instead of raising.
"""
import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
STRICT_DMY_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")
AIRPORT_CODE_RE = re.compile(r"^[A-Za-z]{3}$")
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
PRICE_CHARS_RE = re.compile(r"[^0-9,.\-]")
COMMA_DECIMAL_RE = re.compile(r",\d{2}$")


def _is_blank(value):
    return value is None or (isinstance(value, str) and value.strip() == "")


def round_half_up(value, places=2):
    try:
        quantum = Decimal(1).scaleb(-places)
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError, TypeError):
        return 0.0


def convert_date_format(value):
    """DD/MM/YYYY (or D/M/YYYY) -> YYYY-MM-DD. Anything else comes back unchanged."""
    if _is_blank(value):
        return "" if value is None else value
    text = str(value).strip()
    if ISO_DATE_RE.match(text):
        return text

    parts = text.split("/")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return value
    day, month, year = parts
    if len(year) != 4 or len(day) > 2 or len(month) > 2:
        return value
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def format_time(value):
    """HHMM (possibly zero-stripped, possibly an int) -> HH:MM."""
    if _is_blank(value):
        return ""
    text = str(value).strip()
    if ":" in text:
        return text
    digits = re.sub(r"\D", "", text)
    if not digits:
        return ""
    if len(digits) > 4:
        digits = digits[-4:]
    padded = digits.zfill(4)
    return f"{padded[:2]}:{padded[2:]}"


def _normalize_separators(text):
    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if has_comma:
        if COMMA_DECIMAL_RE.search(text):
            whole, _, cents = text.rpartition(",")
            return f"{whole.replace(',', '')}.{cents}"
        return text.replace(",", "")
    if text.count(".") > 1:
        return text.replace(".", "")
    return text


def parse_price(value, fallback=0.0):
    if _is_blank(value):
        return 0.0
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return fallback
        return round_half_up(value)

    cleaned = PRICE_CHARS_RE.sub("", str(value).strip())
    if not cleaned:
        return fallback
    try:
        amount = Decimal(_normalize_separators(cleaned))
    except InvalidOperation:
        return fallback
    if not amount.is_finite():
        return fallback
    return round_half_up(amount)


def parse_int_safe(value, fallback=0):
    if _is_blank(value) or isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else fallback
    match = LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else fallback


def _parse_datetime(date_value, time_value):
    date_text = convert_date_format(date_value)
    time_text = format_time(time_value) or "00:00"
    return datetime.strptime(f"{date_text} {time_text}", "%Y-%m-%d %H:%M")


def minutes_between(departure_date, departure_time, arrival_date, arrival_time):
    """Signed minutes from departure to arrival.

    When both dates are the same and the arrival clock time is earlier, the
    arrival is taken to be on the next day.
    """
    try:
        departure = _parse_datetime(departure_date, departure_time)
        arrival = _parse_datetime(arrival_date, arrival_time)
    except (TypeError, ValueError):
        return 0

    minutes = int((arrival - departure).total_seconds() // 60)
    if minutes < 0 and departure.date() == arrival.date():
        minutes += 24 * 60
    return minutes


def format_duration(minutes):
    minutes = max(0, parse_int_safe(minutes, 0))
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def is_valid_airport_code(code):
    return isinstance(code, str) and bool(AIRPORT_CODE_RE.match(code))


def normalize_airport_code(code):
    if _is_blank(code):
        return ""
    return str(code).strip().upper()


def is_valid_date_format(value):
    return isinstance(value, str) and bool(STRICT_DMY_RE.match(value))


def parse_price_breakdown(value):
    """Parse "ADT~2~143.00~252.92~0.00~0.00~395.92~0,CHD~1~..." records."""
    if _is_blank(value) or not isinstance(value, str):
        return []

    entries = []
    for record in value.split(","):
        parts = record.strip().split("~")
        if len(parts) < 7:
            continue
        count = parse_int_safe(parts[1], 0)
        total = parse_price(parts[6], 0.0)
        entries.append(
            {
                "paxType": parts[0].strip().upper(),
                "count": count,
                "totalPrice": total,
                "pricePerPerson": round_half_up(total / max(count, 1)),
            }
        )
    return entries


def generate_child_ages(count):
    default_age = str(getattr(settings, "DEFAULT_CHILD_AGE", "9"))
    return [default_age] * max(0, parse_int_safe(count, 0))
