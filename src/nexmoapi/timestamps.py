"""Parsing of the timestamp strings found in provider callbacks.

Delivery receipts are not consistent about the ``message-timestamp`` format:
the documented form carries a signed UTC offset, but receipts have been seen
with an unsigned ``0000`` offset, with that offset preceded by two spaces,
and with no offset at all. Every layout without a signed offset is read as
UTC.
"""
import re
from datetime import datetime, timezone
from urllib.parse import unquote_plus, unquote_to_bytes

from nexmoapi.errors import InvalidFieldError, TimestampFormatError

# Zero instant, returned for empty timestamps
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

INBOUND_LAYOUT = "%Y-%m-%d %H:%M:%S"
SCTS_LAYOUT = "%y%m%d%H%M"

# Most to least strict.
MESSAGE_TIMESTAMP_LAYOUTS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S 0000",
    "%Y-%m-%d %H:%M:%S  0000",
    INBOUND_LAYOUT,
)

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _as_utc(parsed: datetime) -> datetime:
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_message_timestamp(value: str) -> datetime:
    if value == "":
        return ZERO_TIME

    for layout in MESSAGE_TIMESTAMP_LAYOUTS:
        try:
            parsed = datetime.strptime(value, layout)
        except ValueError:
            continue
        return _as_utc(parsed)

    raise TimestampFormatError(value)


def parse_scts(value: str) -> datetime:
    """Parse the compact ``yymmddHHMM`` service-centre timestamp."""
    if value == "":
        return ZERO_TIME
    try:
        return _as_utc(datetime.strptime(value, SCTS_LAYOUT))
    except ValueError:
        raise TimestampFormatError(value) from None


def parse_inbound_timestamp(value: str) -> datetime:
    # Inbound messages always carry a timestamp, so empty is an error here.
    try:
        return _as_utc(datetime.strptime(value, INBOUND_LAYOUT))
    except ValueError:
        raise TimestampFormatError(value) from None


def query_unescape(value: str, field: str = "value") -> str:
    if _BAD_ESCAPE.search(value):
        raise InvalidFieldError(field, value, "malformed percent-escape")
    return unquote_plus(value)


def query_unescape_bytes(value: str, field: str = "value") -> bytes:
    if _BAD_ESCAPE.search(value):
        raise InvalidFieldError(field, value, "malformed percent-escape")
    return unquote_to_bytes(value.replace("+", " "))
