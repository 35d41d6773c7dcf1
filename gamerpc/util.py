"""Helpers for the string-encoded numbers and timestamps used on the wire."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, TypeVar

from gamerpc.types import ProtocolError

T = TypeVar("T")

_SIGNED = re.compile(r"[+-]?[0-9]+")
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_i64(text: str) -> int:
    if not _SIGNED.fullmatch(text):
        raise ValueError(f"invalid digit found in {text!r}")
    value = int(text)
    if not _I64_MIN <= value <= _I64_MAX:
        raise ValueError(f"number out of range for i64: {text!r}")
    return value


def timestamp(millis: int) -> datetime:
    """Convert milliseconds since the Unix epoch to a UTC datetime."""
    return _UNIX_EPOCH + timedelta(milliseconds=millis)


def parse_timestamp(value: Any) -> datetime | None:
    """Decode an optional timestamp sent as a string of Unix milliseconds."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ProtocolError("expected a timestamp string")
    try:
        millis = _parse_i64(value)
    except ValueError as exc:
        raise ProtocolError(str(exc)) from exc
    try:
        return timestamp(millis)
    except OverflowError as exc:
        raise ProtocolError(f"timestamp out of range: {value}") from exc


def format_timestamp(value: datetime | None) -> str | None:
    """Encode an optional datetime as a string of Unix milliseconds."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _UNIX_EPOCH
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    millis = abs(micros) // 1000
    return str(millis if micros >= 0 else -millis)


def parse_string(value: Any, parser: Callable[[str], T]) -> T:
    """Parse a value that is sent as a string using ``parser``."""
    if not isinstance(value, str):
        raise ProtocolError("expected a string")
    try:
        return parser(value)
    except (ValueError, TypeError) as exc:
        raise ProtocolError(str(exc)) from exc


def parse_string_opt(value: Any, parser: Callable[[str], T]) -> T | None:
    """Like :func:`parse_string`, but ``None`` passes through."""
    if value is None:
        return None
    return parse_string(value, parser)