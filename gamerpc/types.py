"""Core wire types shared across the RPC protocol."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

DISCORD_EPOCH_MS = 1420070400000
"""Milliseconds between the Unix epoch and the first second of 2015."""

U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1

_UNSIGNED = re.compile(r"\+?[0-9]+")
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ProtocolError(ValueError):
    """Raised when a payload does not have the shape the protocol requires."""


def parse_unsigned(text: str, bits: int = 64) -> int:
    """Parse a decimal unsigned integer that must fit in ``bits`` bits.

    Only ASCII digits with an optional leading ``+`` are accepted.
    """
    if not isinstance(text, str) or not _UNSIGNED.fullmatch(text):
        raise ValueError(f"invalid digit found in {text!r}")
    value = int(text)
    if value >= 1 << bits:
        raise ValueError(f"number too large to fit in target type: {text!r}")
    return value


def expect_mapping(data: Any, what: str) -> Mapping[str, Any]:
    """Return ``data`` if it is a JSON object, else raise ProtocolError."""
    if not isinstance(data, Mapping):
        raise ProtocolError(f"expected an object for {what}, got {type(data).__name__}")
    return data


def require_str(data: Mapping[str, Any], key: str) -> str:
    """Fetch a required string field from a JSON object."""
    if key not in data:
        raise ProtocolError(f"missing field '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise ProtocolError(f"field '{key}' must be a string")
    return value


def optional_u32(data: Mapping[str, Any], key: str) -> int | None:
    """Fetch an optional unsigned 32-bit integer field from a JSON object."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U32_MAX:
        raise ProtocolError(f"field '{key}' must be an unsigned 32-bit integer")
    return value


@dataclass(frozen=True, order=True)
class Snowflake:
    """A unique 64-bit identifier that also encodes its creation time."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("snowflake value must be an integer")
        if not 0 <= self.value <= U64_MAX:
            raise ValueError(f"snowflake value out of range: {self.value}")

    def timestamp(self) -> datetime:
        """The UTC time at which this identifier was created."""
        millis = (self.value >> 22) + DISCORD_EPOCH_MS
        return _UNIX_EPOCH + timedelta(milliseconds=millis)

    @classmethod
    def parse(cls, text: str) -> Snowflake:
        """Parse a snowflake from its decimal string form."""
        return cls(parse_unsigned(text))

    @classmethod
    def from_json(cls, value: Any) -> Snowflake:
        """Accept a snowflake given either as a number or as a string."""
        if isinstance(value, bool):
            raise ProtocolError("expected a u64 integer either as a number or a string")
        if isinstance(value, int):
            if not 0 <= value <= U64_MAX:
                raise ProtocolError(f"integer out of range for u64: {value}")
            return cls(value)
        if isinstance(value, str):
            try:
                return cls.parse(value)
            except ValueError as exc:
                raise ProtocolError(f"failed to parse u64: {exc}") from exc
        raise ProtocolError("expected a u64 integer either as a number or a string")

    def to_json(self) -> str:
        return str(self.value)

    def __str__(self) -> str:
        return str(self.value)

    def __int__(self) -> int:
        return self.value


ChannelId = Snowflake
MessageId = Snowflake


@dataclass(frozen=True)
class Environment:
    """The build environment reported by the client; ``other`` is None for production."""

    other: str | None = None

    @property
    def is_production(self) -> bool:
        return self.other is None

    @classmethod
    def from_json(cls, value: Any) -> Environment:
        if value == "production":
            return cls()
        if isinstance(value, Mapping) and len(value) == 1 and "other" in value:
            other = value["other"]
            if not isinstance(other, str):
                raise ProtocolError("environment 'other' must be a string")
            return cls(other)
        raise ProtocolError(f"unknown environment {value!r}")

    def to_json(self) -> Any:
        if self.other is None:
            return "production"
        return {"other": self.other}


@dataclass
class DiscordConfig:
    """Configuration sent by the client when the connection is established."""

    cdn_host: str
    environment: Environment
    api_endpoint: str

    @classmethod
    def from_json(cls, data: Any) -> DiscordConfig:
        data = expect_mapping(data, "config")
        if "environment" not in data:
            raise ProtocolError("missing field 'environment'")
        return cls(
            cdn_host=require_str(data, "cdn_host"),
            environment=Environment.from_json(data["environment"]),
            api_endpoint=require_str(data, "api_endpoint"),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "cdn_host": self.cdn_host,
            "environment": self.environment.to_json(),
            "api_endpoint": self.api_endpoint,
        }


@dataclass
class ErrorPayload:
    """An error reported by the client."""

    code: int | None = None
    message: str | None = None

    @classmethod
    def from_json(cls, data: Any) -> ErrorPayload:
        data = expect_mapping(data, "error payload")
        message = data.get("message")
        if message is not None and not isinstance(message, str):
            raise ProtocolError("field 'message' must be a string")
        return cls(code=optional_u32(data, "code"), message=message)

    def to_json(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}