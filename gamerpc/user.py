"""Users and the user-related events."""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass, field
from typing import Any

from gamerpc.types import (
    U32_MAX,
    DiscordConfig,
    ProtocolError,
    Snowflake,
    expect_mapping,
    parse_unsigned,
)

log = logging.getLogger(__name__)

UserId = Snowflake

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class Avatar:
    """The MD5 hash of a user's avatar."""

    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != 16:
            raise ValueError("avatar digest must be 16 bytes")

    @classmethod
    def parse(cls, text: str) -> Avatar | None:
        """Decode a hex avatar hash, optionally prefixed with ``a_``; None if invalid."""
        hex_text = text.removeprefix("a_")
        if len(hex_text) != 32:
            return None
        for char in hex_text:
            if char not in _HEX_DIGITS:
                log.debug("invalid character '%s' found in avatar", char)
                return None
        return cls(bytes.fromhex(hex_text))

    def hex(self) -> str:
        return self.digest.hex()


@dataclass
class User:
    """A user account."""

    id: UserId
    username: str
    discriminator: int | None = None
    avatar: Avatar | None = field(default=None, repr=False)
    is_bot: bool = field(default=False, repr=False)

    def __str__(self) -> str:
        if self.discriminator is None:
            return self.username
        return f"{self.username}#{self.discriminator}"

    @classmethod
    def from_json(cls, data: Any) -> User:
        data = expect_mapping(data, "user")

        raw_id = data.get("id")
        if raw_id is None:
            raise ProtocolError("missing field 'id'")
        user_id = Snowflake.from_json(raw_id)

        username = data.get("username")
        if username is None:
            raise ProtocolError("missing field 'username'")
        if not isinstance(username, str):
            raise ProtocolError("field 'username' must be a string")

        discriminator = None
        raw_disc = data.get("discriminator")
        if raw_disc is not None:
            if not isinstance(raw_disc, str):
                raise ProtocolError("field 'discriminator' must be a string")
            try:
                discriminator = parse_unsigned(raw_disc, 32)
            except ValueError as exc:
                raise ProtocolError("invalid field 'discriminator'") from exc

        raw_avatar = data.get("avatar")
        if raw_avatar is not None and not isinstance(raw_avatar, str):
            raise ProtocolError("field 'avatar' must be a string")
        avatar = Avatar.parse(raw_avatar) if raw_avatar is not None else None

        bot = data.get("bot")
        if bot is None:
            bot = False
        elif not isinstance(bot, bool):
            raise ProtocolError("field 'bot' must be a boolean")

        return cls(
            id=user_id,
            username=username,
            discriminator=discriminator,
            avatar=avatar,
            is_bot=bot,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id.to_json(),
            "username": self.username,
            "discriminator": str(self.discriminator or 0),
            "avatar": self.avatar.hex() if self.avatar is not None else None,
            "bot": self.is_bot,
        }


@dataclass
class ConnectEvent:
    """Sent once the handshake completes; holds the logged-in user."""

    version: int
    config: DiscordConfig
    user: User

    @classmethod
    def from_json(cls, data: Any) -> ConnectEvent:
        data = expect_mapping(data, "ready event")
        for key in ("v", "config", "user"):
            if key not in data:
                raise ProtocolError(f"missing field '{key}'")
        version = data["v"]
        if isinstance(version, bool) or not isinstance(version, int) or not 0 <= version <= U32_MAX:
            raise ProtocolError("field 'v' must be an unsigned 32-bit integer")
        return cls(
            version=version,
            config=DiscordConfig.from_json(data["config"]),
            user=User.from_json(data["user"]),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "v": self.version,
            "config": self.config.to_json(),
            "user": self.user.to_json(),
        }


@dataclass
class UpdateEvent:
    """Fired when details of the logged-in user change."""

    user: User

    @classmethod
    def from_json(cls, data: Any) -> UpdateEvent:
        return cls(User.from_json(data))

    def to_json(self) -> dict[str, Any]:
        return self.user.to_json()