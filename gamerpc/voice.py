"""Voice settings: input modes, the settings update event and its state."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from gamerpc.types import ProtocolError, Snowflake, expect_mapping
from gamerpc.user import UserId

VOICE_ACTIVITY = "VOICE_ACTIVITY"
PUSH_TO_TALK = "PUSH_TO_TALK"

MAX_USER_VOLUME = 200
"""The highest local volume for a user; 100 is the default."""


@dataclass(frozen=True)
class InputMode:
    """How the local user's voice is transmitted."""

    kind: str
    shortcut: str = ""

    def __post_init__(self) -> None:
        if self.kind not in (VOICE_ACTIVITY, PUSH_TO_TALK):
            raise ValueError(f"unknown input mode {self.kind!r}")

    @property
    def is_push_to_talk(self) -> bool:
        return self.kind == PUSH_TO_TALK

    @classmethod
    def voice_activity(cls) -> InputMode:
        return cls(VOICE_ACTIVITY)

    @classmethod
    def push_to_talk(cls, shortcut: str) -> InputMode:
        return cls(PUSH_TO_TALK, shortcut)

    @classmethod
    def from_json(cls, data: Any) -> InputMode:
        data = expect_mapping(data, "input mode")
        if "type" not in data:
            raise ProtocolError("missing field 'type'")
        kind = data["type"]
        if not isinstance(kind, str):
            raise ProtocolError("field 'type' must be a string")
        shortcut = data.get("shortcut")
        if shortcut is not None and not isinstance(shortcut, str):
            raise ProtocolError("field 'shortcut' must be a string")
        if kind == VOICE_ACTIVITY:
            return cls.voice_activity()
        if kind == PUSH_TO_TALK:
            return cls.push_to_talk(shortcut or "")
        raise ProtocolError(f"unknown variant '{kind}'")

    def to_json(self) -> dict[str, str]:
        if self.kind == VOICE_ACTIVITY:
            # The client rejects a missing or empty shortcut even here.
            return {"type": VOICE_ACTIVITY, "shortcut": "_"}
        return {"type": PUSH_TO_TALK, "shortcut": self.shortcut}


@dataclass
class VoiceSettingsSelf:
    """Mute and deafen settings for the local user."""

    self_mute: bool
    self_deaf: bool

    def to_json(self) -> dict[str, bool]:
        return {"self_mute": self.self_mute, "self_deaf": self.self_deaf}


def _require_bool(data: Any, key: str) -> bool:
    if key not in data:
        raise ProtocolError(f"missing field '{key}'")
    value = data[key]
    if not isinstance(value, bool):
        raise ProtocolError(f"field '{key}' must be a boolean")
    return value


def _u8(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise ProtocolError(f"{what} must be an unsigned 8-bit integer")
    return value


@dataclass
class VoiceSettingsUpdateEvent:
    """The full voice settings, sent whenever any of them change."""

    input_mode: InputMode | None = None
    local_mutes: list[UserId] = field(default_factory=list)
    local_volumes: dict[UserId, int] = field(default_factory=dict)
    self_mute: bool = False
    self_deaf: bool = False

    @classmethod
    def from_json(cls, data: Any) -> VoiceSettingsUpdateEvent:
        data = expect_mapping(data, "voice settings")

        raw_mode = data.get("input_mode")
        input_mode = InputMode.from_json(raw_mode) if raw_mode is not None else None

        if "local_mutes" not in data:
            raise ProtocolError("missing field 'local_mutes'")
        mutes = data["local_mutes"]
        if not isinstance(mutes, list):
            raise ProtocolError("field 'local_mutes' must be a list")

        if "local_volumes" not in data:
            raise ProtocolError("missing field 'local_volumes'")
        volumes = expect_mapping(data["local_volumes"], "local_volumes")
        parsed_volumes = {
            Snowflake.from_json(key): _u8(value, "local volume") for key, value in volumes.items()
        }

        return cls(
            input_mode=input_mode,
            local_mutes=[Snowflake.from_json(user) for user in mutes],
            local_volumes=dict(sorted(parsed_volumes.items())),
            self_mute=_require_bool(data, "self_mute"),
            self_deaf=_require_bool(data, "self_deaf"),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "input_mode": self.input_mode.to_json() if self.input_mode is not None else None,
            "local_mutes": [user.to_json() for user in self.local_mutes],
            "local_volumes": {
                user.to_json(): volume for user, volume in sorted(self.local_volumes.items())
            },
            "self_mute": self.self_mute,
            "self_deaf": self.self_deaf,
        }


class VoiceState:
    """The latest voice settings, replaced wholesale by each refresh."""

    def __init__(self, state: VoiceSettingsUpdateEvent | None = None) -> None:
        self._lock = threading.Lock()
        self._state = state if state is not None else VoiceSettingsUpdateEvent()

    @property
    def state(self) -> VoiceSettingsUpdateEvent:
        with self._lock:
            return self._state

    def on_refresh(self, event: VoiceSettingsUpdateEvent) -> None:
        with self._lock:
            self._state = event


def input_mode_args(input_mode: InputMode) -> dict[str, Any]:
    """Arguments for setting a new voice input mode."""
    return {"input_mode": input_mode.to_json()}


def user_mute_args(user: UserId, mute: bool) -> dict[str, Any]:
    """Arguments for locally muting or unmuting another user."""
    return {"user_id": user.to_json(), "mute": mute}


def user_volume_args(user: UserId, volume: int) -> dict[str, Any]:
    """Arguments for a user's local volume, capped at :data:`MAX_USER_VOLUME`."""
    if isinstance(volume, bool) or not isinstance(volume, int) or not 0 <= volume <= 255:
        raise ValueError(f"volume must be between 0 and 255, got {volume!r}")
    return {"user_id": user.to_json(), "volume": min(volume, MAX_USER_VOLUME)}