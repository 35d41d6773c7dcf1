"""The in-app overlay: visibility, invite modals and overlay update events."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from gamerpc.types import ProtocolError, expect_mapping

_SCHEME = "https://"


class Visibility(Enum):
    """Whether the overlay is shown; on the wire it is the inverse "locked" flag."""

    VISIBLE = "visible"
    HIDDEN = "hidden"

    @classmethod
    def from_json(cls, value: Any) -> Visibility:
        if not isinstance(value, bool):
            raise ProtocolError("expected a boolean for overlay visibility")
        return cls.HIDDEN if value else cls.VISIBLE

    def to_json(self) -> bool:
        return self is not Visibility.VISIBLE


class InviteAction(IntEnum):
    """The kind of invite to send from the activity invite modal."""

    JOIN = 1
    SPECTATE = 2


@dataclass
class UpdateEvent:
    """Fired when the overlay is enabled or disabled, shown or hidden."""

    enabled: bool
    visible: Visibility

    @classmethod
    def from_json(cls, data: Any) -> UpdateEvent:
        data = expect_mapping(data, "overlay update")
        for key in ("enabled", "locked"):
            if key not in data:
                raise ProtocolError(f"missing field '{key}'")
        enabled = data["enabled"]
        if not isinstance(enabled, bool):
            raise ProtocolError("field 'enabled' must be a boolean")
        return cls(enabled=enabled, visible=Visibility.from_json(data["locked"]))

    def to_json(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "locked": self.visible.to_json()}


def _pid(pid: int | None) -> int:
    return os.getpid() if pid is None else pid


def overlay_toggle_args(visibility: Visibility, pid: int | None = None) -> dict[str, Any]:
    """Arguments for opening or closing the overlay in process ``pid`` (default: this one)."""
    return {"pid": _pid(pid), "locked": visibility.to_json()}


def activity_invite_args(action: InviteAction, pid: int | None = None) -> dict[str, Any]:
    """Arguments for opening the activity invite modal."""
    return {"pid": _pid(pid), "type": int(InviteAction(action))}


def guild_invite_code(code: str) -> str:
    """Extract the bare invite code from either a code or an invite link."""
    code = code.removeprefix(_SCHEME)
    return code.rsplit("/", 1)[-1]


def guild_invite_args(code: str, pid: int | None = None) -> dict[str, Any]:
    """Arguments for opening the guild invite modal; links are reduced to their code."""
    return {"pid": _pid(pid), "code": guild_invite_code(code)}


def pid_args(pid: int | None = None) -> dict[str, int]:
    """Arguments that only name the process the overlay should appear in."""
    return {"pid": _pid(pid)}