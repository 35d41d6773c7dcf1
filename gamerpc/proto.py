"""RPC command and event kinds, outgoing RPC frames and command responses."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from gamerpc.types import ProtocolError, expect_mapping, parse_unsigned
from gamerpc.util import parse_string


class CommandKind(str, Enum):
    """The RPC command types, valued by their wire names."""

    DISPATCH = "DISPATCH"

    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"

    SET_ACTIVITY = "SET_ACTIVITY"
    SEND_ACTIVITY_JOIN_INVITE = "SEND_ACTIVITY_JOIN_INVITE"
    CLOSE_ACTIVITY_JOIN_REQUEST = "CLOSE_ACTIVITY_JOIN_REQUEST"
    ACTIVITY_INVITE_USER = "ACTIVITY_INVITE_USER"
    ACCEPT_ACTIVITY_INVITE = "ACCEPT_ACTIVITY_INVITE"

    CREATE_LOBBY = "CREATE_LOBBY"
    UPDATE_LOBBY = "UPDATE_LOBBY"
    SEARCH_LOBBIES = "SEARCH_LOBBIES"
    DELETE_LOBBY = "DELETE_LOBBY"
    CONNECT_TO_LOBBY = "CONNECT_TO_LOBBY"
    DISCONNECT_FROM_LOBBY = "DISCONNECT_FROM_LOBBY"
    SEND_TO_LOBBY = "SEND_TO_LOBBY"
    CONNECT_TO_LOBBY_VOICE = "CONNECT_TO_LOBBY_VOICE"
    DISCONNECT_FROM_LOBBY_VOICE = "DISCONNECT_FROM_LOBBY_VOICE"
    UPDATE_LOBBY_MEMBER = "UPDATE_LOBBY_MEMBER"

    SET_OVERLAY_VISIBILITY = "SET_OVERLAY_LOCKED"
    OPEN_OVERLAY_ACTIVITY_INVITE = "OPEN_OVERLAY_ACTIVITY_INVITE"
    OPEN_OVERLAY_GUILD_INVITE = "OPEN_OVERLAY_GUILD_INVITE"
    OPEN_OVERLAY_VOICE_SETTINGS = "OPEN_OVERLAY_VOICE_SETTINGS"

    GET_RELATIONSHIPS = "GET_RELATIONSHIPS"

    SET_VOICE_SETTINGS = "SET_VOICE_SETTINGS_2"
    SET_USER_VOICE_SETTINGS = "SET_USER_VOICE_SETTINGS_2"


class EventKind(str, Enum):
    """The event types sent by the client, valued by their wire names."""

    READY = "READY"
    ERROR = "ERROR"

    CURRENT_USER_UPDATE = "CURRENT_USER_UPDATE"

    ACTIVITY_JOIN_REQUEST = "ACTIVITY_JOIN_REQUEST"
    ACTIVITY_JOIN = "ACTIVITY_JOIN"
    ACTIVITY_SPECTATE = "ACTIVITY_SPECTATE"
    ACTIVITY_INVITE = "ACTIVITY_INVITE"

    LOBBY_UPDATE = "LOBBY_UPDATE"
    LOBBY_DELETE = "LOBBY_DELETE"
    LOBBY_MEMBER_CONNECT = "LOBBY_MEMBER_CONNECT"
    LOBBY_MEMBER_UPDATE = "LOBBY_MEMBER_UPDATE"
    LOBBY_MEMBER_DISCONNECT = "LOBBY_MEMBER_DISCONNECT"
    LOBBY_MESSAGE = "LOBBY_MESSAGE"
    SPEAKING_START = "SPEAKING_START"
    SPEAKING_STOP = "SPEAKING_STOP"

    OVERLAY_UPDATE = "OVERLAY_UPDATE"

    RELATIONSHIP_UPDATE = "RELATIONSHIP_UPDATE"

    VOICE_SETTINGS_UPDATE = "VOICE_SETTINGS_UPDATE_2"


def _to_json(value: Any) -> Any:
    to_json = getattr(value, "to_json", None)
    return to_json() if callable(to_json) else value


@dataclass
class Rpc:
    """An RPC sent to the client.

    ``evt`` is only used by (un)subscribe requests, ``args`` by all others;
    either is left out of the frame when it is None.
    """

    cmd: CommandKind
    nonce: str
    evt: EventKind | None = None
    args: Any = None

    def to_json(self) -> dict[str, Any]:
        frame: dict[str, Any] = {"cmd": self.cmd.value, "nonce": str(self.nonce)}
        if self.evt is not None:
            frame["evt"] = self.evt.value
        if self.args is not None:
            frame["args"] = _to_json(self.args)
        return frame

    def dumps(self) -> str:
        """The frame as compact JSON text."""
        return json.dumps(self.to_json(), separators=(",", ":"))


@dataclass
class CommandFrame:
    """A response to an RPC we sent, matched to it by ``nonce``."""

    kind: CommandKind
    nonce: int
    data: Any = None
    event: EventKind | None = None


_UNIT = "unit"
_OBJECT = "object"
_LIST = "list"
_OPTIONAL_OBJECT = "optional_object"
_SUBSCRIBE = "subscribe"
_RELATIONSHIPS = "relationships"

_RESPONSE_SHAPES: dict[CommandKind, str] = {
    CommandKind.SUBSCRIBE: _SUBSCRIBE,
    CommandKind.CREATE_LOBBY: _OBJECT,
    CommandKind.UPDATE_LOBBY: _UNIT,
    CommandKind.SEARCH_LOBBIES: _LIST,
    CommandKind.DELETE_LOBBY: _UNIT,
    CommandKind.CONNECT_TO_LOBBY: _OBJECT,
    CommandKind.DISCONNECT_FROM_LOBBY: _UNIT,
    CommandKind.SEND_TO_LOBBY: _UNIT,
    CommandKind.CONNECT_TO_LOBBY_VOICE: _UNIT,
    CommandKind.DISCONNECT_FROM_LOBBY_VOICE: _UNIT,
    CommandKind.UPDATE_LOBBY_MEMBER: _UNIT,
    CommandKind.SET_ACTIVITY: _OPTIONAL_OBJECT,
    CommandKind.ACTIVITY_INVITE_USER: _UNIT,
    CommandKind.ACCEPT_ACTIVITY_INVITE: _UNIT,
    CommandKind.SEND_ACTIVITY_JOIN_INVITE: _UNIT,
    CommandKind.CLOSE_ACTIVITY_JOIN_REQUEST: _UNIT,
    CommandKind.SET_OVERLAY_VISIBILITY: _UNIT,
    CommandKind.OPEN_OVERLAY_ACTIVITY_INVITE: _UNIT,
    CommandKind.OPEN_OVERLAY_GUILD_INVITE: _UNIT,
    CommandKind.OPEN_OVERLAY_VOICE_SETTINGS: _UNIT,
    CommandKind.GET_RELATIONSHIPS: _RELATIONSHIPS,
    CommandKind.SET_VOICE_SETTINGS: _UNIT,
    CommandKind.SET_USER_VOICE_SETTINGS: _UNIT,
}


def _event_kind(value: Any) -> EventKind:
    if not isinstance(value, str):
        raise ProtocolError("field 'evt' must be a string")
    try:
        return EventKind(value)
    except ValueError as exc:
        raise ProtocolError(f"unknown event {value!r}") from exc


def parse_command_frame(data: Any) -> CommandFrame:
    """Decode a command response, given as parsed JSON or as JSON text."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"invalid JSON: {exc}") from exc
    frame = expect_mapping(data, "command frame")

    if "nonce" not in frame:
        raise ProtocolError("missing field 'nonce'")
    nonce = parse_string(frame["nonce"], parse_unsigned)

    raw_cmd = frame.get("cmd")
    if raw_cmd is None:
        raise ProtocolError("missing field 'cmd'")
    if not isinstance(raw_cmd, str):
        raise ProtocolError("field 'cmd' must be a string")
    try:
        kind = CommandKind(raw_cmd)
    except ValueError as exc:
        raise ProtocolError(f"unknown variant {raw_cmd!r}") from exc
    shape = _RESPONSE_SHAPES.get(kind)
    if shape is None:
        raise ProtocolError(f"unknown variant {raw_cmd!r}")

    payload = frame.get("data")

    if shape == _UNIT:
        if payload is not None:
            raise ProtocolError(f"command {raw_cmd} carries no data")
        return CommandFrame(kind, nonce)
    if shape == _SUBSCRIBE:
        body = expect_mapping(payload, "subscribe response")
        if "evt" not in body:
            raise ProtocolError("missing field 'evt'")
        return CommandFrame(kind, nonce, event=_event_kind(body["evt"]))
    if shape == _OBJECT:
        return CommandFrame(kind, nonce, dict(expect_mapping(payload, raw_cmd)))
    if shape == _OPTIONAL_OBJECT:
        if payload is None:
            return CommandFrame(kind, nonce)
        return CommandFrame(kind, nonce, dict(expect_mapping(payload, raw_cmd)))
    if shape == _LIST:
        if not isinstance(payload, list):
            raise ProtocolError(f"expected a list for {raw_cmd}")
        return CommandFrame(kind, nonce, payload)

    body = expect_mapping(payload, raw_cmd)
    relationships = body.get("relationships")
    if relationships is None:
        raise ProtocolError("missing field 'relationships'")
    if not isinstance(relationships, list):
        raise ProtocolError("field 'relationships' must be a list")
    return CommandFrame(kind, nonce, relationships)