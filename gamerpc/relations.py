"""Relationships with other users, their presence, and the relationship state."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Iterable

from gamerpc.proto import EventKind
from gamerpc.types import ProtocolError, expect_mapping
from gamerpc.user import User
from gamerpc.util import format_timestamp, parse_timestamp


class RelationKind(IntEnum):
    """The kind of relationship the current user has with another user."""

    NONE = 0
    FRIEND = 1
    BLOCKED = 2
    PENDING_INCOMING = 3
    PENDING_OUTGOING = 4
    IMPLICIT = 5


class RelationStatus(str, Enum):
    """The online status of a related user."""

    OFFLINE = "offline"
    ONLINE = "online"
    IDLE = "idle"
    DO_NOT_DISTURB = "dnd"


def _optional_str(data: Any, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ProtocolError(f"field '{key}' must be a string")
    return value


def _optional_object(data: Any, key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    return dict(expect_mapping(value, key))


def _required(data: Any, key: str) -> Any:
    if key not in data:
        raise ProtocolError(f"missing field '{key}'")
    return data[key]


@dataclass
class RelationshipActivityTimestamps:
    """Start and end times of an activity."""

    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def from_json(cls, data: Any) -> RelationshipActivityTimestamps:
        data = expect_mapping(data, "timestamps")
        return cls(start=parse_timestamp(data.get("start")), end=parse_timestamp(data.get("end")))

    def to_json(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.start is not None:
            out["start"] = format_timestamp(self.start)
        if self.end is not None:
            out["end"] = format_timestamp(self.end)
        return out


@dataclass
class RelationshipActivity:
    """What a related user is currently doing.

    ``assets``, ``party`` and ``secrets`` are kept as the JSON objects sent.
    ``created_at`` is read but never written back out.
    """

    kind: int
    session_id: str | None = None
    created_at: datetime | None = None
    state: str | None = None
    details: str | None = None
    timestamps: RelationshipActivityTimestamps | None = None
    assets: dict[str, Any] | None = None
    party: dict[str, Any] | None = None
    secrets: dict[str, Any] | None = None
    instance: bool = False

    @classmethod
    def from_json(cls, data: Any) -> RelationshipActivity:
        data = expect_mapping(data, "activity")

        kind = _required(data, "type")
        if isinstance(kind, bool) or not isinstance(kind, int) or not 0 <= kind <= 255:
            raise ProtocolError("field 'type' must be an unsigned 8-bit integer")

        created_at = parse_timestamp(_required(data, "created_at"))

        raw_timestamps = data.get("timestamps")
        timestamps = (
            RelationshipActivityTimestamps.from_json(raw_timestamps)
            if raw_timestamps is not None
            else None
        )

        instance = data.get("instance", False)
        if not isinstance(instance, bool):
            raise ProtocolError("field 'instance' must be a boolean")

        return cls(
            kind=kind,
            session_id=_optional_str(data, "session_id"),
            created_at=created_at,
            state=_optional_str(data, "state"),
            details=_optional_str(data, "details"),
            timestamps=timestamps,
            assets=_optional_object(data, "assets"),
            party=_optional_object(data, "party"),
            secrets=_optional_object(data, "secrets"),
            instance=instance,
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.session_id is not None:
            out["session_id"] = self.session_id
        if self.state is not None:
            out["state"] = self.state
        if self.details is not None:
            out["details"] = self.details
        if self.timestamps is not None:
            out["timestamps"] = self.timestamps.to_json()
        if self.assets is not None:
            out["assets"] = dict(self.assets)
        if self.party is not None:
            out["party"] = dict(self.party)
        if self.secrets is not None:
            out["secrets"] = dict(self.secrets)
        out["type"] = self.kind
        out["instance"] = self.instance
        return out


@dataclass
class RelationshipPresence:
    """A related user's status and current activity."""

    status: RelationStatus
    activity: RelationshipActivity | None = None

    @classmethod
    def from_json(cls, data: Any) -> RelationshipPresence:
        data = expect_mapping(data, "presence")
        raw_status = _required(data, "status")
        try:
            status = RelationStatus(raw_status)
        except ValueError as exc:
            raise ProtocolError(f"unknown status {raw_status!r}") from exc
        raw_activity = data.get("activity")
        activity = (
            RelationshipActivity.from_json(raw_activity) if raw_activity is not None else None
        )
        return cls(status=status, activity=activity)

    def to_json(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "activity": self.activity.to_json() if self.activity is not None else None,
        }


@dataclass
class Relationship:
    """The current user's relationship with another user."""

    kind: RelationKind
    user: User
    presence: RelationshipPresence

    @classmethod
    def from_json(cls, data: Any) -> Relationship:
        data = expect_mapping(data, "relationship")
        raw_kind = _required(data, "type")
        if isinstance(raw_kind, bool) or not isinstance(raw_kind, int):
            raise ProtocolError("field 'type' must be an integer")
        try:
            kind = RelationKind(raw_kind)
        except ValueError as exc:
            raise ProtocolError(f"unknown relationship type {raw_kind}") from exc
        return cls(
            kind=kind,
            user=User.from_json(_required(data, "user")),
            presence=RelationshipPresence.from_json(_required(data, "presence")),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "type": int(self.kind),
            "user": self.user.to_json(),
            "presence": self.presence.to_json(),
        }


class Relationships:
    """The current user's relationships, kept up to date by update events."""

    def __init__(self, relationships: Iterable[Relationship] = ()) -> None:
        self._lock = threading.Lock()
        self._relationships: list[Relationship] = list(relationships)

    @property
    def relationships(self) -> list[Relationship]:
        """A snapshot of the current relationships."""
        with self._lock:
            return list(self._relationships)

    def __len__(self) -> int:
        with self._lock:
            return len(self._relationships)

    def on_update(self, relationship: Relationship) -> None:
        """Replace the relationship with the same user, or add it if new."""
        with self._lock:
            for index, existing in enumerate(self._relationships):
                if existing.user.id == relationship.user.id:
                    self._relationships[index] = relationship
                    return
            self._relationships.append(relationship)


def parse_relationship_update(frame: Any) -> Relationship:
    """Decode a relationship update event, given as parsed JSON or as JSON text."""
    if isinstance(frame, (str, bytes, bytearray)):
        try:
            frame = json.loads(frame)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"invalid JSON: {exc}") from exc
    frame = expect_mapping(frame, "event frame")
    evt = _required(frame, "evt")
    if evt != EventKind.RELATIONSHIP_UPDATE.value:
        raise ProtocolError(f"expected a {EventKind.RELATIONSHIP_UPDATE.value} event, got {evt!r}")
    return Relationship.from_json(_required(frame, "data"))


def relationship_update_frame(relationship: Relationship) -> dict[str, Any]:
    """The event frame that announces ``relationship`` as updated."""
    return {"evt": EventKind.RELATIONSHIP_UPDATE.value, "data": relationship.to_json()}