# gamerpc

Data types and helpers for the JSON messages exchanged with a locally running
Discord client over its game RPC interface, plus registration of a game's
launch command with the client. Only the standard library is used.

## What it does not do

The package has no connection code. It does not open the client's IPC
socket or pipe, perform the handshake, send requests, wait for replies or
dispatch events. You build request frames and decode reply and event frames
yourself, and move them over whatever transport you use. There are no
activity or lobby models. Lobby data in command replies is returned as the
plain JSON objects and lists that were received, and a relationship
activity's `assets`, `party` and `secrets` stay plain dictionaries.

## Modules

- `gamerpc.types`: `Snowflake` (a 64-bit id, with `timestamp()`, `parse()`,
  `from_json()` that accepts a number or a string, and `to_json()` that
  writes a string), `Environment`, `DiscordConfig`, `ErrorPayload`, and
  `ProtocolError`. `ProtocolError` is a `ValueError` that is raised for any
  payload of the wrong shape.
- `gamerpc.util`: `timestamp(millis)`, `parse_timestamp` and
  `format_timestamp` for timestamps that are sent as strings of Unix
  milliseconds, and `parse_string` / `parse_string_opt` for values that are
  sent as strings.
- `gamerpc.user`: `User`, `Avatar`, `ConnectEvent` (the `READY` payload) and
  `UpdateEvent`. `str(user)` gives `name#discriminator`. `Avatar.parse`
  returns `None` for a hash it cannot read.
- `gamerpc.proto`: the `CommandKind` and `EventKind` enumerations, whose
  values are their wire names. `Rpc` builds a request frame, and `dumps()`
  gives it as compact JSON. `parse_command_frame` decodes a reply from JSON
  text or from parsed JSON into a `CommandFrame` with `kind`, `nonce`, `data`
  and `event`.
- `gamerpc.voice`: `InputMode.voice_activity()` and
  `InputMode.push_to_talk(shortcut)`, `VoiceSettingsSelf`,
  `VoiceSettingsUpdateEvent`, and `VoiceState`, whose `state` is replaced by
  `on_refresh(event)`. It also has the argument builders `input_mode_args`,
  `user_mute_args` and `user_volume_args`. The last one caps the volume at
  200.
- `gamerpc.overlay`: `Visibility`, which is written as the inverted `locked`
  flag, `InviteAction`, `UpdateEvent`, and the argument builders
  `overlay_toggle_args`, `activity_invite_args`, `guild_invite_args` and
  `pid_args`. Each builder takes an optional `pid` that defaults to the
  current process. `guild_invite_code` reduces an invite link to its code.
- `gamerpc.lobby_search`: a chainable `SearchQuery` with `add_filter`,
  `add_sort`, `limit` and `distance`, plus `SearchKey`, `SearchValue` and the
  comparison, distance and cast enumerations. By default a query returns up
  to 25 lobbies at the default distance.
- `gamerpc.relations`: `Relationship`, `RelationshipPresence`,
  `RelationshipActivity`, `RelationshipActivityTimestamps`, `RelationKind`
  and `RelationStatus`. It also has `Relationships`, a thread-safe list that
  `on_update` keeps current, and `parse_relationship_update` /
  `relationship_update_frame` for `RELATIONSHIP_UPDATE` event frames.
- `gamerpc.registration`: the launch commands `UrlCommand`, `BinCommand` and
  `SteamCommand`, `Application`, the `URL` argument placeholder,
  `create_command`, `current_exe_path` and `current_exe_command`. There may
  be at most one `URL` placeholder per command, and more raises
  `TooManyUrlsError`.
- `gamerpc.registrar`: `register_app` picks the registration for the current
  platform, and raises `RegistrationError` on failure:
  - Linux (`register_linux`): writes a `.desktop` entry, runs
    `update-desktop-database`, and adds the scheme to `mimeapps.list`.
  - macOS (`register_macos`): writes a shim file under the client's support
    directory for URL and Steam commands. For binaries it compiles an
    AppleScript app with `osacompile` and writes its `Info.plist`.
  - Windows (`register_windows`): writes the scheme handler under
    `HKEY_CURRENT_USER\Software\Classes`.
  - Other platforms: nothing is done.

  The pieces used by these functions (`desktop_entry`, `merge_mime_list`,
  `make_apple_script`, `script_hash`, `info_plist`, `needs_overwrite`,
  `create_shim`, `executable_from_handler`) are public as well.

## Installation

```
pip install gamerpc
```

## Examples

Build a request frame:

```python
from gamerpc.proto import CommandKind, Rpc
from gamerpc.types import Snowflake
from gamerpc.voice import user_volume_args

rpc = Rpc(
    cmd=CommandKind.SET_USER_VOICE_SETTINGS,
    nonce="1",
    args=user_volume_args(Snowflake(123), 250),  # sent as 200
)
payload = rpc.dumps()
```

Decode a reply:

```python
from gamerpc.proto import CommandKind, parse_command_frame

reply = parse_command_frame('{"cmd":"SET_OVERLAY_LOCKED","data":null,"nonce":"1"}')
assert reply.kind is CommandKind.SET_OVERLAY_VISIBILITY
assert reply.nonce == 1
```

Build a lobby search query:

```python
from gamerpc.lobby_search import (
    LobbySearchComparison, LobbySearchDistance, SearchKey, SearchQuery, SearchValue,
)

query = (
    SearchQuery()
    .add_filter(SearchKey.metadata("crab"), LobbySearchComparison.EQUAL, SearchValue.number(1))
    .distance(LobbySearchDistance.GLOBAL)
    .limit(10)
)
args = query.to_json()
```

Track relationships:

```python
from gamerpc.relations import Relationships, parse_relationship_update

frame = {
    "evt": "RELATIONSHIP_UPDATE",
    "data": {
        "type": 1,
        "user": {"id": "123", "username": "someone", "discriminator": "42"},
        "presence": {"status": "online", "activity": None},
    },
}
relationships = Relationships()
relationships.on_update(parse_relationship_update(frame))
```

Register a game binary that receives the opened URL as an argument:

```python
from pathlib import Path
from gamerpc.registration import URL, Application, BinCommand
from gamerpc.registrar import register_app

register_app(Application(
    id=310270644849737729,
    name="My Game",
    command=BinCommand(Path("/opt/mygame/mygame"), ["--url", URL]),
))
```

`current_exe_command(args)` builds the same kind of command for
`sys.executable`, which is the running Python interpreter.

## Tests

```
pip install -e .[test]
pytest
```