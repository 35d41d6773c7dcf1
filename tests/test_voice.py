import pytest

from gamerpc.types import ProtocolError, Snowflake
from gamerpc.voice import (
    InputMode,
    VoiceSettingsSelf,
    VoiceSettingsUpdateEvent,
    VoiceState,
    input_mode_args,
    user_mute_args,
    user_volume_args,
)


def test_voice_activity_serializes_placeholder_shortcut():
    assert InputMode.voice_activity().to_json() == {"type": "VOICE_ACTIVITY", "shortcut": "_"}


def test_push_to_talk_round_trip():
    mode = InputMode.push_to_talk("ctrl + a")
    assert mode.is_push_to_talk
    assert InputMode.from_json(mode.to_json()) == mode


def test_voice_activity_round_trip_ignores_shortcut():
    mode = InputMode.from_json({"type": "VOICE_ACTIVITY", "shortcut": "_"})
    assert mode == InputMode.voice_activity()
    assert not mode.is_push_to_talk


def test_push_to_talk_missing_shortcut_is_empty():
    assert InputMode.from_json({"type": "PUSH_TO_TALK"}).shortcut == ""


@pytest.mark.parametrize(
    "data",
    [{"type": "SHOUTING"}, {"shortcut": "x"}, {"type": 1}, {"type": "PUSH_TO_TALK", "shortcut": 3}],
)
def test_input_mode_rejects_bad_data(data):
    with pytest.raises(ProtocolError):
        InputMode.from_json(data)


def test_input_mode_rejects_unknown_kind_in_constructor():
    with pytest.raises(ValueError):
        InputMode("WHISPER")


def test_voice_settings_self():
    assert VoiceSettingsSelf(self_mute=True, self_deaf=False).to_json() == {
        "self_mute": True,
        "self_deaf": False,
    }


def _settings_json():
    return {
        "input_mode": {"type": "PUSH_TO_TALK", "shortcut": "ctrl + a"},
        "local_mutes": ["123414231424"],
        "local_volumes": {"682969165652689005": 150, "123414231424": 30},
        "self_mute": True,
        "self_deaf": False,
    }


def test_update_event_parses():
    event = VoiceSettingsUpdateEvent.from_json(_settings_json())
    assert event.input_mode == InputMode.push_to_talk("ctrl + a")
    assert event.local_mutes == [Snowflake(123414231424)]
    assert event.local_volumes[Snowflake(682969165652689005)] == 150
    assert event.self_mute is True
    assert event.self_deaf is False


def test_update_event_volumes_are_sorted():
    event = VoiceSettingsUpdateEvent.from_json(_settings_json())
    keys = list(event.local_volumes)
    assert keys == sorted(keys)


def test_update_event_round_trip():
    event = VoiceSettingsUpdateEvent.from_json(_settings_json())
    assert VoiceSettingsUpdateEvent.from_json(event.to_json()) == event


def test_update_event_without_input_mode():
    data = _settings_json()
    del data["input_mode"]
    assert VoiceSettingsUpdateEvent.from_json(data).input_mode is None


@pytest.mark.parametrize("missing", ["local_mutes", "local_volumes", "self_mute", "self_deaf"])
def test_update_event_requires_fields(missing):
    data = _settings_json()
    del data[missing]
    with pytest.raises(ProtocolError):
        VoiceSettingsUpdateEvent.from_json(data)


def test_update_event_rejects_volume_out_of_range():
    data = _settings_json()
    data["local_volumes"] = {"1": 256}
    with pytest.raises(ProtocolError):
        VoiceSettingsUpdateEvent.from_json(data)


def test_voice_state_defaults_and_refresh():
    state = VoiceState()
    assert state.state == VoiceSettingsUpdateEvent()
    event = VoiceSettingsUpdateEvent.from_json(_settings_json())
    state.on_refresh(event)
    assert state.state is event


def test_input_mode_args():
    mode = InputMode.push_to_talk("ctrl + a")
    assert input_mode_args(mode) == {"input_mode": mode.to_json()}


def test_user_mute_args():
    assert user_mute_args(Snowflake(123414231424), True) == {
        "user_id": "123414231424",
        "mute": True,
    }


def test_user_volume_args_caps_at_200():
    assert user_volume_args(Snowflake(1), 250)["volume"] == 200
    assert user_volume_args(Snowflake(1), 100)["volume"] == 100


def test_user_volume_args_rejects_non_u8():
    with pytest.raises(ValueError):
        user_volume_args(Snowflake(1), 300)