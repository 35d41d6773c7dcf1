from datetime import datetime, timedelta, timezone

import pytest

from gamerpc.types import (
    DiscordConfig,
    Environment,
    ErrorPayload,
    ProtocolError,
    Snowflake,
    parse_unsigned,
)


def test_snowflake_from_string_and_number():
    assert Snowflake.from_json("123414231424") == Snowflake(123414231424)
    assert Snowflake.from_json(123414231424) == Snowflake(123414231424)


def test_snowflake_round_trip():
    flake = Snowflake.from_json("682969165652689005")
    assert Snowflake.from_json(flake.to_json()) == flake
    assert str(flake) == "682969165652689005"
    assert int(flake) == 682969165652689005


def test_snowflake_parse_accepts_plus_sign():
    assert Snowflake.parse("+7") == Snowflake(7)


@pytest.mark.parametrize("text", [" 5", "-1", "abc", "", "1_000", str(2**64)])
def test_snowflake_parse_rejects(text):
    with pytest.raises(ValueError):
        Snowflake.parse(text)


@pytest.mark.parametrize("value", [-1, 2**64, "nope", 1.5, True, None, [1]])
def test_snowflake_from_json_rejects(value):
    with pytest.raises(ProtocolError):
        Snowflake.from_json(value)


def test_snowflake_max_value():
    assert Snowflake.from_json(2**64 - 1).value == 2**64 - 1


def test_snowflake_timestamp_epoch():
    assert Snowflake(0).timestamp() == datetime(2015, 1, 1, tzinfo=timezone.utc)


def test_snowflake_timestamp_uses_upper_bits():
    base = Snowflake(0).timestamp()
    assert Snowflake(1 << 22).timestamp() - base == timedelta(milliseconds=1)
    assert Snowflake((1 << 22) - 1).timestamp() == base


def test_snowflake_ordering():
    assert sorted([Snowflake(3), Snowflake(1), Snowflake(2)]) == [
        Snowflake(1),
        Snowflake(2),
        Snowflake(3),
    ]


def test_parse_unsigned_respects_width():
    assert parse_unsigned(str(2**32 - 1), 32) == 2**32 - 1
    with pytest.raises(ValueError):
        parse_unsigned(str(2**32), 32)


def test_environment_round_trip():
    prod = Environment.from_json("production")
    assert prod.is_production
    assert prod.to_json() == "production"
    other = Environment.from_json({"other": "canary"})
    assert other.other == "canary"
    assert Environment.from_json(other.to_json()) == other


def test_environment_rejects_unknown():
    with pytest.raises(ProtocolError):
        Environment.from_json("canary")


def test_discord_config_round_trip():
    data = {
        "cdn_host": "cdn.example.com",
        "environment": "production",
        "api_endpoint": "//example.com/api",
    }
    config = DiscordConfig.from_json(data)
    assert config.cdn_host == "cdn.example.com"
    assert config.environment.is_production
    assert config.to_json() == data


def test_discord_config_missing_field():
    with pytest.raises(ProtocolError):
        DiscordConfig.from_json({"cdn_host": "cdn.example.com", "environment": "production"})


def test_error_payload_round_trip():
    payload = ErrorPayload.from_json({"code": 4000, "message": "bad things"})
    assert payload == ErrorPayload(4000, "bad things")
    assert ErrorPayload.from_json(payload.to_json()) == payload


def test_error_payload_defaults():
    assert ErrorPayload.from_json({}).to_json() == {"code": None, "message": None}


def test_error_payload_rejects_negative_code():
    with pytest.raises(ProtocolError):
        ErrorPayload.from_json({"code": -1})