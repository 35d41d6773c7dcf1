import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from gamerpc import registrar
from gamerpc.registrar import (
    RegistrationError,
    create_shim,
    desktop_entry,
    executable_from_handler,
    info_plist,
    make_apple_script,
    merge_mime_list,
    needs_overwrite,
    register_app,
    register_linux,
    register_macos,
    script_hash,
)
from gamerpc.registration import URL, Application, BinCommand, SteamCommand, UrlCommand


def _ok(args, *a, **kw):
    return subprocess.CompletedProcess(args, 0, b"", b"")


# --- Linux -----------------------------------------------------------------


def test_desktop_entry_for_binary():
    app = Application(42, BinCommand(Path("/usr/bin/game"), [URL, "--fullscreen"]), "Game")
    entry = desktop_entry(app)
    assert entry.startswith("[Desktop Entry]\n")
    assert "Name=Game\n" in entry
    assert 'Exec="/usr/bin/game" %u --fullscreen\n' in entry
    assert "MimeType=x-scheme-handler/discord-42;\n" in entry
    assert "NoDisplay=true\n" in entry


def test_desktop_entry_defaults_name_to_id_and_steam():
    app = Application(99, SteamCommand(1234))
    entry = desktop_entry(app)
    assert "Name=99\n" in entry
    assert "Exec=xdg-open steam://rungameid/1234\n" in entry


def test_desktop_entry_url():
    entry = desktop_entry(Application(5, UrlCommand("mygame://start")))
    assert "Exec=xdg-open mygame://start\n" in entry


def test_merge_mime_list_new_file():
    assert merge_mime_list(None, 7) == (
        "[Default Applications]\nx-scheme-handler/discord-7=discord-7.desktop\n"
    )


def test_merge_mime_list_inserts_after_header():
    existing = "[Default Applications]\ntext/html=browser.desktop\n"
    merged = merge_mime_list(existing, 7)
    assert merged == (
        "[Default Applications]\n"
        "x-scheme-handler/discord-7=discord-7.desktop\n"
        "text/html=browser.desktop\n"
    )
    assert merge_mime_list(merged, 7) is None


def test_merge_mime_list_without_header_is_unchanged():
    assert merge_mime_list("[Added Associations]\n", 7) is None


def test_register_linux_writes_files(tmp_path):
    app = Application(42, BinCommand(Path("/usr/bin/game"), [URL]), "Game")
    data, config = tmp_path / "data", tmp_path / "config"
    with patch("gamerpc.registrar.subprocess.run", side_effect=_ok) as run:
        path = register_linux(app, data, config)
        register_linux(app, data, config)
    assert path == data / "applications" / "discord-42.desktop"
    assert path.read_text() == desktop_entry(app)
    assert run.call_args[0][0] == ["update-desktop-database", str(data / "applications")]
    mime = (config / "mimeapps.list").read_text()
    assert mime == merge_mime_list(None, 42)


def test_register_linux_reports_failed_database_update(tmp_path):
    app = Application(1, SteamCommand(2))
    failed = subprocess.CompletedProcess([], 3)
    with patch("gamerpc.registrar.subprocess.run", return_value=failed):
        with pytest.raises(RegistrationError, match="update-desktop-database: 3"):
            register_linux(app, tmp_path / "d", tmp_path / "c")


def test_register_linux_reports_signal(tmp_path):
    app = Application(1, SteamCommand(2))
    killed = subprocess.CompletedProcess([], -9)
    with patch("gamerpc.registrar.subprocess.run", return_value=killed):
        with pytest.raises(RegistrationError, match="signal"):
            register_linux(app, tmp_path / "d", tmp_path / "c")


def test_register_linux_applications_is_file(tmp_path):
    (tmp_path / "applications").write_text("")
    with pytest.raises(RegistrationError):
        register_linux(Application(1, SteamCommand(2)), tmp_path, tmp_path / "c")


def test_register_app_dispatches_on_linux(tmp_path, monkeypatch):
    monkeypatch.setattr(registrar.sys, "platform", "linux")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    app = Application(8, SteamCommand(3))
    with patch("gamerpc.registrar.subprocess.run", side_effect=_ok) as run:
        register_app(app)
    entry_path = tmp_path / "data" / "applications" / "discord-8.desktop"
    assert entry_path.read_text() == desktop_entry(app)
    assert (tmp_path / "config" / "mimeapps.list").read_text() == merge_mime_list(None, 8)
    assert run.call_args[0][0] == [
        "update-desktop-database",
        str(tmp_path / "data" / "applications"),
    ]


def test_register_app_other_platform_does_nothing(tmp_path, monkeypatch):
    monkeypatch.setattr(registrar.sys, "platform", "freebsd")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert register_app(Application(8, SteamCommand(3))) is None
    assert list(tmp_path.iterdir()) == []


# --- macOS -----------------------------------------------------------------


def test_make_apple_script_arguments():
    script = make_apple_script("/opt/game/run", [URL, "--flag", "two words"])
    assert '\tdo shell script "/opt/game/run > /dev/null 2>&1 &"\n' in script
    assert (
        "\tdo shell script \"/opt/game/run '\" & this_URL & \"' --flag 'two words'"
        ' > /dev/null 2>&1 &"\n'
    ) in script
    assert "on open location this_URL\n" in script


def test_script_hash_empty_is_djb2_seed():
    assert script_hash("") == 5381


def test_script_hash_is_stable_and_32_bit():
    script = make_apple_script("/bin/game", ["x"] * 50)
    assert script_hash(script) == script_hash(script)
    assert 0 <= script_hash(script) <= 0xFFFFFFFF
    assert script_hash(script) != script_hash(script + " ")


def test_info_plist_contains_bundle_id():
    plist = info_plist(42, 777)
    assert plist.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<string>com.777.AppleScript.discord-42</string>" in plist
    assert "<string>discord-42</string>" in plist


def test_needs_overwrite(tmp_path):
    app_path = tmp_path / "discord-1.app"
    plist_path = app_path / "Contents" / "Info.plist"
    assert needs_overwrite(5, 1, app_path) == plist_path
    plist_path.parent.mkdir(parents=True)
    assert needs_overwrite(5, 1, app_path) == plist_path
    plist_path.write_text(info_plist(1, 5))
    assert needs_overwrite(5, 1, app_path) is None
    assert needs_overwrite(6, 1, app_path) == plist_path


def test_create_shim_requires_discord(tmp_path):
    with pytest.raises(RegistrationError, match="not seem to be installed"):
        create_shim(3, "steam://rungameid/4", tmp_path)


def test_create_shim_rejects_empty_home():
    with pytest.raises(RegistrationError, match="empty"):
        create_shim(3, "x://y", "")


def test_create_shim_writes_command(tmp_path):
    discord_dir = tmp_path / "Library" / "Application Support" / "discord"
    discord_dir.mkdir(parents=True)
    path = create_shim(3, "mygame://start", tmp_path)
    assert path == discord_dir / "3.json"
    assert path.read_text() == '{"command": "mygame://start"}'
    assert (discord_dir / "games").is_dir()


def test_register_macos_steam_uses_shim(tmp_path):
    discord_dir = tmp_path / "Library" / "Application Support" / "discord"
    discord_dir.mkdir(parents=True)
    path = register_macos(Application(3, SteamCommand(4)), home=tmp_path)
    assert path.read_text() == '{"command": "steam://rungameid/4"}'


def test_register_macos_binary_compiles_once(tmp_path):
    app = Application(12, BinCommand(Path("/opt/game"), [URL]))

    def fake_osacompile(args, *a, **kw):
        Path(args[2], "Contents").mkdir(parents=True)
        return subprocess.CompletedProcess(args, 0, b"", b"")

    with patch("gamerpc.registrar.subprocess.run", side_effect=fake_osacompile) as run:
        app_path = register_macos(app, applications_dir=tmp_path)
        register_macos(app, applications_dir=tmp_path)

    assert app_path == tmp_path / "discord-12.app"
    assert run.call_count == 1
    assert run.call_args[0][0][:3] == ["osacompile", "-o", str(app_path)]
    digest = script_hash(make_apple_script(Path("/opt/game"), [URL]))
    assert (app_path / "Contents" / "Info.plist").read_text() == info_plist(12, digest)


def test_register_macos_osacompile_failure(tmp_path):
    failed = subprocess.CompletedProcess([], 1, b"", b"syntax error")
    app = Application(12, BinCommand(Path("/opt/game"), []))
    with patch("gamerpc.registrar.subprocess.run", return_value=failed):
        with pytest.raises(RegistrationError, match="syntax error"):
            register_macos(app, applications_dir=tmp_path)


def test_register_macos_missing_app_after_compile(tmp_path):
    app = Application(12, BinCommand(Path("/opt/game"), []))
    with patch("gamerpc.registrar.subprocess.run", side_effect=_ok):
        with pytest.raises(RegistrationError, match="didn't actually write"):
            register_macos(app, applications_dir=tmp_path)


# --- Windows ---------------------------------------------------------------


@pytest.mark.parametrize(
    "command, expected",
    [
        ('"C:\\Games\\game.exe" "%1"', "C:\\Games\\game.exe"),
        ('"C:\\Games\\game.exe', '"C:\\Games\\game.exe'),
        ("C:\\game.exe %1", "C:\\game.exe"),
        ("game.exe", "game.exe"),
    ],
)
def test_executable_from_handler(command, expected):
    assert executable_from_handler(command) == expected