"""Platform-specific registration of an application's launch command."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Any, Iterable
from urllib.parse import urlsplit

from gamerpc.registration import (
    URL,
    Application,
    BinArg,
    BinCommand,
    LaunchCommand,
    SteamCommand,
    UrlCommand,
    create_command,
    current_exe_path,
)

_MIME_HEADER = "[Default Applications]\n"
_DEFAULT_APPLICATIONS_DIR = Path("/Applications")


class RegistrationError(RuntimeError):
    """Raised when an application could not be registered with the client."""


def register_app(app: Application) -> None:
    """Register ``app`` for the current platform; other platforms are a no-op."""
    if sys.platform.startswith("linux"):
        register_linux(app)
    elif sys.platform == "win32":
        register_windows(app)
    elif sys.platform == "darwin":
        register_macos(app)


# --- Linux -----------------------------------------------------------------


def _xdg_dir(variable: str, default: str) -> Path:
    value = os.environ.get(variable)
    if value and os.path.isabs(value):
        return Path(value)
    return Path.home() / default


def _scheme_line(app_id: int) -> str:
    return f"x-scheme-handler/discord-{app_id}=discord-{app_id}.desktop\n"


def _linux_exec(command: LaunchCommand) -> str:
    if isinstance(command, UrlCommand):
        return f"xdg-open {command.url}"
    if isinstance(command, BinCommand):
        return create_command(command.path, command.args, "%u")
    if isinstance(command, SteamCommand):
        return f"xdg-open steam://rungameid/{command.app_id}"
    raise TypeError(f"unknown launch command {command!r}")


def desktop_entry(app: Application) -> str:
    """The desktop entry that handles the application's URL scheme."""
    return (
        "[Desktop Entry]\n"
        f"Name={app.display_name()}\n"
        f"Exec={_linux_exec(app.command)}\n"
        "Type=Application\n"
        "NoDisplay=true\n"
        "Categories=Discord;Games;\n"
        f"MimeType=x-scheme-handler/discord-{app.id};\n"
    )


def merge_mime_list(existing: str | None, app_id: int) -> str | None:
    """The new contents of ``mimeapps.list``, or None if it needs no change.

    The scheme is only added when absent and when the list has a
    default-applications section to add it to.
    """
    scheme = _scheme_line(app_id)
    if existing is None:
        return _MIME_HEADER + scheme
    if scheme in existing:
        return None
    index = existing.find(_MIME_HEADER)
    if index < 0:
        return None
    cut = index + len(_MIME_HEADER)
    return existing[:cut] + scheme + existing[cut:]


def register_linux(
    app: Application,
    data_home: str | os.PathLike[str] | None = None,
    config_home: str | os.PathLike[str] | None = None,
) -> Path:
    """Write a desktop entry and mime association; returns the entry's path."""
    data_root = Path(data_home) if data_home is not None else _xdg_dir(
        "XDG_DATA_HOME", ".local/share"
    )
    config_root = Path(config_home) if config_home is not None else _xdg_dir(
        "XDG_CONFIG_HOME", ".config"
    )

    apps_dir = data_root / "applications"
    try:
        apps_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RegistrationError(f'unable to create "{apps_dir}"') from exc
    if not apps_dir.is_dir():
        raise RegistrationError(f'"{apps_dir}" was found, but it\'s not a directory')

    desktop_path = apps_dir / f"discord-{app.id}.desktop"
    try:
        desktop_path.write_text(desktop_entry(app), encoding="utf-8")
    except OSError as exc:
        raise RegistrationError("unable to write desktop entry") from exc

    try:
        result = subprocess.run(["update-desktop-database", str(apps_dir)], check=False)
    except OSError as exc:
        raise RegistrationError("failed to run update-desktop-database") from exc
    if result.returncode < 0:
        raise RegistrationError("failed to run update-desktop-database, interrupted by signal!")
    if result.returncode != 0:
        raise RegistrationError(f"failed to run update-desktop-database: {result.returncode}")

    mime_path = config_root / "mimeapps.list"
    existing = None
    if mime_path.exists():
        try:
            existing = mime_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RegistrationError(f"unable to read {mime_path}") from exc

    updated = merge_mime_list(existing, app.id)
    if updated is not None:
        try:
            mime_path.parent.mkdir(parents=True, exist_ok=True)
            mime_path.write_text(updated, encoding="utf-8")
        except OSError as exc:
            raise RegistrationError(f"unable to add discord scheme to {mime_path}") from exc

    return desktop_path


# --- macOS -----------------------------------------------------------------


def make_apple_script(path: str | os.PathLike[str], args: Iterable[BinArg]) -> str:
    """A small AppleScript that launches the executable, optionally with a URL."""
    parts = []
    for arg in args:
        if arg is URL:
            parts.append(" '\" & this_URL & \"'")
        elif " " in arg:
            parts.append(f" '{arg}'")
        else:
            parts.append(f" {arg}")
    exe = os.fspath(path)
    script_args = "".join(parts)
    # The trailing "> /dev/null 2>&1 &" backgrounds the executable so the script exits.
    return (
        "\n"
        "on run\n"
        f'\tdo shell script "{exe} > /dev/null 2>&1 &"\n'
        "end run\n"
        "\n"
        "on open location this_URL\n"
        f'\tdo shell script "{exe}{script_args} > /dev/null 2>&1 &"\n'
        "end open location\n"
        "    "
    )


def script_hash(script: str) -> int:
    """The 32-bit djb2 hash of the script's UTF-8 bytes."""
    value = 5381
    for byte in script.encode("utf-8"):
        value = ((value << 5) + value + byte) & 0xFFFFFFFF
    return value


def _bundle_id_line(script_hash: int, app_id: int) -> str:
    return f"<string>com.{script_hash}.AppleScript.discord-{app_id}</string>"


def info_plist(app_id: int, script_hash: int) -> str:
    """The bundle's Info.plist naming the application and its URL scheme."""
    name = f"discord-{app_id}"
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
        '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
        '<plist version="1.0">\n'
        "<dict>\n"
        "    <key>CFBundleExecutable</key>\n"
        "    <string>applet</string>\n"
        "    <key>CFBundleIconFile</key>\n"
        "    <string>applet</string>\n"
        "    <key>CFBundleIdentifier</key>\n"
        f"    {_bundle_id_line(script_hash, app_id)}\n"
        "    <key>CFBundleInfoDictionaryVersion</key>\n"
        "    <string>6.0</string>\n"
        "    <key>CFBundleName</key>\n"
        f"    <string>{name}</string>\n"
        "    <key>CFBundlePackageType</key>\n"
        "    <string>APPL</string>\n"
        "    <key>CFBundleSignature</key>\n"
        "    <string>aplt</string>\n"
        "    <key>CFBundleURLTypes</key>\n"
        "    <array>\n"
        "        <dict>\n"
        "            <key>CFBundleURLName</key>\n"
        f"            <string>{name}</string>\n"
        "            <key>CFBundleURLSchemes</key>\n"
        "            <array>\n"
        f"                <string>{name}</string>\n"
        "            </array>\n"
        "        </dict>\n"
        "    </array>\n"
        "    <key>LSRequiresCarbon</key>\n"
        "    <true/>\n"
        "</dict>\n"
        "</plist>"
    )


def needs_overwrite(
    script_hash: int, app_id: int, app_path: str | os.PathLike[str]
) -> Path | None:
    """The plist path if the app bundle is missing or out of date, else None."""
    app_path = Path(app_path)
    plist_path = app_path / "Contents" / "Info.plist"
    if not app_path.exists():
        return plist_path
    try:
        plist = plist_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return plist_path
    if _bundle_id_line(script_hash, app_id) in plist:
        return None
    return plist_path


def create_shim(app_id: int, url: str, home: str | os.PathLike[str] | None = None) -> Path:
    """Save the launch URL where the client looks for it; returns the file written.

    There is no way to register arbitrary commands on macOS, so the client
    reads the command from its config directory instead.
    """
    if home is None:
        home = os.environ.get("HOME")
        if home is None:
            raise RegistrationError("no $HOME detected, are we running sandboxed?")
    home = os.fspath(home)
    if not home:
        raise RegistrationError("$HOME is empty")

    discord_dir = Path(home) / "Library" / "Application Support" / "discord"
    if not discord_dir.exists():
        raise RegistrationError("Discord does not seem to be installed")

    try:
        (discord_dir / "games").mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RegistrationError(
            "unable to create 'games' in Discord config directory"
        ) from exc

    shim_path = discord_dir / f"{app_id}.json"
    try:
        shim_path.write_text(f'{{"command": "{url}"}}', encoding="utf-8")
    except OSError as exc:
        raise RegistrationError(f"unable to write {shim_path}") from exc
    return shim_path


def _compile_app(script: str, digest: int, app_path: Path) -> None:
    script_path = Path(tempfile.gettempdir()) / f"{digest}.applescript"
    try:
        script_path.write_text(script, encoding="utf-8")
    except OSError as exc:
        raise RegistrationError("Couldn't write script file") from exc

    try:
        output = subprocess.run(
            ["osacompile", "-o", str(app_path), str(script_path)],
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise RegistrationError("Couldn't compile script to app") from exc

    if output.returncode != 0:
        try:
            stderr = (output.stderr or b"").decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RegistrationError("Couldn't convert osacompile error output") from exc
        raise RegistrationError(
            f"osacompile failed with status {output.returncode}: {stderr}"
        )
    if not app_path.exists():
        raise RegistrationError(
            "osacompile appeared to succeed but didn't actually write an app"
        )


def register_macos(
    app: Application,
    home: str | os.PathLike[str] | None = None,
    applications_dir: str | os.PathLike[str] | None = None,
) -> Path:
    """Register ``app``; returns the shim file or the application bundle."""
    command = app.command
    if isinstance(command, UrlCommand):
        return create_shim(app.id, command.url, home)
    if isinstance(command, SteamCommand):
        return create_shim(app.id, f"steam://rungameid/{command.app_id}", home)
    if not isinstance(command, BinCommand):
        raise TypeError(f"unknown launch command {command!r}")

    script = make_apple_script(command.path, command.args)
    digest = script_hash(script)
    apps_root = (
        Path(applications_dir) if applications_dir is not None else _DEFAULT_APPLICATIONS_DIR
    )
    app_path = apps_root / f"discord-{app.id}.app"

    plist_path = needs_overwrite(digest, app.id, app_path)
    if plist_path is None:
        return app_path

    if app_path.exists():
        try:
            shutil.rmtree(app_path)
        except OSError as exc:
            raise RegistrationError(f"unable to remove '{app_path}'") from exc

    _compile_app(script, digest, app_path)

    try:
        plist_path.write_text(info_plist(app.id, digest), encoding="utf-8")
    except OSError as exc:
        raise RegistrationError("failed to write .plist") from exc
    return app_path


# --- Windows ---------------------------------------------------------------


def executable_from_handler(command: str) -> str:
    """The executable a registered scheme handler command points at."""
    if command.startswith('"'):
        rest = command[1:]
        end = rest.find('"')
        # Without a closing quote something is off; keep the whole command.
        return rest[:end] if end >= 0 else command
    return command.split(" ")[0]


def _read_default(winreg: Any, subkey: str, value_name: str, missing: str, unreadable: str) -> str:
    try:
        key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, subkey)
    except OSError as exc:
        raise RegistrationError(missing) from exc
    with key:
        try:
            value, _kind = winreg.QueryValueEx(key, value_name)
        except OSError as exc:
            raise RegistrationError(unreadable) from exc
    if not isinstance(value, str):
        raise RegistrationError(unreadable)
    return value


def _windows_command(winreg: Any, command: LaunchCommand, icon_path: str) -> tuple[str, str]:
    if isinstance(command, BinCommand):
        return create_command(command.path, command.args, '"%1"'), os.fspath(command.path)
    if isinstance(command, UrlCommand):
        scheme = urlsplit(command.url).scheme
        handler = _read_default(
            winreg,
            f"Software\\Classes\\{scheme}\\shell\\open\\command",
            "",
            f"the '{scheme}' scheme hasn't been registered",
            f"unable to read value for '{scheme}' scheme",
        )
        return handler, executable_from_handler(handler)
    if isinstance(command, SteamCommand):
        steam_path = _read_default(
            winreg,
            "Software\\Valve\\Steam",
            "SteamExe",
            "unable to locate Steam registry entry",
            "unable to locate path to steam executable",
        ).replace("/", "\\")
        return f'"{steam_path}" steam://rungameid/{command.app_id}', icon_path
    raise TypeError(f"unknown launch command {command!r}")


def register_windows(app: Application) -> None:
    """Register the application's URL scheme in the current user's registry."""
    try:
        import winreg
    except ImportError as exc:
        raise RegistrationError("the Windows registry is not available") from exc

    try:
        icon_path = str(current_exe_path())
    except OSError as exc:
        raise RegistrationError(str(exc)) from exc

    command, icon_path = _windows_command(winreg, app.command, icon_path)

    try:
        with winreg.CreateKey(
            winreg.HKEY_CURRENT_USER, f"Software\\Classes\\discord-{app.id}"
        ) as disc_key:
            winreg.SetValueEx(disc_key, "", 0, winreg.REG_SZ, f"URL:Run game {app.id} protocol")
            winreg.SetValueEx(disc_key, "URL Protocol", 0, winreg.REG_SZ, "")
            with winreg.CreateKey(disc_key, "DefaultIcon") as icon_key:
                winreg.SetValueEx(icon_key, "", 0, winreg.REG_SZ, icon_path)
            with winreg.CreateKey(disc_key, "shell\\open\\command") as open_key:
                winreg.SetValueEx(open_key, "", 0, winreg.REG_SZ, command)
    except OSError as exc:
        raise RegistrationError("unable to create discord handler") from exc