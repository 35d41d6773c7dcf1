"""Describing an application so the client can launch it later."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

_VERBATIM = "\\\\?\\"
_DRIVE = re.compile(r"[A-Za-z]:")


class _Placeholder(Enum):
    URL = "url"


URL = _Placeholder.URL
"""Argument placeholder filled with the URL that was opened."""

BinArg = Union[str, _Placeholder]


class TooManyUrlsError(ValueError):
    """Raised when a launch command holds more than one URL placeholder."""


@dataclass(frozen=True)
class UrlCommand:
    """Launch the application by opening a URL."""

    url: str


@dataclass(frozen=True)
class BinCommand:
    """Launch a binary, given as a full path or a name on PATH, with arguments."""

    path: Path
    args: list[BinArg] = field(default_factory=list)


@dataclass(frozen=True)
class SteamCommand:
    """Launch a game through Steam by its game id."""

    app_id: int


LaunchCommand = Union[UrlCommand, BinCommand, SteamCommand]


@dataclass
class Application:
    """An application to register, identified by its unique id."""

    id: int
    command: LaunchCommand
    name: str | None = None

    def display_name(self) -> str:
        """The name, or the id when no name was given."""
        return self.name if self.name is not None else str(self.id)


def strip_verbatim_prefix(path: str | os.PathLike[str]) -> str:
    """Remove a Windows ``\\\\?\\`` verbatim prefix, which launch commands do not accept.

    Verbatim UNC paths are left as they are.
    """
    text = os.fspath(path)
    if not text.startswith(_VERBATIM):
        return text
    rest = text[len(_VERBATIM):]
    if rest[:4].upper() == "UNC\\":
        return text
    return rest


def current_exe_path() -> Path:
    """The path of the running executable, without any verbatim prefix."""
    exe = sys.executable
    if not exe:
        raise OSError("retrieving current executable path: path is unknown")
    return Path(strip_verbatim_prefix(exe))


def _check_args(args: Iterable[BinArg]) -> list[BinArg]:
    checked = list(args)
    for arg in checked:
        if arg is not URL and not isinstance(arg, str):
            raise TypeError(f"argument must be a string or URL, got {type(arg).__name__}")
    if sum(1 for arg in checked if arg is URL) > 1:
        raise TooManyUrlsError("only one URL placeholder is allowed")
    return checked


def current_exe_command(args: Iterable[BinArg]) -> BinCommand:
    """A command that launches the running executable with ``args``."""
    checked = _check_args(args)
    return BinCommand(current_exe_path(), checked)


def create_command(path: str | os.PathLike[str], args: Iterable[BinArg], url_str: str) -> str:
    """Build a command line, substituting ``url_str`` for the URL placeholder.

    Only arguments containing spaces are quoted.
    """
    parts = [f'"{os.fspath(path)}"']
    for arg in _check_args(args):
        if arg is URL:
            parts.append(url_str)
        elif " " in arg:
            parts.append(f'"{arg}"')
        else:
            parts.append(arg)
    return " ".join(parts)