"""Protocol types, state tracking and app registration for the Discord game RPC interface."""

__version__ = "0.1.0"

__all__ = [
    "lobby_search",
    "overlay",
    "proto",
    "registrar",
    "registration",
    "relations",
    "types",
    "user",
    "util",
    "voice",
]