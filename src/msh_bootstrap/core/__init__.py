"""Core bootstrap primitives."""

from .config import Configuration
from .config_store import ConfigStore
from .errors import (
    CheckError,
    HostUnsupportedError,
    LoadError,
    MshError,
    SaveError,
    ServerStatus,
    StatusCode,
    Verbosity,
)

__all__ = [
    "CheckError",
    "ConfigStore",
    "Configuration",
    "HostUnsupportedError",
    "LoadError",
    "MshError",
    "SaveError",
    "ServerStatus",
    "StatusCode",
    "Verbosity",
]
