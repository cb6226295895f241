"""Error model for the startup bootstrap.

Two severities exist. Fatal errors (``LoadError``, ``HostUnsupportedError``)
propagate to the caller and abort startup. Soft errors (``CheckError``) are
logged and, where relevant, recorded in a ``ServerStatus`` so that the rest of
the process can decide whether the server environment is usable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional


class Verbosity(IntEnum):
    """Debug level at which a log record or error becomes visible."""

    NONE = 0
    A = 1  # always shown: fundamental messages
    B = 2  # basic startup messages
    C = 3  # connection and process messages
    D = 4  # detailed bootstrap messages
    E = 5  # everything


class ErrorCode(str, Enum):
    CONFIG_LOAD = "config_load"
    CONFIG_SAVE = "config_save"
    CONFIG_CHECK = "config_check"
    OS_NOT_SUPPORTED = "os_not_supported"
    MINECRAFT_SERVER = "minecraft_server"
    TERMINAL_START = "terminal_start"
    VERSION_LOAD = "version_load"
    ADDRESS_PORT = "address_port"
    ICON_LOAD = "icon_load"


class MshError(Exception):
    """Base error carrying a code, a verbosity level and an origin trace."""

    fatal = False

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        level: Verbosity = Verbosity.B,
        origin: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.level = level
        self.trace: list[str] = [origin] if origin else []

    def add_trace(self, origin: str) -> "MshError":
        self.trace.insert(0, origin)
        return self

    def __str__(self) -> str:
        if not self.trace:
            return self.message
        return f"{' > '.join(self.trace)}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "level": int(self.level),
            "trace": list(self.trace),
            "fatal": self.fatal,
        }


class LoadError(MshError):
    """Raised when the persisted configuration cannot be loaded."""

    fatal = True

    def __init__(
        self,
        message: str,
        *,
        level: Verbosity = Verbosity.B,
        origin: Optional[str] = None,
    ) -> None:
        super().__init__(ErrorCode.CONFIG_LOAD, message, level=level, origin=origin)


class SaveError(MshError):
    """Raised when the default configuration cannot be written back."""

    def __init__(
        self,
        message: str,
        *,
        level: Verbosity = Verbosity.D,
        origin: Optional[str] = None,
    ) -> None:
        super().__init__(ErrorCode.CONFIG_SAVE, message, level=level, origin=origin)


class HostUnsupportedError(MshError):
    """Raised when the operating system is not supported."""

    fatal = True

    def __init__(
        self,
        message: str,
        *,
        level: Verbosity = Verbosity.B,
        origin: Optional[str] = None,
    ) -> None:
        super().__init__(
            ErrorCode.OS_NOT_SUPPORTED, message, level=level, origin=origin
        )


class CheckError(MshError):
    """Soft failure: logged, possibly recorded, never halts the bootstrap."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.CONFIG_CHECK,
        level: Verbosity = Verbosity.D,
        origin: Optional[str] = None,
    ) -> None:
        super().__init__(code, message, level=level, origin=origin)


class StatusCode(str, Enum):
    SERVER_MISSING = "server_missing"
    SERVER_START_FAILED = "server_start_failed"
    EULA_NOT_ACCEPTED = "eula_not_accepted"
    JAVA_MISSING = "java_missing"
    PROXY_SETUP_FAILED = "proxy_setup_failed"


@dataclass(frozen=True)
class StatusIssue:
    code: StatusCode
    error: MshError

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.code.value, **self.error.to_dict()}


@dataclass
class ServerStatus:
    """Server environment status recorded during the bootstrap.

    Downstream consumers read ``error`` (the most recent issue) to learn
    whether the supervised server can be started.
    """

    issues: list[StatusIssue] = field(default_factory=list)
    java_version: Optional[str] = None

    def record(
        self,
        code: StatusCode,
        message: str,
        *,
        origin: str,
        level: Verbosity = Verbosity.D,
    ) -> StatusIssue:
        issue = StatusIssue(
            code=code,
            error=MshError(
                ErrorCode.MINECRAFT_SERVER, message, level=level, origin=origin
            ),
        )
        self.issues.append(issue)
        return issue

    def has(self, code: StatusCode) -> bool:
        return any(issue.code == code for issue in self.issues)

    @property
    def error(self) -> Optional[MshError]:
        if not self.issues:
            return None
        return self.issues[-1].error

    @property
    def usable(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "usable": self.usable,
            "java_version": self.java_version,
            "issues": [issue.to_dict() for issue in self.issues],
        }


__all__ = [
    "CheckError",
    "ErrorCode",
    "HostUnsupportedError",
    "LoadError",
    "MshError",
    "SaveError",
    "ServerStatus",
    "StatusCode",
    "StatusIssue",
    "Verbosity",
]
