from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .config import Configuration, is_healthy_identity, substitute_placeholders
from .errors import CheckError, Verbosity
from .logging_utils import log_error, log_event

logger = logging.getLogger("msh_bootstrap.core.overlay")


@dataclass(frozen=True)
class RuntimeOverrides:
    """Command-line values; ``None`` means the flag was not supplied."""

    folder: Optional[str] = None
    file_name: Optional[str] = None
    version: Optional[str] = None
    protocol: Optional[int] = None
    start_server_param: Optional[str] = None
    stop_server_allow_kill: Optional[int] = None
    identity: Optional[str] = None
    debug: Optional[int] = None
    allow_suspend: Optional[bool] = None
    info_hibernation: Optional[str] = None
    info_starting: Optional[str] = None
    notify_update: Optional[bool] = None
    notify_message: Optional[bool] = None
    listen_port: Optional[int] = None
    time_before_stopping_empty_server: Optional[int] = None

    def supplied(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }


# override field -> (config section, section field)
_TARGETS: dict[str, tuple[str, str]] = {
    "folder": ("server", "folder"),
    "file_name": ("server", "file_name"),
    "version": ("server", "version"),
    "protocol": ("server", "protocol"),
    "start_server_param": ("commands", "start_server_param"),
    "stop_server_allow_kill": ("commands", "stop_server_allow_kill"),
    "identity": ("msh", "id"),
    "debug": ("msh", "debug"),
    "allow_suspend": ("msh", "allow_suspend"),
    "info_hibernation": ("msh", "info_hibernation"),
    "info_starting": ("msh", "info_starting"),
    "notify_update": ("msh", "notify_update"),
    "notify_message": ("msh", "notify_message"),
    "listen_port": ("msh", "listen_port"),
    "time_before_stopping_empty_server": ("msh", "time_before_stopping_empty_server"),
}


def overlay(
    default: Configuration, overrides: Optional[RuntimeOverrides] = None
) -> Configuration:
    """Build the runtime configuration from ``default`` without mutating it."""
    runtime = default.copy()
    if overrides is not None:
        for name, value in overrides.supplied().items():
            section, field_name = _TARGETS[name]
            setattr(getattr(runtime, section), field_name, value)
    substitute_placeholders(runtime)
    return runtime


def promote_identity(default: Configuration, runtime: Configuration) -> bool:
    """Copy a user supplied runtime identity into ``default`` when it looks healthy.

    Only the length is checked. An unhealthy runtime identity is replaced by
    the default one. Returns True when ``default`` changed.
    """
    if runtime.msh.id == default.msh.id:
        return False
    if not is_healthy_identity(runtime.msh.id):
        log_error(
            logger,
            CheckError(
                "user specified msh id is not healthy, using default msh id",
                level=Verbosity.D,
                origin="promote_identity",
            ),
        )
        runtime.msh.id = default.msh.id
        return False
    log_event(
        logger,
        logging.INFO,
        "identity.promoted",
        verbosity=Verbosity.D,
    )
    default.msh.id = runtime.msh.id
    return True


__all__ = ["RuntimeOverrides", "overlay", "promote_identity"]
