"""Startup bootstrap: load, overlay, validate and persist the configuration.

Order of work for one process start::

    validate-host -> load-default (derive identity, probe version)
    -> load-runtime (overlay flags, set verbosity, promote identity,
       validate environment, resolve network, load icon)
    -> conditional save -> ready

Host and load failures raise. Everything else is logged and recorded in the
returned ``BootstrapResult``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from .config import Configuration
from .config_store import ConfigStore, resolve_executable_path
from .environment import EnvironmentValidator
from .errors import (
    CheckError,
    MshError,
    SaveError,
    ServerStatus,
    StatusCode,
    Verbosity,
)
from .host import check_host_support
from .icon import DEFAULT_SERVER_ICON, load_server_icon
from .identity import protected_machine_id, refresh_identity
from .logging_utils import log_error, log_event, set_debug_level
from .network import ProxyEndpoints, resolve_endpoints
from .overlay import RuntimeOverrides, overlay, promote_identity
from .server_version import probe_server_version

logger = logging.getLogger("msh_bootstrap.core.bootstrap")

ValidatorFactory = Callable[[Configuration, ServerStatus], EnvironmentValidator]


@dataclass
class BootstrapResult:
    default: Configuration
    runtime: Configuration
    status: ServerStatus = field(default_factory=ServerStatus)
    endpoints: Optional[ProxyEndpoints] = None
    server_icon: str = DEFAULT_SERVER_ICON
    save_required: bool = False
    saved_path: Optional[Path] = None
    save_error: Optional[SaveError] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ready": True,
            "saved_path": str(self.saved_path) if self.saved_path else None,
            "save_required": self.save_required,
            "save_error": self.save_error.to_dict() if self.save_error else None,
            "status": self.status.to_dict(),
            "endpoints": self.endpoints.to_dict() if self.endpoints else None,
            "has_server_icon": bool(self.server_icon),
            "runtime": self.runtime.to_dict(),
        }


@dataclass
class BootstrapHooks:
    """External collaborators used by the bootstrap; replaced in tests."""

    host_check: Callable[[], Any] = check_host_support
    hardware_id_provider: Callable[[], str] = protected_machine_id
    executable_dir_provider: Optional[Callable[[], str]] = None
    version_probe: Callable[[Configuration], tuple[str, int]] = probe_server_version
    validator_factory: ValidatorFactory = EnvironmentValidator
    endpoint_resolver: Callable[[Configuration], ProxyEndpoints] = resolve_endpoints
    icon_loader: Callable[[Path], str] = load_server_icon


def load_default(store: ConfigStore, hooks: BootstrapHooks) -> tuple[Configuration, bool]:
    """Load the persisted config; return it with the dirty flag."""
    config = store.load_default()
    # The identity follows the install location, not the config location.
    executable_dir_provider = hooks.executable_dir_provider or (
        lambda: str(resolve_executable_path().parent)
    )
    dirty = refresh_identity(
        config,
        hardware_id_provider=hooks.hardware_id_provider,
        executable_dir_provider=executable_dir_provider,
    )

    # Version and protocol are informative only; stale values are kept on failure.
    try:
        version, protocol = hooks.version_probe(config)
    except MshError as exc:
        log_error(logger, exc.add_trace("load_default"))
    else:
        if config.server.version != version or config.server.protocol != protocol:
            config.server.version = version
            config.server.protocol = protocol
            dirty = True
    return config, dirty


def load_runtime(
    default: Configuration,
    overrides: Optional[RuntimeOverrides],
    hooks: BootstrapHooks,
) -> tuple[BootstrapResult, bool]:
    runtime = overlay(default, overrides)
    log_event(
        logger,
        logging.INFO,
        "logging.debug_level",
        verbosity=Verbosity.A,
        debug=runtime.msh.debug,
    )
    set_debug_level(runtime.msh.debug)

    result = BootstrapResult(default=default, runtime=runtime)
    dirty = promote_identity(default, runtime)

    hooks.validator_factory(runtime, result.status).validate()

    try:
        result.endpoints = hooks.endpoint_resolver(runtime)
    except CheckError as exc:
        result.status.record(
            StatusCode.PROXY_SETUP_FAILED,
            "proxy setup failed, check msh logs",
            origin="load_runtime",
        )
        log_error(logger, exc.add_trace("load_runtime"))
    else:
        log_event(
            logger,
            logging.INFO,
            "proxy.setup",
            verbosity=Verbosity.D,
            **result.endpoints.to_dict(),
        )

    try:
        result.server_icon = hooks.icon_loader(Path(runtime.server.folder))
    except CheckError as exc:
        log_error(logger, exc.add_trace("load_runtime"))
    return result, dirty


def bootstrap(
    overrides: Optional[RuntimeOverrides] = None,
    *,
    store: Optional[ConfigStore] = None,
    hooks: Optional[BootstrapHooks] = None,
) -> BootstrapResult:
    """Run the whole startup sequence once.

    Raises ``HostUnsupportedError`` or ``LoadError``. A failed save is reported
    through ``BootstrapResult.save_error``.
    """
    store = store or ConfigStore()
    hooks = hooks or BootstrapHooks()

    log_event(logger, logging.DEBUG, "bootstrap.host_check", verbosity=Verbosity.D)
    try:
        hooks.host_check()
    except MshError as exc:
        exc.add_trace("bootstrap")
        raise

    log_event(logger, logging.DEBUG, "bootstrap.load_config", verbosity=Verbosity.D)
    try:
        default, default_dirty = load_default(store, hooks)
    except MshError as exc:
        exc.add_trace("bootstrap")
        raise

    result, runtime_dirty = load_runtime(default, overrides, hooks)
    result.save_required = default_dirty or runtime_dirty

    if result.save_required:
        try:
            result.saved_path = store.save(default)
        except SaveError as exc:
            result.save_error = exc
            log_error(logger, exc.add_trace("bootstrap"), level=logging.ERROR)

    log_event(
        logger,
        logging.INFO,
        "bootstrap.ready",
        verbosity=Verbosity.B,
        usable=result.status.usable,
        saved=result.saved_path is not None,
    )
    return result


__all__ = [
    "BootstrapHooks",
    "BootstrapResult",
    "bootstrap",
    "load_default",
    "load_runtime",
]
