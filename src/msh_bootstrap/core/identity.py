"""Installation identity derivation.

The identity is ``sha1_hex(protected_machine_id + executable_dir)``: stable
for a given machine and install location, distinct across installs.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import subprocess
import sys
from pathlib import Path
from typing import Callable, Optional

from .config import Configuration
from .errors import CheckError, Verbosity
from .logging_utils import log_error, log_event

logger = logging.getLogger("msh_bootstrap.core.identity")

APP_ID = "msh"

_LINUX_MACHINE_ID_PATHS = (
    Path("/var/lib/dbus/machine-id"),
    Path("/etc/machine-id"),
)
_IOREG_UUID_RE = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


class IdentityUnavailableError(Exception):
    """Raised when no hardware-bound identifier can be read."""


def _read_linux_machine_id() -> Optional[str]:
    for candidate in _LINUX_MACHINE_ID_PATHS:
        try:
            value = candidate.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if value:
            return value
    return None


def _read_darwin_machine_id() -> Optional[str]:
    try:
        proc = subprocess.run(
            ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    match = _IOREG_UUID_RE.search(proc.stdout or "")
    return match.group(1) if match else None


def _read_windows_machine_id() -> Optional[str]:
    try:
        import winreg  # type: ignore[import-not-found]
    except ImportError:
        return None
    try:
        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE,
            r"SOFTWARE\Microsoft\Cryptography",
            0,
            winreg.KEY_QUERY_VALUE | winreg.KEY_WOW64_64KEY,
        ) as key:
            value, _ = winreg.QueryValueEx(key, "MachineGuid")
    except OSError:
        return None
    return str(value).strip() or None


def read_machine_id(platform: Optional[str] = None) -> str:
    platform = platform or sys.platform
    if platform.startswith("win"):
        value = _read_windows_machine_id()
    elif platform == "darwin":
        value = _read_darwin_machine_id()
    else:
        value = _read_linux_machine_id()
    if not value:
        raise IdentityUnavailableError(f"no machine id available on {platform}")
    return value


def protected_machine_id(app_id: str = APP_ID) -> str:
    """Return the machine id keyed with ``app_id`` so the raw id is never exposed."""
    machine_id = read_machine_id()
    return hmac.new(
        machine_id.encode("utf-8"), app_id.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def derive_identity(hardware_id: str, executable_dir: str) -> str:
    return hashlib.sha1((hardware_id + executable_dir).encode("utf-8")).hexdigest()


def refresh_identity(
    config: Configuration,
    *,
    hardware_id_provider: Callable[[], str],
    executable_dir_provider: Callable[[], str],
) -> bool:
    """Re-derive the identity of ``config``; return True when it changed.

    If either provider fails, the stored identity is kept as it is.
    """
    try:
        hardware_id = hardware_id_provider()
        executable_dir = executable_dir_provider()
    except Exception as exc:
        log_error(
            logger,
            CheckError(
                f"error while generating machine id, keeping stored id: {exc}",
                level=Verbosity.D,
                origin="refresh_identity",
            ),
        )
        return False

    identity = derive_identity(hardware_id, executable_dir)
    if identity == config.msh.id:
        return False
    log_event(
        logger,
        logging.INFO,
        "identity.derived",
        verbosity=Verbosity.D,
        previous=config.msh.id or None,
    )
    config.msh.id = identity
    return True


__all__ = [
    "APP_ID",
    "IdentityUnavailableError",
    "derive_identity",
    "protected_machine_id",
    "read_machine_id",
    "refresh_identity",
]
