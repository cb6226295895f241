from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from .config import Configuration
from .errors import CheckError, ErrorCode, Verbosity

SERVER_PROPERTIES_FILENAME = "server.properties"
DEFAULT_SERVER_PORT = 25565
LISTEN_HOST = "0.0.0.0"
TARGET_HOST = "127.0.0.1"


@dataclass(frozen=True)
class ProxyEndpoints:
    listen_host: str
    listen_port: int
    target_host: str
    target_port: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _port_error(message: str) -> CheckError:
    return CheckError(
        message,
        code=ErrorCode.ADDRESS_PORT,
        level=Verbosity.B,
        origin="resolve_endpoints",
    )


def read_server_port(folder: Path) -> int:
    """Return ``server-port`` from server.properties, or the Minecraft default."""
    path = folder / SERVER_PROPERTIES_FILENAME
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return DEFAULT_SERVER_PORT
    raw: Optional[str] = None
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        if key.strip() == "server-port":
            raw = value.strip()
    if not raw:
        return DEFAULT_SERVER_PORT
    try:
        return int(raw)
    except ValueError as exc:
        raise _port_error(f"invalid server-port in {path}: {raw!r}") from exc


def _validate_port(port: int, name: str) -> int:
    if not 0 < port < 65536:
        raise _port_error(f"{name} out of range: {port}")
    return port


def resolve_endpoints(runtime: Configuration) -> ProxyEndpoints:
    listen_port = _validate_port(runtime.msh.listen_port, "listen port")
    target_port = _validate_port(
        read_server_port(Path(runtime.server.folder)), "server port"
    )
    if listen_port == target_port:
        raise _port_error(
            f"msh port and minecraft server port are the same: {listen_port}"
        )
    return ProxyEndpoints(
        listen_host=LISTEN_HOST,
        listen_port=listen_port,
        target_host=TARGET_HOST,
        target_port=target_port,
    )


__all__ = ["DEFAULT_SERVER_PORT", "ProxyEndpoints", "read_server_port", "resolve_endpoints"]
