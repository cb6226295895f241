from __future__ import annotations

import json
import zipfile
from pathlib import Path

from .config import Configuration
from .errors import CheckError, ErrorCode, Verbosity

VERSION_ENTRY = "version.json"


def read_version_info(server_file: Path) -> tuple[str, int]:
    """Read ``(version name, protocol number)`` from the server jar's version.json."""
    try:
        with zipfile.ZipFile(server_file) as archive:
            raw = archive.read(VERSION_ENTRY)
    except (OSError, KeyError, zipfile.BadZipFile) as exc:
        raise CheckError(
            f"could not read {VERSION_ENTRY} from {server_file}: {exc}",
            code=ErrorCode.VERSION_LOAD,
            level=Verbosity.D,
            origin="read_version_info",
        ) from exc
    try:
        data = json.loads(raw)
        name = data["name"]
        protocol = data["protocol_version"]
    except (ValueError, KeyError, TypeError) as exc:
        raise CheckError(
            f"invalid {VERSION_ENTRY} in {server_file}: {exc}",
            code=ErrorCode.VERSION_LOAD,
            level=Verbosity.D,
            origin="read_version_info",
        ) from exc
    if not isinstance(name, str) or isinstance(protocol, bool) or not isinstance(
        protocol, int
    ):
        raise CheckError(
            f"unexpected version info in {server_file}",
            code=ErrorCode.VERSION_LOAD,
            level=Verbosity.D,
            origin="read_version_info",
        )
    return name, protocol


def probe_server_version(config: Configuration) -> tuple[str, int]:
    server_file = Path(config.server.folder) / config.server.file_name
    return read_version_info(server_file)


__all__ = ["probe_server_version", "read_version_info"]
