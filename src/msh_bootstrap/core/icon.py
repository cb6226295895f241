from __future__ import annotations

import base64
import struct
from pathlib import Path

from .errors import CheckError, ErrorCode, Verbosity

FROZEN_ICON_FILENAME = "server-icon-frozen.png"
ICON_SIZE = 64

# Empty means no favicon is advertised in the server list response.
DEFAULT_SERVER_ICON = ""

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _icon_error(message: str) -> CheckError:
    return CheckError(
        message, code=ErrorCode.ICON_LOAD, level=Verbosity.D, origin="load_server_icon"
    )


def png_size(data: bytes) -> tuple[int, int]:
    if len(data) < 24 or not data.startswith(_PNG_SIGNATURE) or data[12:16] != b"IHDR":
        raise _icon_error("icon is not a valid png image")
    width, height = struct.unpack(">II", data[16:24])
    return width, height


def load_server_icon(folder: Path) -> str:
    """Return the frozen server icon as base64 text."""
    path = folder / FROZEN_ICON_FILENAME
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise _icon_error(f"could not read {path}: {exc}") from exc
    width, height = png_size(data)
    if (width, height) != (ICON_SIZE, ICON_SIZE):
        raise _icon_error(
            f"icon must be {ICON_SIZE}x{ICON_SIZE}, got {width}x{height}: {path}"
        )
    return base64.b64encode(data).decode("ascii")


__all__ = ["DEFAULT_SERVER_ICON", "load_server_icon", "png_size"]
