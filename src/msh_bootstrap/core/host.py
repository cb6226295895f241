from __future__ import annotations

import sys
from typing import Optional

from .errors import HostUnsupportedError

SUPPORTED_PLATFORMS = ("linux", "win32", "darwin")


def check_host_support(platform: Optional[str] = None) -> str:
    platform = platform or sys.platform
    if not any(platform.startswith(prefix) for prefix in SUPPORTED_PLATFORMS):
        raise HostUnsupportedError(
            f"OS is not supported: {platform}", origin="check_host_support"
        )
    return platform


__all__ = ["SUPPORTED_PLATFORMS", "check_host_support"]
