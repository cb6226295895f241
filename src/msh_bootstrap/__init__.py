"""Startup bootstrap for a Minecraft server hibernation supervisor."""

from .core.bootstrap import BootstrapResult, bootstrap
from .core.overlay import RuntimeOverrides

__all__ = ["BootstrapResult", "RuntimeOverrides", "bootstrap"]
