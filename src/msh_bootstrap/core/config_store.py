from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config import CONFIG_FILENAME, ConfigError, Configuration
from .errors import LoadError, SaveError, Verbosity
from .logging_utils import log_event

logger = logging.getLogger("msh_bootstrap.core.config_store")


def resolve_executable_path() -> Path:
    """Return the path of the running program (entry script or interpreter)."""
    argv0 = sys.argv[0] if sys.argv else ""
    if argv0 and argv0 not in ("-c", "-m"):
        candidate = Path(argv0)
        if candidate.exists():
            return candidate.resolve()
    if sys.executable:
        return Path(sys.executable).resolve()
    raise OSError("could not resolve executable path")


class ConfigStore:
    """Persisted default configuration, stored beside the executable."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir

    @property
    def base_dir(self) -> Path:
        if self._base_dir is None:
            self._base_dir = resolve_executable_path().parent
        return self._base_dir

    @property
    def path(self) -> Path:
        return self.base_dir / CONFIG_FILENAME

    def load_default(self) -> Configuration:
        try:
            path = self.path
        except OSError as exc:
            raise LoadError(str(exc), origin="load_default") from exc
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LoadError(
                f"could not read config file {path}: {exc}", origin="load_default"
            ) from exc
        try:
            config = Configuration.from_json(text)
        except ConfigError as exc:
            raise LoadError(
                f"could not parse config file {path}: {exc}", origin="load_default"
            ) from exc
        log_event(
            logger,
            logging.DEBUG,
            "config.loaded",
            verbosity=Verbosity.D,
            path=str(path),
        )
        return config

    def save(self, config: Configuration) -> Path:
        try:
            payload = config.to_json()
        except (TypeError, ValueError) as exc:
            raise SaveError(
                f"could not serialize config: {exc}", origin="save"
            ) from exc
        try:
            path = self.path
            path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise SaveError(
                f"could not write to config file: {exc}", origin="save"
            ) from exc
        log_event(
            logger,
            logging.INFO,
            "config.saved",
            verbosity=Verbosity.D,
            path=str(path),
        )
        return path


def load_dotenv_for_executable(base_dir: Optional[Path] = None) -> None:
    """Best-effort load of a .env file placed beside the executable."""
    try:
        base_dir = base_dir or resolve_executable_path().parent
        candidate = base_dir / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=candidate, override=False)
    except OSError as exc:
        logger.debug("Failed to load .env file: %s", exc)


__all__ = ["ConfigStore", "load_dotenv_for_executable", "resolve_executable_path"]
