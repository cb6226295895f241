"""Checks of the supervised server environment.

Nothing here raises: every failure is logged and written into the
``ServerStatus`` record so the bootstrap can still reach the ready state.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from .config import Configuration
from .errors import CheckError, ErrorCode, ServerStatus, StatusCode, Verbosity
from .logging_utils import COLOR_CYAN, COLOR_RESET, log_error, log_event

logger = logging.getLogger("msh_bootstrap.core.environment")

EULA_FILENAME = "eula.txt"
EULA_TOKEN = "eula=true"
JAVA_BINARY = "java"
UNKNOWN_JAVA_VERSION = "unknown"

Launcher = Callable[[Sequence[str], Path], None]


class EulaState(str, Enum):
    ACCEPTED = "accepted"
    NOT_ACCEPTED = "not_accepted"
    MISSING = "missing"


def split_command(command: str) -> list[str]:
    return shlex.split(command, posix=os.name != "nt")


def launch_server_once(argv: Sequence[str], cwd: Path) -> None:
    """Run the server in the foreground until it exits, output passed through.

    No timeout: the call blocks for as long as the server runs.
    """
    if not argv:
        raise ValueError("start command is empty")
    sys.stdout.write(COLOR_CYAN)
    sys.stdout.flush()
    try:
        subprocess.run(list(argv), cwd=str(cwd), check=True)
    finally:
        sys.stdout.write(COLOR_RESET)
        sys.stdout.flush()


def eula_accepted(text: str) -> bool:
    normalized = "".join(text.lower().split())
    return EULA_TOKEN in normalized


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


class EnvironmentValidator:
    def __init__(
        self,
        runtime: Configuration,
        status: ServerStatus,
        *,
        launcher: Optional[Launcher] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self._runtime = runtime
        self._status = status
        self._launcher = launcher or launch_server_once
        self._which = which
        self._run = run

    @property
    def server_folder(self) -> Path:
        return Path(self._runtime.server.folder)

    @property
    def server_file(self) -> Path:
        return self.server_folder / self._runtime.server.file_name

    def validate(self) -> ServerStatus:
        if self.check_server_presence():
            self.check_eula()
            self.check_java()
        return self._status

    def check_server_presence(self) -> bool:
        server_file = self.server_file
        if server_file.exists():
            return True
        self._status.record(
            StatusCode.SERVER_MISSING,
            "specified minecraft server folder/file does not exist",
            origin="check_server_presence",
        )
        log_error(
            logger,
            CheckError(
                f"specified server file/folder does not exist: {server_file}",
                level=Verbosity.B,
                origin="check_server_presence",
            ),
        )
        return False

    def check_eula(self) -> EulaState:
        eula_path = self.server_folder / EULA_FILENAME
        text = _read_text(eula_path)
        exists = text is not None
        if not exists:
            log_error(
                logger,
                CheckError(
                    f"could not read eula file: {eula_path}",
                    level=Verbosity.B,
                    origin="check_eula",
                ),
            )
            self._bootstrap_server_files()
            text = _read_text(eula_path)

        if text is not None and eula_accepted(text):
            log_event(
                logger,
                logging.INFO,
                "eula.accepted",
                verbosity=Verbosity.B,
                path=str(eula_path),
            )
            return EulaState.ACCEPTED

        self._status.record(
            StatusCode.EULA_NOT_ACCEPTED,
            "please accept minecraft server eula.txt",
            origin="check_eula",
        )
        log_error(
            logger,
            CheckError(
                f"please accept minecraft server eula.txt: {eula_path}",
                level=Verbosity.B,
                origin="check_eula",
            ),
        )
        return EulaState.NOT_ACCEPTED if text is not None else EulaState.MISSING

    def _bootstrap_server_files(self) -> None:
        """Start the server once so it generates eula.txt and server.properties."""
        command = self._runtime.commands.start_server
        log_event(
            logger,
            logging.INFO,
            "server.bootstrap.starting",
            verbosity=Verbosity.D,
            command=command,
            cwd=str(self.server_folder),
        )
        try:
            self._launcher(split_command(command), self.server_folder)
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            self._status.record(
                StatusCode.SERVER_START_FAILED,
                "couldn't start minecraft server to generate eula.txt\n"
                "(are you using the correct java version?)",
                origin="check_eula",
            )
            log_error(
                logger,
                CheckError(
                    f"couldn't start minecraft server to generate eula.txt: [{exc}]",
                    code=ErrorCode.TERMINAL_START,
                    level=Verbosity.B,
                    origin="check_eula",
                ),
            )

    def check_java(self) -> Optional[str]:
        if self._which(JAVA_BINARY) is None:
            self._status.record(
                StatusCode.JAVA_MISSING, "java not installed", origin="check_java"
            )
            log_error(
                logger,
                CheckError("java not installed", level=Verbosity.B, origin="check_java"),
            )
            return None
        try:
            proc = self._run(
                [JAVA_BINARY, "--version"],
                check=True,
                capture_output=True,
                text=True,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            log_error(
                logger,
                CheckError(
                    f"could not execute 'java --version' command: {exc}",
                    level=Verbosity.B,
                    origin="check_java",
                ),
            )
            version = UNKNOWN_JAVA_VERSION
        else:
            version = (proc.stdout or "").split("\n")[0].replace("\r", "")
        self._status.java_version = version
        log_event(
            logger,
            logging.DEBUG,
            "java.detected",
            verbosity=Verbosity.D,
            version=version,
        )
        return version


__all__ = [
    "EULA_FILENAME",
    "EnvironmentValidator",
    "EulaState",
    "eula_accepted",
    "launch_server_once",
    "split_command",
]
