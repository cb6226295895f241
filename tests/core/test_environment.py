from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence

import pytest

from msh_bootstrap.core.config import Configuration
from msh_bootstrap.core.environment import (
    EnvironmentValidator,
    EulaState,
    eula_accepted,
    split_command,
)
from msh_bootstrap.core.errors import ServerStatus, StatusCode


class _RecordingLauncher:
    def __init__(self, writes_eula: str | None = None, fail: bool = False) -> None:
        self.calls: list[tuple[list[str], Path]] = []
        self._writes_eula = writes_eula
        self._fail = fail

    def __call__(self, argv: Sequence[str], cwd: Path) -> None:
        self.calls.append((list(argv), cwd))
        if self._fail:
            raise FileNotFoundError("java")
        if self._writes_eula is not None:
            (cwd / "eula.txt").write_text(self._writes_eula, encoding="utf-8")


def _runtime(folder: Path) -> Configuration:
    config = Configuration()
    config.server.folder = str(folder)
    config.server.file_name = "server.jar"
    config.commands.start_server = "java -Xmx1G -jar server.jar nogui"
    return config


def _java_ok(*_args, **_kwargs) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(
        args=["java", "--version"],
        returncode=0,
        stdout='openjdk 17.0.8 2023-07-18\r\nOpenJDK Runtime Environment\n',
        stderr="",
    )


@pytest.mark.parametrize(
    "text, accepted",
    [
        ("eula=true\n", True),
        ("#comment\nEULA = True\n", True),
        ("eula=false\n", False),
        ("", False),
    ],
)
def test_eula_accepted(text: str, accepted: bool) -> None:
    assert eula_accepted(text) is accepted


def test_split_command_keeps_quoted_arguments() -> None:
    assert split_command('java -jar "my server.jar" nogui') == [
        "java",
        "-jar",
        "my server.jar",
        "nogui",
    ]


def test_missing_server_skips_remaining_checks(tmp_path: Path) -> None:
    status = ServerStatus()
    launcher = _RecordingLauncher()
    which_calls: list[str] = []

    def _which(name: str):
        which_calls.append(name)
        return "/usr/bin/java"

    validator = EnvironmentValidator(
        _runtime(tmp_path / "missing"), status, launcher=launcher, which=_which
    )
    validator.validate()

    assert status.has(StatusCode.SERVER_MISSING)
    assert launcher.calls == []
    assert which_calls == []


def test_mixed_case_eula_is_accepted_without_launch(server_dir: Path) -> None:
    (server_dir / "eula.txt").write_text("EULA = True\n", encoding="utf-8")
    status = ServerStatus()
    launcher = _RecordingLauncher()

    state = EnvironmentValidator(
        _runtime(server_dir), status, launcher=launcher
    ).check_eula()

    assert state is EulaState.ACCEPTED
    assert launcher.calls == []
    assert status.usable


def test_false_eula_records_not_accepted_without_launch(server_dir: Path) -> None:
    (server_dir / "eula.txt").write_text("eula=false\n", encoding="utf-8")
    status = ServerStatus()
    launcher = _RecordingLauncher()

    state = EnvironmentValidator(
        _runtime(server_dir), status, launcher=launcher
    ).check_eula()

    assert state is EulaState.NOT_ACCEPTED
    assert launcher.calls == []
    assert status.has(StatusCode.EULA_NOT_ACCEPTED)


def test_missing_eula_bootstraps_server_then_rechecks(server_dir: Path) -> None:
    status = ServerStatus()
    launcher = _RecordingLauncher(writes_eula="eula=false\n")

    state = EnvironmentValidator(
        _runtime(server_dir), status, launcher=launcher
    ).check_eula()

    assert launcher.calls == [
        (["java", "-Xmx1G", "-jar", "server.jar", "nogui"], server_dir)
    ]
    assert state is EulaState.NOT_ACCEPTED
    assert status.has(StatusCode.EULA_NOT_ACCEPTED)
    assert not status.has(StatusCode.SERVER_START_FAILED)


def test_missing_eula_accepted_after_bootstrap(server_dir: Path) -> None:
    status = ServerStatus()
    launcher = _RecordingLauncher(writes_eula="eula=true\n")

    state = EnvironmentValidator(
        _runtime(server_dir), status, launcher=launcher
    ).check_eula()

    assert len(launcher.calls) == 1
    assert state is EulaState.ACCEPTED
    assert status.usable


def test_failed_bootstrap_launch_records_both_statuses(server_dir: Path) -> None:
    status = ServerStatus()
    launcher = _RecordingLauncher(fail=True)

    state = EnvironmentValidator(
        _runtime(server_dir), status, launcher=launcher
    ).check_eula()

    assert state is EulaState.MISSING
    assert [issue.code for issue in status.issues] == [
        StatusCode.SERVER_START_FAILED,
        StatusCode.EULA_NOT_ACCEPTED,
    ]
    assert status.error is status.issues[-1].error


def test_java_missing_is_recorded(server_dir: Path) -> None:
    status = ServerStatus()
    validator = EnvironmentValidator(
        _runtime(server_dir), status, which=lambda _name: None
    )

    assert validator.check_java() is None
    assert status.has(StatusCode.JAVA_MISSING)


def test_java_version_is_first_output_line(server_dir: Path) -> None:
    status = ServerStatus()
    validator = EnvironmentValidator(
        _runtime(server_dir),
        status,
        which=lambda _name: "/usr/bin/java",
        run=_java_ok,
    )

    assert validator.check_java() == "openjdk 17.0.8 2023-07-18"
    assert status.java_version == "openjdk 17.0.8 2023-07-18"
    assert status.usable


def test_java_version_failure_falls_back_to_unknown(server_dir: Path) -> None:
    def _run(*_args, **_kwargs):
        raise subprocess.CalledProcessError(1, ["java", "--version"])

    status = ServerStatus()
    validator = EnvironmentValidator(
        _runtime(server_dir),
        status,
        which=lambda _name: "/usr/bin/java",
        run=_run,
    )

    assert validator.check_java() == "unknown"
    assert status.usable


def test_validate_runs_all_checks_for_present_server(server_dir: Path) -> None:
    (server_dir / "eula.txt").write_text("eula=true", encoding="utf-8")
    status = ServerStatus()

    EnvironmentValidator(
        _runtime(server_dir),
        status,
        launcher=_RecordingLauncher(),
        which=lambda _name: "/usr/bin/java",
        run=_java_ok,
    ).validate()

    assert status.usable
    assert status.java_version.startswith("openjdk")
