from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from msh_bootstrap.core.config import Configuration
from msh_bootstrap.core.errors import CheckError, ErrorCode
from msh_bootstrap.core.server_version import probe_server_version, read_version_info


def _write_jar(path: Path, version_json: dict | None) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")
        if version_json is not None:
            archive.writestr("version.json", json.dumps(version_json))
    return path


def test_read_version_info(tmp_path: Path) -> None:
    jar = _write_jar(
        tmp_path / "server.jar",
        {"id": "1.20.1", "name": "1.20.1", "protocol_version": 763},
    )
    assert read_version_info(jar) == ("1.20.1", 763)


def test_probe_uses_configured_folder_and_file(tmp_path: Path) -> None:
    _write_jar(tmp_path / "paper.jar", {"name": "1.19.4", "protocol_version": 762})
    config = Configuration()
    config.server.folder = str(tmp_path)
    config.server.file_name = "paper.jar"

    assert probe_server_version(config) == ("1.19.4", 762)


def test_missing_version_entry_is_soft_error(tmp_path: Path) -> None:
    jar = _write_jar(tmp_path / "server.jar", None)
    with pytest.raises(CheckError) as excinfo:
        read_version_info(jar)
    assert excinfo.value.code is ErrorCode.VERSION_LOAD
    assert not excinfo.value.fatal


def test_not_a_jar_is_soft_error(tmp_path: Path) -> None:
    jar = tmp_path / "server.jar"
    jar.write_bytes(b"not a zip")
    with pytest.raises(CheckError):
        read_version_info(jar)


def test_invalid_protocol_type(tmp_path: Path) -> None:
    jar = _write_jar(
        tmp_path / "server.jar", {"name": "1.20.1", "protocol_version": "763"}
    )
    with pytest.raises(CheckError, match="unexpected"):
        read_version_info(jar)
