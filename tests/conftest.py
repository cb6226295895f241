"""Test harness configuration.

This repo uses a `src/` layout. Ensure tests always import the in-repo code
rather than an older installed `msh_bootstrap` package.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 60


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    src_path = str(src_dir)
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """
    Apply a default per-test timeout to non-integration tests.

    This relies on `pytest-timeout` when installed; if it isn't installed, the
    marker is inert but still documents the intent.
    """
    _ = session, config
    for item in items:
        if item.get_closest_marker("integration") is not None:
            continue
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


@pytest.fixture()
def server_dir(tmp_path: Path) -> Path:
    """A server folder containing a placeholder server jar."""
    folder = tmp_path / "server"
    folder.mkdir()
    (folder / "server.jar").write_bytes(b"")
    return folder


@pytest.fixture()
def write_config(tmp_path: Path):
    """Write an msh-config.json into `tmp_path / "msh"` and return that folder."""

    def _write(payload: dict) -> Path:
        base_dir = tmp_path / "msh"
        base_dir.mkdir(exist_ok=True)
        (base_dir / "msh-config.json").write_text(
            json.dumps(payload, indent=2), encoding="utf-8"
        )
        return base_dir

    return _write
