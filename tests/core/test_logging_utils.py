from __future__ import annotations

import json
import logging

import pytest

from msh_bootstrap.core.errors import Verbosity
from msh_bootstrap.core.logging_utils import VerbosityFilter, log_event


def _record(verbosity=None) -> logging.LogRecord:
    record = logging.LogRecord("msh_bootstrap.test", logging.INFO, __file__, 1, "m", (), None)
    if verbosity is not None:
        record.verbosity = int(verbosity)
    return record


def test_verbosity_filter_threshold() -> None:
    flt = VerbosityFilter(Verbosity.B)

    assert flt.filter(_record(Verbosity.A))
    assert flt.filter(_record(Verbosity.B))
    assert not flt.filter(_record(Verbosity.D))
    assert flt.filter(_record())


def test_verbosity_filter_none_hides_all_tagged_records() -> None:
    flt = VerbosityFilter(Verbosity.NONE)
    assert not flt.filter(_record(Verbosity.A))


def test_log_event_emits_json_payload(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("msh_bootstrap.test")
    with caplog.at_level(logging.INFO):
        log_event(
            logger,
            logging.INFO,
            "server.bootstrap.starting",
            verbosity=Verbosity.D,
            cwd="/srv",
            skipped=None,
            exc=RuntimeError("boom"),
        )

    record = caplog.records[-1]
    payload = json.loads(record.getMessage())
    assert payload == {
        "event": "server.bootstrap.starting",
        "cwd": "/srv",
        "error": "boom",
        "error_type": "RuntimeError",
    }
    assert record.verbosity == Verbosity.D
