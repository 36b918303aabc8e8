from __future__ import annotations

import json
import logging
from datetime import datetime

import httpx
import pytest
from conftest import slot

from movilidad_tool.sync import HttpSync, LoggingSync


def test_http_sync_posts_batch() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    sample = slot("step_count", datetime(2020, 6, 10, 8), 120)
    sync = HttpSync("http://sync.test/samples", transport=httpx.MockTransport(handler))
    sync.push("step_count", [sample], ["old-id"])
    sync.close()

    assert len(seen) == 1
    assert seen[0].method == "POST"
    body = json.loads(seen[0].content)
    assert body == {
        "metric": "step_count",
        "added": [
            {
                "id": sample.sample_id,
                "start": "2020-06-10T08:00:00",
                "end": "2020-06-10T08:15:00",
                "value": 120.0,
            }
        ],
        "deleted": ["old-id"],
    }


def test_http_sync_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    sync = HttpSync("http://sync.test/samples", transport=httpx.MockTransport(handler))
    with caplog.at_level(logging.ERROR, logger="movilidad_tool.sync"):
        sync.push("step_count", [], ["gone"])
    sync.close()

    assert "Sync of step_count" in caplog.text


def test_logging_sync(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="movilidad_tool.sync"):
        LoggingSync().push("walking_speed", [], [])
    assert "walking_speed: 0 added, 0 deleted" in caplog.text
