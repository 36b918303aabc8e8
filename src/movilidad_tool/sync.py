"""Envío de muestras nuevas/borradas a un servidor remoto."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

import httpx

from movilidad_tool.model import Sample

logger = logging.getLogger(__name__)


class NetworkSync(Protocol):
    """Fire-and-forget receiver of anchored-query batches."""

    def push(
        self, metric: str, added: Sequence[Sample], deleted: Sequence[str]
    ) -> None: ...


class LoggingSync:
    """Sync that only logs what would be sent."""

    def push(
        self, metric: str, added: Sequence[Sample], deleted: Sequence[str]
    ) -> None:
        logger.info(
            "Push %s: %d added, %d deleted", metric, len(added), len(deleted)
        )


class HttpSync:
    """POST each batch as JSON to ``url``; failures are logged and dropped."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=5.0), transport=transport
        )

    def push(
        self, metric: str, added: Sequence[Sample], deleted: Sequence[str]
    ) -> None:
        payload = {
            "metric": metric,
            "added": [_sample_payload(s) for s in added],
            "deleted": list(deleted),
        }
        try:
            response = self._client.post(self._url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Sync of %s to %s failed: %s", metric, self._url, exc)
            return
        logger.info(
            "Pushed %s: %d added, %d deleted", metric, len(added), len(deleted)
        )

    def close(self) -> None:
        self._client.close()


def _sample_payload(sample: Sample) -> dict[str, object]:
    return {
        "id": sample.sample_id,
        "start": sample.start.isoformat(),
        "end": sample.end.isoformat(),
        "value": sample.value,
    }
