"""HTTP publisher for reporting batches.

Posts `Series.to_json()` to the collector endpoint with a single pooled
connection and separate connect / read timeouts. Redirects are followed.
The response body is ignored; any transport error or HTTP status >= 400 is
raised as `PublishError` for the reporter's cycle boundary to log.
"""
from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from ..metrics.series import Series
from ..utils.exceptions import PublishError
from ..version import get_version

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_MS = 2000
DEFAULT_SOCKET_TIMEOUT_MS = 2000


def _build_session() -> requests.Session:
    session = requests.Session()
    # One collector, one connection: never open parallel sockets to it
    adapter = HTTPAdapter(pool_connections=1, pool_maxsize=1, max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({
        "Content-Type": "application/json",
        "Accept": "application/json, text/plain, */*",
        "User-Agent": f"metrics-relay/{get_version()}",
    })
    return session


class HttpPublisher:
    def __init__(
        self,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        socket_timeout_ms: int = DEFAULT_SOCKET_TIMEOUT_MS,
        session: Any | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.connect_timeout_ms = connect_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms
        self._owns_session = session is None
        self.session = session if session is not None else _build_session()
        self.headers = dict(headers or {})

    @property
    def timeout(self) -> tuple[float, float]:
        """requests-style (connect, read) timeout in seconds."""
        return (self.connect_timeout_ms / 1000.0, self.socket_timeout_ms / 1000.0)

    def publish(self, url: str, series: Series) -> None:
        body = series.to_json()
        headers = {"Content-Type": "application/json", **self.headers}
        try:
            resp = self.session.post(url, data=body, headers=headers, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise PublishError(f"POST {url} failed: {e}") from e
        try:
            status = resp.status_code
            if status >= 400:
                snippet = (resp.text or "")[:200]
                raise PublishError(f"POST {url} returned HTTP {status}: {snippet}", status_code=status)
            logger.debug("POST %s -> %s (%d observations, %d bytes)", url, status, len(series), len(body))
        finally:
            resp.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


__all__ = [
    "HttpPublisher",
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "DEFAULT_SOCKET_TIMEOUT_MS",
]
