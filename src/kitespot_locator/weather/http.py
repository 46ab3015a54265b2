"""httpx plumbing shared by the network-backed weather sources."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from ..exceptions import WeatherSourceError
from ..redaction import sanitize_text
from .base import WeatherSource


class HttpWeatherSource(WeatherSource):
    """Base for sources that issue one JSON GET per call under a hard deadline.

    ``httpx.Timeout`` bounds each socket operation on its own, so a server that
    trickles the body one byte at a time never trips it. The deadline here is
    checked once the headers arrive and again after every body chunk.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        user_agent: str,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.logger = logger
        self._owns_client = client is None
        self._client = client or httpx.Client()
        self._headers = {
            "Accept": "application/json",
            "User-Agent": user_agent,
            **(headers or {}),
        }
        self._timer = timer

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _timed_out(self, context: str, timeout: float, url: str) -> WeatherSourceError:
        return WeatherSourceError(
            f"{self.name} {context} timed out after {timeout:g}s at {url}.",
            source=self.name,
        )

    def _request_json(
        self,
        url: str,
        *,
        params: dict[str, Any],
        timeout: float,
        context: str,
    ) -> dict[str, Any]:
        deadline = self._timer() + timeout
        try:
            with self._client.stream(
                "GET",
                url,
                params=params,
                headers=self._headers,
                timeout=httpx.Timeout(timeout),
            ) as response:
                if self._timer() > deadline:
                    raise self._timed_out(context, timeout, url)
                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if self._timer() > deadline:
                        raise self._timed_out(context, timeout, url)
                status = response.status_code
        except httpx.TimeoutException as exc:
            raise self._timed_out(context, timeout, url) from exc
        except httpx.HTTPError as exc:
            raise WeatherSourceError(
                f"{self.name} {context} request failed at {url}: {sanitize_text(str(exc))}",
                source=self.name,
            ) from exc

        body = b"".join(chunks)
        if not 200 <= status < 300:
            excerpt = body[:300].decode("utf-8", errors="replace")
            raise WeatherSourceError(
                f"{self.name} {context} failed with status {status} "
                f"at {url}: {sanitize_text(excerpt)}",
                source=self.name,
            )

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise WeatherSourceError(
                f"{self.name} {context} returned non-JSON response at {url}.",
                source=self.name,
            ) from exc

        if not isinstance(payload, dict):
            raise WeatherSourceError(
                f"{self.name} {context} returned unexpected payload type "
                f"{type(payload).__name__} at {url}.",
                source=self.name,
            )
        return payload
