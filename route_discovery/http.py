"""HTTP client with retry/backoff and request metrics."""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


class ProviderRequestError(RuntimeError):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url


@dataclass
class RequestMetrics:
    network_route: int = 0
    network_nearby: int = 0
    cache_hits: int = 0
    fallbacks: int = 0
    failed_nearby_types: int = 0

    def inc_network(self, kind: str) -> None:
        if kind == "route":
            self.network_route += 1
        elif kind == "nearby":
            self.network_nearby += 1
        else:
            raise ValueError(f"Unknown request kind: {kind}")

    def inc_cache_hit(self) -> None:
        self.cache_hits += 1

    def inc_fallback(self) -> None:
        self.fallbacks += 1

    def inc_failed_nearby_type(self) -> None:
        self.failed_nearby_types += 1


class HttpClient:
    def __init__(
        self,
        api_key: str,
        timeout: int = 20,
        retry_max: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.retry_max = max(1, int(retry_max))
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = requests.Session()

    def post_json(
        self,
        url: str,
        body: Dict[str, Any],
        field_mask: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        headers = {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
            "Content-Type": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)

        payload = json.dumps(body)
        for attempt in range(1, self.retry_max + 1):
            try:
                resp = self.session.post(url, data=payload, headers=headers, timeout=self.timeout)
            except requests.RequestException as exc:
                if attempt >= self.retry_max:
                    raise ProviderRequestError(f"Network error calling {url}: {exc}", url=url) from exc
                logger.warning("Network error from %s (attempt %s): %s", url, attempt, exc)
                time.sleep(self.retry_delay(attempt))
                continue

            status = resp.status_code
            if 200 <= status < 300:
                try:
                    return resp.json()
                except ValueError as exc:
                    logger.error("Non-JSON response from %s", url)
                    raise ProviderRequestError(
                        f"Non-JSON response from {url}", status_code=status, body=_body_text(resp), url=url
                    ) from exc

            if status in RETRYABLE_STATUSES and attempt < self.retry_max:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                time.sleep(self.retry_delay(attempt, resp))
                continue

            body_text = _body_text(resp)
            logger.error("HTTP %s from %s: %s", status, url, body_text)
            raise ProviderRequestError(
                f"Places request failed: {status} {getattr(resp, 'reason', '') or ''}".rstrip(),
                status_code=status,
                body=body_text,
                url=url,
            )

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def retry_delay(self, attempt: int, resp: Any = None) -> float:
        """Seconds to wait before the next attempt.

        A numeric Retry-After header wins; otherwise the delay doubles per
        attempt from backoff_base with up to backoff_base of jitter. Both are
        capped at backoff_max before jitter is added.
        """
        server_hint = _retry_after_seconds(resp)
        if server_hint is not None:
            return min(server_hint, self.backoff_max)
        doubled = self.backoff_base * 2 ** (attempt - 1)
        return min(doubled, self.backoff_max) + self.backoff_base * random.random()


def _retry_after_seconds(resp: Any) -> Optional[float]:
    headers = getattr(resp, "headers", None) or {}
    value = headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _body_text(resp: Any) -> str:
    text = getattr(resp, "text", None)
    if isinstance(text, str):
        return text
    return ""
