from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import httpx

from .config import RelayConfig

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = {502, 503, 504}


class LineError(Exception):
    """Raised when LINE operations fail."""


class DeliveryError(LineError):
    """Raised when LINE does not accept a message."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LineClient:
    def __init__(
        self,
        config: RelayConfig | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._config = config or RelayConfig()
        self._client = client or httpx.Client(timeout=self._config.timeout)
        self._sleep = sleep

    def close(self) -> None:
        self._client.close()

    def send(self, message: str, token: str) -> None:
        if not message or not message.strip():
            raise ValueError("Message is empty.")
        if not token or not token.strip():
            raise ValueError("LINE channel access token is empty.")

        payload = {"messages": [{"type": "text", "text": message}]}
        headers = {
            "Authorization": f"Bearer {token.strip()}",
            "Content-Type": "application/json",
        }
        response = self._post_with_retry(payload, headers)
        if response.status_code != 200:
            raise DeliveryError(
                f"LINE returned status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("Message sent to LINE (chars=%s)", len(message))
        if self._config.request_delay > 0:
            self._sleep(self._config.request_delay)

    def _post_with_retry(self, payload: dict, headers: dict) -> httpx.Response:
        attempts = max(1, self._config.max_retries)
        for attempt in range(attempts):
            last = attempt == attempts - 1
            try:
                response = self._client.post(self._config.line_api_url, json=payload, headers=headers)
            except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
                # Nothing reached LINE yet, so resending cannot duplicate the broadcast.
                logger.warning("LINE connection error (attempt %s/%s): %s", attempt + 1, attempts, exc)
                if not last:
                    continue
                raise DeliveryError(f"LINE request failed: {exc}") from exc
            except httpx.RequestError as exc:
                raise DeliveryError(f"LINE request failed: {exc}") from exc
            if response.status_code in TRANSIENT_STATUSES and not last:
                logger.warning("LINE transient status %s; retrying", response.status_code)
                continue
            return response
        raise DeliveryError("LINE request was not attempted.")
