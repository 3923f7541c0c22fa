"""Resend delivery adapter with bounded retry.

One outbound call per attempt against the Resend REST API. The retry loop is
an explicit state machine:

    attempting --ok--> succeeded
    attempting --transient failure, attempts left--> backoff --> attempting
    attempting --any other failure--> exhausted

Backoff is linear (``attempt * retry_delay``). Whatever the underlying
failure, callers only ever see ``ProviderError``.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import httpx

from email_automation.shared.errors import ProviderError
from email_automation.shared.types import DeliveryRequest, DeliveryResult
from email_automation.shared.utils import setup_logging, truncate

logger = setup_logging("delivery.resend")

PROVIDER_NAME = "resend"
RESEND_API_URL = "https://api.resend.com"

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds

_TRANSIENT_MARKERS = ("network", "rate limit", "timeout")

# Retry loop states
ATTEMPTING = "attempting"
BACKOFF = "backoff"
SUCCEEDED = "succeeded"
EXHAUSTED = "exhausted"


class ResendAPIError(Exception):
    """A single failed call to the Resend API."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return truncate(response.text or response.reason_phrase, 300)
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)
    return str(data)


class ResendProvider:
    """Sends a ``DeliveryRequest`` through Resend, retrying transient failures."""

    def __init__(
        self,
        api_key: str,
        base_url: str = RESEND_API_URL,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    @staticmethod
    def build_payload(request: DeliveryRequest) -> dict[str, Any]:
        return request.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def _send_once(self, payload: dict[str, Any]) -> str:
        """POST one email. Returns the delivery id or raises ResendAPIError."""
        client = await self._get_client()
        try:
            response = await client.post(
                f"{self.base_url}/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.TimeoutException as e:
            raise ResendAPIError(f"Request timeout: {e}") from e
        except httpx.TransportError as e:
            raise ResendAPIError(f"Resend network error: {e}") from e

        if response.status_code == 429:
            raise ResendAPIError(
                f"Resend rate limit exceeded: {_error_detail(response)}", 429,
            )
        if response.status_code >= 400:
            raise ResendAPIError(
                f"Resend API error {response.status_code}: {_error_detail(response)}",
                response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        email_id = data.get("id") if isinstance(data, dict) else None
        if not email_id:
            raise ResendAPIError("Missing response data from Resend")
        return str(email_id)

    @staticmethod
    def should_retry(error: BaseException) -> bool:
        message = str(error).lower()
        return any(marker in message for marker in _TRANSIENT_MARKERS)

    async def send_email(self, request: DeliveryRequest) -> DeliveryResult:
        payload = self.build_payload(request)
        state = ATTEMPTING
        attempt = 0
        email_id = ""
        last_error: Exception | None = None

        while state not in (SUCCEEDED, EXHAUSTED):
            if state == ATTEMPTING:
                attempt += 1
                try:
                    email_id = await self._send_once(payload)
                    state = SUCCEEDED
                except Exception as e:
                    last_error = e
                    logger.error(
                        f"Resend attempt {attempt} failed: {e}",
                        extra={"extra_data": {
                            "attempt": attempt,
                            "to": request.to,
                            "subject": request.subject,
                        }},
                    )
                    if self.should_retry(e) and attempt < self.retry_attempts:
                        state = BACKOFF
                    else:
                        state = EXHAUSTED
            elif state == BACKOFF:
                await asyncio.sleep(attempt * self.retry_delay)
                state = ATTEMPTING

        if state == SUCCEEDED:
            logger.debug(f"Email sent successfully: id={email_id} attempt={attempt}")
            return DeliveryResult(id=email_id, provider=PROVIDER_NAME)

        raise ProviderError(
            PROVIDER_NAME,
            last_error,
            {
                "attempts": attempt,
                "last_attempt_at": datetime.now(UTC).isoformat(),
            },
        )

    async def validate_config(self) -> bool:
        """Check the API key with a test send. Only an auth failure counts as invalid."""
        try:
            await self._send_once({
                "from": "test@resend.dev",
                "to": "validate@resend.dev",
                "subject": "Configuration Test",
                "text": "Testing configuration",
            })
        except ResendAPIError as e:
            if e.status_code == 401 or "unauthorized" in str(e).lower():
                logger.warning(f"Resend API key rejected: {e}")
                return False
        return True
