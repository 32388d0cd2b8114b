"""HTTP client for the RunLLM pipeline chat endpoint.

Issues one POST per question and yields the raw body bytes of the
``text/event-stream`` response as they arrive. Status and transport
failures are mapped onto the ``runask.errors`` taxonomy. There is no
automatic retry: every failure is terminal for the request.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from runask.errors import AuthenticationError, RequestFormatError, TransportError
from runask.schemas.config import AskConfig

logger = logging.getLogger(__name__)


def build_payload(message: str, session_id: int | None = None) -> dict[str, Any]:
    """Build the JSON request body; ``session_id`` only when one is known."""
    payload: dict[str, Any] = {"message": message}
    if session_id:
        payload["session_id"] = session_id
    return payload


class RunLLMClient:
    """Streams answers from one RunLLM pipeline.

    The underlying ``httpx.AsyncClient`` can be injected (tests pass one
    built on ``httpx.MockTransport``). A client built here is owned and
    closed by ``aclose()``; an injected one is left to its owner.
    """

    def __init__(
        self,
        config: AskConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
        )

    @property
    def config(self) -> AskConfig:
        return self._config

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._config.api_key,
            "Accept": "text/event-stream",
        }

    async def stream_chat(
        self, message: str, session_id: int | None = None
    ) -> AsyncIterator[bytes]:
        """POST a question and yield response body bytes as they arrive.

        Raises:
            AuthenticationError: On HTTP 403.
            RequestFormatError: On HTTP 422.
            TransportError: On any other non-success status, a timeout,
                or a dropped connection.
        """
        url = self._config.chat_url
        payload = build_payload(message, session_id)
        logger.debug("POST %s (session_id=%s)", url, payload.get("session_id"))

        try:
            async with self._http.stream(
                "POST", url, json=payload, headers=self._headers(),
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise self._status_error(response)

                async for data in response.aiter_bytes():
                    logger.debug("Received %d raw bytes", len(data))
                    yield data
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(f"Connection error: {e}") from e

    def _status_error(self, response: httpx.Response) -> Exception:
        status = response.status_code
        body = response.text
        logger.error(
            "API error %d for %s %s: %s",
            status, response.request.method, response.request.url, body[:500],
        )
        if status == 403:
            return AuthenticationError()
        if status == 422:
            return RequestFormatError(self._config.pipeline_id, detail=body)
        return TransportError(f"HTTP error! Status: {status}", status_code=status)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> RunLLMClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
