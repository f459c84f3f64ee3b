"""Anthropic Messages API client.

One request per ``complete`` call, sent with httpx and guarded by a circuit
breaker. Every outcome, including timeouts, rate limits, rejected keys and
an open circuit, is returned as a ``CompletionResult``; nothing is retried
here. The API key comes from ``ANTHROPIC_API_KEY`` and is never logged.
"""

import time
from dataclasses import dataclass
from typing import Any

import httpx

from gtm_workspace.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from gtm_workspace.core.config import get_settings
from gtm_workspace.core.logging import generation_logger, get_logger

logger = get_logger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com"
ANTHROPIC_API_VERSION = "2023-06-01"
MESSAGES_PATH = "/v1/messages"


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of one Messages API call; ``error`` is set whenever ``success`` is False."""

    success: bool
    text: str | None = None
    stop_reason: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    error: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0
    request_id: str | None = None


class ClaudeClient:
    """Single-shot Messages API client with a circuit breaker.

    Arguments left as None fall back to settings. ``transport`` lets tests
    answer requests in-process.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_tokens: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.anthropic_api_key
        self._model = model or settings.claude_model
        self._timeout = timeout or settings.claude_timeout
        self._max_tokens = max_tokens or settings.claude_max_tokens
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._circuit_breaker = CircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=settings.claude_circuit_failure_threshold,
                recovery_timeout=settings.claude_circuit_recovery_timeout,
            ),
            name="claude",
            listener=generation_logger,
        )

    @property
    def available(self) -> bool:
        """False without an API key; such a client never sends a request."""
        return bool(self._api_key)

    @property
    def model(self) -> str:
        return self._model

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=ANTHROPIC_API_URL,
                headers={
                    "x-api-key": self._api_key or "",
                    "anthropic-version": ANTHROPIC_API_VERSION,
                    "content-type": "application/json",
                    "accept": "application/json",
                },
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _fail(
        self,
        started: float,
        kind: str,
        error: str,
        *,
        status_code: int | None = None,
        request_id: str | None = None,
        retry_after: float | None = None,
        trips_circuit: bool = True,
    ) -> CompletionResult:
        duration_ms = (time.monotonic() - started) * 1000
        generation_logger.call_failed(
            self._model,
            kind,
            error,
            duration_ms=duration_ms,
            status_code=status_code,
            request_id=request_id,
            retry_after=retry_after,
        )
        if trips_circuit:
            await self._circuit_breaker.record_failure()
        return CompletionResult(
            success=False,
            error=error,
            status_code=status_code,
            request_id=request_id,
            duration_ms=duration_ms,
        )

    def _request_body(
        self,
        user_prompt: str,
        system_prompt: str | None,
        max_tokens: int | None,
        temperature: float,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            body["system"] = system_prompt
        return body

    async def complete(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.0,
    ) -> CompletionResult:
        """Send one Messages API request.

        Args:
            user_prompt: The user message
            system_prompt: Optional system prompt
            max_tokens: Overrides the configured response budget
            temperature: Sampling temperature (0.0 = deterministic)

        Returns:
            CompletionResult; ``success`` is False for every failure, including
            an unconfigured client and an open circuit.
        """
        if not self.available:
            generation_logger.call_skipped(self._model, "not configured")
            return CompletionResult(
                success=False,
                error="Claude not configured (missing API key)",
            )

        if not await self._circuit_breaker.can_execute():
            generation_logger.call_skipped(self._model, "circuit open")
            return CompletionResult(success=False, error="Circuit breaker is open")

        body = self._request_body(user_prompt, system_prompt, max_tokens, temperature)
        started = time.monotonic()
        generation_logger.call_started(self._model, len(user_prompt))

        try:
            response = await self._http().post(MESSAGES_PATH, json=body)
        except httpx.TimeoutException:
            return await self._fail(
                started, "timeout", f"Request timed out after {self._timeout}s"
            )
        except httpx.RequestError as e:
            return await self._fail(started, "transport", f"Request failed: {e}")

        request_id = response.headers.get("request-id")
        if response.is_error:
            kind, error, trips_circuit = describe_error_response(response)
            return await self._fail(
                started,
                kind,
                error,
                status_code=response.status_code,
                request_id=request_id,
                retry_after=_retry_after(response),
                trips_circuit=trips_circuit,
            )

        payload = response.json()
        text = "".join(
            block.get("text", "")
            for block in payload.get("content") or []
            if block.get("type") == "text"
        )
        usage = payload.get("usage") or {}
        result = CompletionResult(
            success=True,
            text=text,
            stop_reason=payload.get("stop_reason"),
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
            request_id=request_id,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        generation_logger.call_completed(
            self._model,
            result.duration_ms,
            text,
            stop_reason=result.stop_reason,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            request_id=request_id,
        )
        await self._circuit_breaker.record_success()
        return result


def describe_error_response(response: httpx.Response) -> tuple[str, str, bool]:
    """Map an error response to (failure kind, message, trips the circuit).

    Other 4xx responses describe a bad request rather than an unhealthy
    provider, so they leave the circuit alone.
    """
    status = response.status_code
    if status == 429:
        return "rate_limited", "Rate limit exceeded", True
    if status in (401, 403):
        return "unauthorized", f"Authentication failed ({status})", True
    if status >= 500:
        return "server_error", f"Server error ({status})", True
    return "client_error", f"Client error ({status}): {_api_error_message(response)}", False


def _api_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or "empty body"
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message", body))
    return str(body)


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    try:
        return float(value) if value else None
    except ValueError:
        return None


_client: ClaudeClient | None = None


async def init_claude() -> ClaudeClient:
    """Create the process-wide client on first use."""
    global _client
    if _client is None:
        _client = ClaudeClient()
        logger.info(
            "Claude client ready" if _client.available else "Claude client has no API key",
            extra={"model": _client.model, "available": _client.available},
        )
    return _client


async def get_claude() -> ClaudeClient:
    """FastAPI dependency for the shared client."""
    return await init_claude()


async def close_claude() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
