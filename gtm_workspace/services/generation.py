"""Generation gateway: one prompt in, one tagged result out.

Wraps the Claude client so that every caller sees the same contract:
``GenerationResult(ok=True, text=...)`` for any completed response, or
``GenerationResult(ok=False, reason=...)`` for transport, availability and
timeout failures. No JSON parsing happens here and nothing is retried.
"""

import asyncio
import time
from dataclasses import dataclass

from gtm_workspace.core.config import get_settings
from gtm_workspace.core.logging import generation_logger, get_logger
from gtm_workspace.integrations.claude import ClaudeClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call sampling hints."""

    max_tokens: int
    temperature: float


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a single generation call."""

    ok: bool
    text: str = ""
    reason: str | None = None
    duration_ms: float = 0.0

    @classmethod
    def success(cls, text: str, duration_ms: float = 0.0) -> "GenerationResult":
        return cls(ok=True, text=text, duration_ms=duration_ms)

    @classmethod
    def failure(cls, reason: str, duration_ms: float = 0.0) -> "GenerationResult":
        return cls(ok=False, reason=reason, duration_ms=duration_ms)


class GenerationGateway:
    """Bounded, non-raising access to the text generation capability."""

    def __init__(self, client: ClaudeClient, timeout: float | None = None) -> None:
        self._client = client
        self._timeout = timeout if timeout is not None else get_settings().generation_timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    async def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        """Send a fully built prompt and return the raw response text.

        Args:
            prompt: Natural-language instruction, already templated.
            options: Output-size and temperature hints.

        Returns:
            GenerationResult; ``ok`` is False on failure or timeout.
        """
        start_time = time.monotonic()
        try:
            completion = await asyncio.wait_for(
                self._client.complete(
                    user_prompt=prompt,
                    max_tokens=options.max_tokens,
                    temperature=options.temperature,
                ),
                timeout=self._timeout,
            )
        except TimeoutError:
            duration_ms = (time.monotonic() - start_time) * 1000
            generation_logger.gateway_timeout(self._client.model, self._timeout)
            return GenerationResult.failure(
                f"Generation timed out after {self._timeout}s", duration_ms
            )
        except Exception as e:
            # The client reports failures as results; anything raised is a bug
            # in the transport layer and still must not reach the engines.
            duration_ms = (time.monotonic() - start_time) * 1000
            logger.error(
                "Unexpected generation error",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
                exc_info=True,
            )
            return GenerationResult.failure(f"{type(e).__name__}: {e}", duration_ms)

        duration_ms = (time.monotonic() - start_time) * 1000
        if not completion.success:
            return GenerationResult.failure(
                completion.error or "Generation failed", duration_ms
            )
        text = (completion.text or "").strip()
        if not text:
            return GenerationResult.failure("Empty response", duration_ms)
        return GenerationResult.success(text, duration_ms)
