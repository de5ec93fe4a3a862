"""Base LLM provider adapter: one call = model fallback chain x bounded retries.

Retry policy per model:
  - network errors, timeouts, 429, 5xx  -> retried with exponential backoff
  - 400                                 -> fatal for this model, next model is tried
  - 401 / 403                           -> fatal for the whole call (bad credential)
  - empty answer                        -> next model is tried

Backoff: min(base * 2^attempt + jitter, max_delay), i.e. ~1s, 2s, 4s with the
default policy of 3 attempts.

Adapters never persist anything; the execution pipeline does that.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from abc import ABC
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from brandpulse.core.exceptions import ProviderError
from brandpulse.core.metrics import PROVIDER_CALLS, PROVIDER_DURATION

logger = logging.getLogger(__name__)

# Appended to every prompt so the answer ends with a machine-readable brand list
BRANDS_INSTRUCTION = (
    'After your response, include a JSON object with a single key "brands" '
    "containing an array of brand or company names you mentioned."
)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504, 529})
AUTH_STATUS = frozenset({401, 403})


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 8.0
    jitter: bool = True


@dataclass
class ProviderResult:
    answer_text: str
    token_in: int = 0
    token_out: int = 0
    model: str = ""
    cost_usd: float = 0.0
    attempts: int = 1
    models_tried: list[str] = field(default_factory=list)
    citations: list[str] = field(default_factory=list)


def calculate_backoff(attempt: int, base_delay: float = 1.0, max_delay: float = 8.0, jitter: bool = True) -> float:
    """Exponential backoff with optional jitter.

    Formula: min(base * 2^attempt + jitter, max_delay)
    Jitter: random(0, base * 0.5)
    """
    exponential = base_delay * (2**attempt)
    extra = random.uniform(0, base_delay * 0.5) if jitter else 0.0
    return min(exponential + extra, max_delay)


def classify_http_status(status_code: int, provider: str, body: str = "") -> ProviderError:
    snippet = body[:200]
    if status_code == 429:
        return ProviderError(f"{provider}: rate limited", "rate_limited", True, status_code)
    if status_code in AUTH_STATUS:
        return ProviderError(f"{provider}: authentication failed ({status_code})", "auth", False, status_code)
    if status_code in RETRYABLE_STATUS or status_code >= 500:
        return ProviderError(f"{provider}: server error {status_code}: {snippet}", "server_error", True, status_code)
    return ProviderError(f"{provider}: bad request {status_code}: {snippet}", "bad_request", False, status_code)


class BaseProvider(ABC):
    """OpenAI-compatible chat completions adapter with retries and model fallback.

    Subclasses set ``name``, ``api_url``, ``default_models`` and pricing, and may
    override ``build_payload`` / ``parse_response`` for protocol differences.
    """

    name: str = ""
    api_url: str = ""
    default_models: tuple[str, ...] = ()
    model_pricing: dict[str, dict[str, float]] = {}
    system_prompt: str = "You are a helpful assistant. Answer the following question thoroughly."

    def __init__(
        self,
        api_key: str,
        models: list[str] | None = None,
        retry: RetryPolicy | None = None,
        request_timeout: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not api_key:
            raise ProviderError(f"{self.name}: API key not configured", "missing_credential", False)
        self.api_key = api_key
        self.models = list(models) if models else list(self.default_models)
        self.retry = retry or RetryPolicy()
        self.request_timeout = request_timeout
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    def build_prompt(self, prompt_text: str) -> str:
        return f"{prompt_text.strip()}\n\n{BRANDS_INSTRUCTION}"

    def build_payload(self, model: str, prompt_text: str) -> dict:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": self.build_prompt(prompt_text)},
            ],
            "temperature": 0.0,
            "max_tokens": 2048,
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def parse_response(self, data: dict, model: str) -> ProviderResult:
        choices = data.get("choices") or []
        text = ""
        if choices:
            text = (choices[0].get("message") or {}).get("content") or ""

        usage = data.get("usage") or {}
        token_in = usage.get("prompt_tokens", 0) or 0
        token_out = usage.get("completion_tokens", 0) or 0
        return ProviderResult(
            answer_text=text,
            token_in=token_in,
            token_out=token_out,
            model=data.get("model", model),
            cost_usd=self._calculate_cost(model, token_in, token_out),
        )

    def _calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate cost in USD based on model pricing."""
        pricing = self.model_pricing.get(model)
        if pricing is None:
            return 0.0
        cost = (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000
        return round(cost, 6)

    # ------------------------------------------------------------------
    # Single HTTP attempt
    # ------------------------------------------------------------------

    async def _request(self, model: str, prompt_text: str) -> ProviderResult:
        try:
            async with httpx.AsyncClient(timeout=self.request_timeout) as client:
                resp = await client.post(
                    self.api_url,
                    json=self.build_payload(model, prompt_text),
                    headers=self.build_headers(),
                )
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.name}: timeout after {self.request_timeout}s", "timeout", True) from e
        except httpx.TransportError as e:
            raise ProviderError(f"{self.name}: network error: {e}", "network", True) from e

        if resp.status_code != 200:
            raise classify_http_status(resp.status_code, self.name, resp.text or "")

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(f"{self.name}: invalid JSON response", "server_error", True, resp.status_code) from e

        return self.parse_response(data, model)

    # ------------------------------------------------------------------
    # Retry loop (one model) and fallback chain (all models)
    # ------------------------------------------------------------------

    async def _call_model(self, model: str, prompt_text: str) -> tuple[ProviderResult, int]:
        attempts = 0
        while True:
            attempts += 1
            try:
                result = await self._request(model, prompt_text)
            except ProviderError as e:
                if not e.retryable or attempts >= self.retry.max_attempts:
                    e.attempts = attempts
                    raise
                delay = calculate_backoff(
                    attempts - 1, self.retry.base_delay, self.retry.max_delay, self.retry.jitter
                )
                logger.warning(
                    "%s/%s: %s (attempt %d/%d), retrying in %.1fs",
                    self.name,
                    model,
                    e.code,
                    attempts,
                    self.retry.max_attempts,
                    delay,
                )
                await self._sleep(delay)
                continue

            if not result.answer_text.strip():
                error = ProviderError(f"{self.name}/{model}: empty answer", "empty_answer", False)
                error.attempts = attempts
                raise error
            return result, attempts

    async def call(self, prompt_text: str) -> ProviderResult:
        """Send the prompt, walking the model chain until one model answers."""
        if not prompt_text or not prompt_text.strip():
            raise ProviderError(f"{self.name}: empty prompt", "bad_request", False)

        start = time.monotonic()
        total_attempts = 0
        models_tried: list[str] = []
        last_error: ProviderError | None = None

        for model in self.models:
            models_tried.append(model)
            try:
                result, attempts = await self._call_model(model, prompt_text)
            except ProviderError as e:
                total_attempts += e.attempts or 1
                last_error = e
                if e.code == "auth":
                    break
                logger.warning("%s: model %s failed (%s), trying next model", self.name, model, e.code)
                continue

            total_attempts += attempts
            result.attempts = total_attempts
            result.models_tried = models_tried
            PROVIDER_CALLS.labels(provider=self.name, status="success").inc()
            PROVIDER_DURATION.labels(provider=self.name).observe(time.monotonic() - start)
            logger.info(
                "%s: answered by %s (%d tokens in, %d out, %d attempts)",
                self.name,
                result.model,
                result.token_in,
                result.token_out,
                total_attempts,
            )
            return result

        PROVIDER_CALLS.labels(provider=self.name, status=last_error.code if last_error else "no_models").inc()
        PROVIDER_DURATION.labels(provider=self.name).observe(time.monotonic() - start)
        if last_error is None:
            raise ProviderError(f"{self.name}: no models configured", "bad_request", False)
        last_error.attempts = total_attempts
        last_error.models_tried = models_tried
        raise last_error
