"""Centralized OpenAI completion client.

Every pipeline stage MUST go through `OpenAIClient.complete()`.
This ensures:
  - Model, timeout, retries and budget limits are read from env (per APP_ENV profile).
  - Retryable provider failures are retried with exponential backoff, then raised.
  - Token usage and USD cost are reported for every call.
  - Requests are refused up front when the rate window or daily budget is spent.
  - Consistent logging across all stages.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import re
import time
from collections import deque
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: profile defaults, overridable from the environment
# ---------------------------------------------------------------------------
_DEFAULT_BASE_URL = "https://api.openai.com/v1"

# USD per 1K tokens
MODEL_PRICING: Dict[str, Dict[str, float]] = {
    "gpt-4": {"input": 0.03, "output": 0.06},
    "gpt-3.5-turbo": {"input": 0.0015, "output": 0.002},
}
_FALLBACK_PRICING_MODEL = "gpt-4"

_PROFILES: Dict[str, Dict[str, Any]] = {
    "development": {
        "model": "gpt-3.5-turbo",
        "max_tokens": 1500,
        "temperature": 0.7,
        "rate_limit_rpm": 20,
        "rate_limit_tpm": 10_000,
        "timeout": 30.0,
        "max_retries": 3,
        "daily_cost_limit": 10.0,
    },
    "production": {
        "model": "gpt-4",
        "max_tokens": 2000,
        "temperature": 0.7,
        "rate_limit_rpm": 60,
        "rate_limit_tpm": 40_000,
        "timeout": 60.0,
        "max_retries": 5,
        "daily_cost_limit": 100.0,
    },
    "test": {
        "model": "gpt-3.5-turbo",
        "max_tokens": 500,
        "temperature": 0.5,
        "rate_limit_rpm": 1000,
        "rate_limit_tpm": 100_000,
        "timeout": 10.0,
        "max_retries": 1,
        "daily_cost_limit": 5.0,
    },
}


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class AISettings:
    """Completion settings resolved from APP_ENV and OPENAI_* variables."""

    environment: str
    model: str
    max_tokens: int
    temperature: float
    rate_limit_rpm: int
    rate_limit_tpm: int
    timeout: float
    max_retries: int
    daily_cost_limit: float
    warning_threshold: float = 0.8
    ai_enabled: bool = True
    base_url: str = _DEFAULT_BASE_URL


def load_ai_settings() -> AISettings:
    """Read the environment and return completion settings."""
    environment = os.getenv("APP_ENV", "development").strip().lower()
    profile = _PROFILES.get(environment, _PROFILES["development"])
    return AISettings(
        environment=environment,
        model=os.getenv("OPENAI_MODEL", profile["model"]).strip(),
        max_tokens=_env_int("OPENAI_MAX_TOKENS", profile["max_tokens"]),
        temperature=_env_float("OPENAI_TEMPERATURE", profile["temperature"]),
        rate_limit_rpm=_env_int("OPENAI_RATE_LIMIT_RPM", profile["rate_limit_rpm"]),
        rate_limit_tpm=_env_int("OPENAI_RATE_LIMIT_TPM", profile["rate_limit_tpm"]),
        timeout=_env_float("OPENAI_REQUEST_TIMEOUT", profile["timeout"]),
        max_retries=_env_int("OPENAI_MAX_RETRIES", profile["max_retries"]),
        daily_cost_limit=_env_float("AI_DAILY_COST_LIMIT", profile["daily_cost_limit"]),
        ai_enabled=os.getenv("ENABLE_AI_PROCESSING", "true").strip().lower() != "false",
        base_url=os.getenv("OPENAI_BASE_URL", _DEFAULT_BASE_URL).rstrip("/"),
    )


def get_openai_key() -> str:
    """Read OPENAI_API_KEY from the environment. Raises CompletionError if missing."""
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        logger.warning("⚠️  [OPENAI] API key missing (OPENAI_API_KEY)")
        raise CompletionError(
            "configuration_error",
            "OPENAI_API_KEY environment variable not set",
            can_retry=False,
        )
    return key


# ---------------------------------------------------------------------------
# JSON sanitizer: extracts a JSON object from LLM output
# ---------------------------------------------------------------------------
def sanitize_json(raw: str) -> str:
    """Extract a JSON object from raw LLM output.

    Handles:
      - Markdown fences (```json ... ```)
      - Leading/trailing whitespace and BOM
      - Prose before/after JSON
      - Trailing commas before } or ]

    Raises ValueError if no JSON object is found.
    """
    text = raw.strip().lstrip("\ufeff")

    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 3:
            text = parts[1]
        else:
            text = text[3:]

    text = text.strip()
    if text.lower().startswith("json"):
        text = text[4:].strip()

    brace_idx = text.find("{")
    if brace_idx == -1:
        raise ValueError("LLM did not return a JSON object — no '{' found")
    text = text[brace_idx:]

    rbrace_idx = text.rfind("}")
    if rbrace_idx == -1:
        raise ValueError("LLM did not return a JSON object — no '}' found")
    text = text[: rbrace_idx + 1]

    return re.sub(r",\s*([}\]])", r"\1", text)


def parse_json_object(raw: str) -> Optional[Dict[str, Any]]:
    """Return the JSON object embedded in *raw*, or None when there is none."""
    try:
        parsed = json.loads(sanitize_json(raw or ""))
    except (ValueError, json.JSONDecodeError):
        return None
    return parsed if isinstance(parsed, dict) else None


# ---------------------------------------------------------------------------
# Errors and results
# ---------------------------------------------------------------------------
class CompletionError(Exception):
    """Raised when a completion request cannot be fulfilled."""

    def __init__(
        self,
        error_type: str,
        message: str,
        *,
        can_retry: bool,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(f"OpenAI {error_type}: {message}")
        self.error_type = error_type
        self.message = message
        self.can_retry = can_retry
        self.retry_after = retry_after


@dataclass(frozen=True)
class CompletionResult:
    content: str
    cost_usd: float
    tokens_used: int
    processing_time_ms: int
    model: str


def estimate_tokens(text: str) -> int:
    """Rough input token estimate (1 token ≈ 4 characters)."""
    return math.ceil(len(text) / 4)


def estimate_cost(input_tokens: int, output_tokens: int, model: str) -> float:
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        logger.warning("⚠️  [OPENAI] Unknown model pricing for %s, using %s pricing", model, _FALLBACK_PRICING_MODEL)
        pricing = MODEL_PRICING[_FALLBACK_PRICING_MODEL]
    return pricing["input"] * (input_tokens / 1000) + pricing["output"] * (output_tokens / 1000)


def categorize_http_error(response: httpx.Response) -> CompletionError:
    """Map a non-200 provider response to a CompletionError."""
    body = response.text[:400]
    status = response.status_code

    if status == 429:
        try:
            retry_after = float(response.headers.get("retry-after", "60"))
        except ValueError:
            retry_after = 60.0
        return CompletionError(
            "rate_limit",
            "Rate limit exceeded. Please wait before making another request.",
            can_retry=True,
            retry_after=retry_after,
        )
    if status == 402 or (status == 400 and "quota" in body.lower()):
        return CompletionError(
            "insufficient_quota",
            "Insufficient quota or billing issue. Please check your OpenAI account.",
            can_retry=False,
        )
    if status == 400:
        return CompletionError("validation_error", body or "Invalid request parameters.", can_retry=False)
    if status == 401:
        return CompletionError("authentication_error", "Invalid OpenAI API key.", can_retry=False)
    return CompletionError("api_error", f"HTTP {status}: {body}", can_retry=True)


# ---------------------------------------------------------------------------
# Budget guards
# ---------------------------------------------------------------------------
class RateLimiter:
    """Sliding 60-second window over request count and tokens."""

    WINDOW_SECONDS = 60.0

    def __init__(self, rpm: int, tpm: int) -> None:
        self.rpm = rpm
        self.tpm = tpm
        self._requests: deque[tuple[float, int]] = deque()

    def _prune(self, now: float) -> None:
        while self._requests and now - self._requests[0][0] >= self.WINDOW_SECONDS:
            self._requests.popleft()

    def can_make_request(self, estimated_tokens: int = 100) -> bool:
        now = time.monotonic()
        self._prune(now)
        tokens = sum(used for _, used in self._requests)
        return len(self._requests) < self.rpm and tokens + estimated_tokens <= self.tpm

    def record_request(self, tokens_used: int) -> None:
        self._requests.append((time.monotonic(), tokens_used))

    def wait_time(self) -> float:
        """Seconds until the oldest request leaves the window."""
        if not self._requests:
            return 0.0
        return max(0.0, self.WINDOW_SECONDS - (time.monotonic() - self._requests[0][0]))


class CostTracker:
    """Daily USD spend, reset when the calendar day changes."""

    def __init__(self, daily_limit: float, warning_threshold: float = 0.8) -> None:
        self.daily_limit = daily_limit
        self.warning_threshold = warning_threshold
        self._daily_cost = 0.0
        self._day = date.today()

    def _reset_if_new_day(self) -> None:
        today = date.today()
        if today != self._day:
            self._daily_cost = 0.0
            self._day = today
            logger.info("📊 [OPENAI] Daily AI cost tracking reset")

    def can_afford(self, estimated_cost: float) -> bool:
        self._reset_if_new_day()
        return self._daily_cost + estimated_cost <= self.daily_limit

    def record(self, cost: float) -> None:
        self._reset_if_new_day()
        self._daily_cost += cost
        if self._daily_cost >= self.daily_limit * self.warning_threshold:
            logger.warning(
                "⚠️  [OPENAI] AI costs approaching daily limit: $%.2f/$%.2f",
                self._daily_cost,
                self.daily_limit,
            )

    @property
    def daily_cost(self) -> float:
        self._reset_if_new_day()
        return self._daily_cost

    @property
    def remaining(self) -> float:
        return self.daily_limit - self.daily_cost


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class OpenAIClient:
    """Chat-completions capability: one prompt in, text plus usage out."""

    def __init__(
        self,
        settings: Optional[AISettings] = None,
        *,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_delay: float = 1.0,
    ) -> None:
        self.settings = settings or load_ai_settings()
        self._api_key = api_key
        self._transport = transport
        self.base_delay = base_delay
        self.rate_limiter = RateLimiter(self.settings.rate_limit_rpm, self.settings.rate_limit_tpm)
        self.cost_tracker = CostTracker(self.settings.daily_cost_limit, self.settings.warning_threshold)

    def build_payload(
        self,
        *,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": False,
        }

    def _check_guards(self, estimated_tokens: int, estimated_cost: float) -> None:
        if not self.settings.ai_enabled:
            raise CompletionError(
                "ai_disabled",
                "AI processing is currently disabled. Please check configuration.",
                can_retry=False,
            )
        if not self.rate_limiter.can_make_request(estimated_tokens):
            wait = math.ceil(self.rate_limiter.wait_time())
            raise CompletionError(
                "rate_limit",
                f"Rate limit reached. Please wait {wait} seconds before making another request.",
                can_retry=False,
                retry_after=float(wait),
            )
        if not self.cost_tracker.can_afford(estimated_cost):
            raise CompletionError(
                "cost_limit",
                f"Daily cost limit would be exceeded. Estimated cost: ${estimated_cost:.4f}, "
                f"remaining budget: ${self.cost_tracker.remaining:.2f}",
                can_retry=False,
            )

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        api_key = self._api_key or get_openai_key()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.settings.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            raise CompletionError(
                "timeout", "Request timed out. The operation took too long to complete.", can_retry=True
            ) from exc
        except httpx.TransportError as exc:
            raise CompletionError(
                "network_error", f"Network connection failed: {exc}", can_retry=True
            ) from exc

        if response.status_code != 200:
            raise categorize_http_error(response)
        return response.json()

    async def _post_with_retry(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        max_retries = self.settings.max_retries
        for attempt in range(max_retries + 1):
            try:
                return await self._post(payload)
            except CompletionError as exc:
                if not exc.can_retry or attempt == max_retries:
                    logger.error(
                        "❌ [OPENAI] Request failed after %d attempt(s): %s", attempt + 1, exc.message
                    )
                    raise
                delay = exc.retry_after if exc.retry_after is not None else self.base_delay * (2 ** attempt)
                logger.warning(
                    "⚠️  [OPENAI] Attempt %d failed (%s), retrying in %.1fs...", attempt + 1, exc.error_type, delay
                )
                await asyncio.sleep(delay)
        raise CompletionError("api_error", "Max retries exceeded", can_retry=False)

    async def complete(
        self,
        prompt: str,
        *,
        system_message: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> CompletionResult:
        """Issue one chat completion and return its text with usage and cost.

        Raises
        ------
        CompletionError
            On guard refusal, or when the provider fails beyond the retry budget.
        """
        t0 = time.perf_counter()
        model = model or self.settings.model
        max_tokens = max_tokens or self.settings.max_tokens
        temperature = self.settings.temperature if temperature is None else temperature

        estimated_input = estimate_tokens(prompt) + (estimate_tokens(system_message) if system_message else 0)
        estimated_cost = estimate_cost(estimated_input, max_tokens, model)
        self._check_guards(estimated_input + max_tokens, estimated_cost)

        messages: List[Dict[str, str]] = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": prompt})

        logger.info("🧠 [OPENAI] Calling %s, estimated cost: $%.4f", model, estimated_cost)
        data = await self._post_with_retry(
            self.build_payload(model=model, messages=messages, max_tokens=max_tokens, temperature=temperature)
        )

        choices = data.get("choices") or []
        content = ((choices[0].get("message") or {}).get("content") or "") if choices else ""
        usage = data.get("usage") or {}
        input_tokens = usage.get("prompt_tokens") or estimated_input
        output_tokens = usage.get("completion_tokens") or 0
        total_tokens = usage.get("total_tokens") or input_tokens + output_tokens
        cost = estimate_cost(input_tokens, output_tokens, model)
        elapsed_ms = int((time.perf_counter() - t0) * 1000)

        self.rate_limiter.record_request(total_tokens)
        self.cost_tracker.record(cost)

        logger.info(
            "✅ [OPENAI] Completed: %d tokens, $%.4f, %dms, %d chars",
            total_tokens,
            cost,
            elapsed_ms,
            len(content),
        )
        return CompletionResult(
            content=content,
            cost_usd=cost,
            tokens_used=total_tokens,
            processing_time_ms=elapsed_ms,
            model=model,
        )
