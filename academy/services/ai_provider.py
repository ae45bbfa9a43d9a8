"""
Generative-text backends for the evaluation and chat proxies.

Two concrete providers share one interface:
- GeminiProvider: Google generateContent / streamGenerateContent REST API over httpx
- OpenAICompatibleProvider: chat completions via the openai SDK (OpenAI, Groq,
  Lovable AI gateway), selected by base_url

Neither retries; upstream 429 and 402 map to their own errors so the routes
can pass them through to the browser.
"""

import time
from collections.abc import AsyncIterator
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from academy.config import OPENAI_COMPATIBLE_BASE_URLS, SUPPORTED_AI_PROVIDERS, Settings, settings
from academy.errors import ConfigurationError, RateLimitedError, UpstreamUnavailableError
from academy.infrastructure.observability.logging import get_logger, log_upstream_call
from academy.services.streaming import SSEDecoder, TokenStream

logger = get_logger(__name__)

RATE_LIMITED_MESSAGE = "Rate limits exceeded, please try again later."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please contact support."
AI_SERVICE_ERROR_MESSAGE = "AI service error"
GEMINI_OPENING_TURN = "Hello!"


def upstream_error_for_status(status_code: int, service: str) -> Exception:
    """Map a non-success upstream HTTP status to the error surfaced to callers."""
    if status_code == 429:
        return RateLimitedError(RATE_LIMITED_MESSAGE)
    if status_code == 402:
        return UpstreamUnavailableError(CREDITS_EXHAUSTED_MESSAGE, status_code=402, upstream_status=402)
    logger.error("AI backend returned an error", service=service, status_code=status_code)
    return UpstreamUnavailableError(AI_SERVICE_ERROR_MESSAGE, upstream_status=status_code)


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


class AIProvider:
    """Interface shared by every generative-text backend."""

    name: str = "base"

    def __init__(self, config: Settings, model: str):
        self.config = config
        self.model = model

    async def complete(
        self,
        system: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the full text of a single non-streamed completion."""
        raise NotImplementedError

    async def open_stream(
        self,
        system: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> TokenStream:
        """
        Open a streamed completion.

        The upstream status is checked before returning, so failures surface as
        exceptions instead of a half-written event stream.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class GeminiProvider(AIProvider):
    """Google Gemini over its REST API."""

    name = "gemini"

    def __init__(
        self,
        config: Settings,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config, config.GEMINI_MODEL)
        self.api_key = api_key
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=config.AI_TIMEOUT_SECONDS)

    def _url(self, method: str) -> str:
        return f"{self.config.GEMINI_BASE_URL.rstrip('/')}/models/{self.model}:{method}"

    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

    @staticmethod
    def _body(
        system: str, messages: list[dict[str, str]], temperature: float, max_tokens: int
    ) -> dict[str, Any]:
        contents = [
            {
                "role": "model" if message["role"] == "assistant" else "user",
                "parts": [{"text": message["content"]}],
            }
            for message in messages
        ]
        # Gemini rejects empty contents and expects the first turn to be the user's
        if not contents or contents[0]["role"] != "user":
            contents.insert(0, {"role": "user", "parts": [{"text": GEMINI_OPENING_TURN}]})
        return {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": contents,
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }

    @staticmethod
    def _candidate_text(payload: dict[str, Any]) -> str:
        candidates = payload.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))

    async def complete(self, system, messages, *, temperature, max_tokens) -> str:
        start = time.time()
        try:
            response = await self.client.post(
                self._url("generateContent"),
                headers=self._headers(),
                json=self._body(system, messages, temperature, max_tokens),
            )
        except httpx.HTTPError as e:
            log_upstream_call(self.name, ok=False, latency_ms=_elapsed_ms(start))
            logger.error("Gemini request failed", error=str(e))
            raise UpstreamUnavailableError(AI_SERVICE_ERROR_MESSAGE) from e

        log_upstream_call(
            self.name,
            ok=response.is_success,
            latency_ms=_elapsed_ms(start),
            status_code=response.status_code,
        )
        if not response.is_success:
            raise upstream_error_for_status(response.status_code, self.name)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(AI_SERVICE_ERROR_MESSAGE) from e
        return self._candidate_text(payload)

    async def open_stream(self, system, messages, *, temperature, max_tokens) -> TokenStream:
        start = time.time()
        request = self.client.build_request(
            "POST",
            self._url("streamGenerateContent"),
            params={"alt": "sse"},
            headers=self._headers(),
            json=self._body(system, messages, temperature, max_tokens),
        )
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            log_upstream_call(self.name, ok=False, latency_ms=_elapsed_ms(start))
            logger.error("Gemini stream request failed", error=str(e))
            raise UpstreamUnavailableError(AI_SERVICE_ERROR_MESSAGE) from e

        log_upstream_call(
            self.name,
            ok=response.is_success,
            latency_ms=_elapsed_ms(start),
            status_code=response.status_code,
        )
        if not response.is_success:
            await response.aread()
            await response.aclose()
            raise upstream_error_for_status(response.status_code, self.name)

        tokens = self._iter_tokens(response)

        async def close() -> None:
            await tokens.aclose()
            await response.aclose()

        return TokenStream(tokens, close)

    async def _iter_tokens(self, response: httpx.Response) -> AsyncIterator[str]:
        decoder = SSEDecoder()
        async for chunk in response.aiter_text():
            for event in decoder.feed(chunk):
                text = self._candidate_text(event)
                if text:
                    yield text
        for event in decoder.flush():
            text = self._candidate_text(event)
            if text:
                yield text

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class OpenAICompatibleProvider(AIProvider):
    """OpenAI-style chat completions (OpenAI, Groq, Lovable AI gateway)."""

    def __init__(
        self,
        config: Settings,
        name: str,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config, getattr(config, f"{name.upper()}_MODEL"))
        self.name = name
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=OPENAI_COMPATIBLE_BASE_URLS[name],
            timeout=config.AI_TIMEOUT_SECONDS,
            max_retries=0,
            http_client=http_client,
        )

        logger.info("OpenAI-compatible client initialized", provider=name, model=self.model)

    @staticmethod
    def _messages(system: str, messages: list[dict[str, str]]) -> list[dict[str, str]]:
        return [{"role": "system", "content": system}, *messages]

    def _map_error(self, error: openai.OpenAIError) -> Exception:
        if isinstance(error, openai.APIStatusError):
            return upstream_error_for_status(error.status_code, self.name)
        logger.error("AI backend unreachable", service=self.name, error=str(error))
        return UpstreamUnavailableError(AI_SERVICE_ERROR_MESSAGE)

    async def complete(self, system, messages, *, temperature, max_tokens) -> str:
        start = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(system, messages),
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            log_upstream_call(
                self.name,
                ok=False,
                latency_ms=_elapsed_ms(start),
                status_code=getattr(e, "status_code", None),
            )
            raise self._map_error(e) from e

        log_upstream_call(self.name, ok=True, latency_ms=_elapsed_ms(start), status_code=200)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def open_stream(self, system, messages, *, temperature, max_tokens) -> TokenStream:
        start = time.time()
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(system, messages),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
        except openai.OpenAIError as e:
            log_upstream_call(
                self.name,
                ok=False,
                latency_ms=_elapsed_ms(start),
                status_code=getattr(e, "status_code", None),
            )
            raise self._map_error(e) from e

        log_upstream_call(self.name, ok=True, latency_ms=_elapsed_ms(start), status_code=200)

        async def tokens() -> AsyncIterator[str]:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content

        iterator = tokens()

        async def close() -> None:
            await iterator.aclose()
            await stream.close()

        return TokenStream(iterator, close)

    async def aclose(self) -> None:
        await self.client.close()


def build_ai_provider(
    config: Settings = settings, http_client: httpx.AsyncClient | None = None
) -> AIProvider:
    """
    Construct the backend selected by AI_PROVIDER.

    Raises:
        ConfigurationError: unknown provider or its API key is not set
    """
    name = config.ai_provider()
    if name not in SUPPORTED_AI_PROVIDERS:
        raise ConfigurationError(f"Unsupported AI_PROVIDER: {name}")

    api_key = config.ai_api_key()
    if not api_key:
        raise ConfigurationError(f"{name.upper()}_API_KEY is not configured")

    if name == "gemini":
        return GeminiProvider(config, api_key, http_client=http_client)
    return OpenAICompatibleProvider(config, name, api_key, http_client=http_client)


class AIClientManager:
    """
    Lazily builds and caches the process-wide AI provider.

    The provider is created on first use so a missing key fails the request
    that needs it instead of application startup.
    """

    def __init__(self, config: Settings = settings, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self.http_client = http_client
        self._provider: AIProvider | None = None

    def get(self) -> AIProvider:
        if self._provider is None:
            self._provider = build_ai_provider(self.config, http_client=self.http_client)
            logger.info("AI provider ready", provider=self._provider.name, model=self._provider.model)
        return self._provider

    async def close(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()
            self._provider = None


# Global provider manager
ai_clients = AIClientManager()
