"""
Tests for the AI backends against mocked upstream HTTP.
"""

import json

import httpx
import pytest
from conftest import make_settings

from academy.errors import ConfigurationError, RateLimitedError, UpstreamUnavailableError
from academy.services.ai_provider import (
    AIClientManager,
    GeminiProvider,
    OpenAICompatibleProvider,
    build_ai_provider,
)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def gemini_chunk(text: str) -> str:
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


# --- factory -----------------------------------------------------------------


def test_missing_key_names_the_provider_variable():
    with pytest.raises(ConfigurationError) as exc_info:
        build_ai_provider(make_settings(GEMINI_API_KEY=None))
    assert exc_info.value.message == "GEMINI_API_KEY is not configured"


def test_unsupported_provider_rejected():
    with pytest.raises(ConfigurationError):
        build_ai_provider(make_settings(AI_PROVIDER="mistral"))


@pytest.mark.asyncio
async def test_factory_selects_backend_by_name():
    gemini = build_ai_provider(make_settings())
    lovable = build_ai_provider(make_settings(AI_PROVIDER="Lovable", LOVABLE_API_KEY="k"))
    try:
        assert isinstance(gemini, GeminiProvider)
        assert isinstance(lovable, OpenAICompatibleProvider)
        assert lovable.name == "lovable"
        assert lovable.model == "google/gemini-2.5-flash"
        assert str(lovable.client.base_url).startswith("https://ai.gateway.lovable.dev/v1")
        assert lovable.client.max_retries == 0
    finally:
        await gemini.aclose()
        await lovable.aclose()


def test_manager_caches_provider():
    manager = AIClientManager(make_settings(), http_client=mock_client(lambda request: httpx.Response(200)))
    assert manager.get() is manager.get()


# --- gemini ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_gemini_complete_sends_system_instruction_and_key_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": '{"overallScore": 70}'}]}}]})

    provider = GeminiProvider(make_settings(), "secret", http_client=mock_client(handler))
    text = await provider.complete(
        "Assess.",
        [{"role": "user", "content": "Q1"}, {"role": "assistant", "content": "ok"}],
        temperature=0.3,
        max_tokens=2048,
    )

    assert text == '{"overallScore": 70}'
    assert seen["url"].endswith("/models/gemini-2.5-flash:generateContent")
    assert seen["key"] == "secret"
    assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Assess."}]}
    assert [item["role"] for item in seen["body"]["contents"]] == ["user", "model"]
    assert seen["body"]["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 2048}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error,http_status",
    [
        (429, RateLimitedError, 429),
        (402, UpstreamUnavailableError, 402),
        (500, UpstreamUnavailableError, 500),
        (403, UpstreamUnavailableError, 500),
    ],
)
async def test_gemini_status_mapping(status, error, http_status):
    provider = GeminiProvider(
        make_settings(), "secret", http_client=mock_client(lambda request: httpx.Response(status, text="nope"))
    )

    with pytest.raises(error) as exc_info:
        await provider.complete("s", [{"role": "user", "content": "x"}], temperature=0.3, max_tokens=10)

    assert exc_info.value.status_code == http_status


@pytest.mark.asyncio
async def test_gemini_stream_yields_tokens_across_split_chunks():
    body = f"data: {gemini_chunk('Hello')}\r\n\r\ndata: {gemini_chunk(' world')}\r\n\r\n"
    pieces = [body[:17], body[17:60], body[60:]]

    async def chunks():
        for piece in pieces:
            yield piece.encode()

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["alt"] == "sse"
        assert request.url.path.endswith(":streamGenerateContent")
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=chunks())

    provider = GeminiProvider(make_settings(), "secret", http_client=mock_client(handler))
    stream = await provider.open_stream("s", [], temperature=0.7, max_tokens=1024)
    try:
        tokens = [token async for token in stream]
    finally:
        await stream.aclose()

    assert tokens == ["Hello", " world"]


@pytest.mark.asyncio
async def test_gemini_stream_with_empty_history_sends_opening_user_turn():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, text="")

    provider = GeminiProvider(make_settings(), "secret", http_client=mock_client(handler))
    stream = await provider.open_stream("Reply only in Hindi.", [], temperature=0.7, max_tokens=1024)
    await stream.aclose()

    contents = seen["body"]["contents"]
    assert contents == [{"role": "user", "parts": [{"text": "Hello!"}]}]
    assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Reply only in Hindi."}]}


def test_gemini_history_starting_with_assistant_gets_user_turn_first():
    body = GeminiProvider._body(
        "s",
        [{"role": "assistant", "content": "Namaste!"}, {"role": "user", "content": "Courses?"}],
        0.7,
        1024,
    )

    assert [item["role"] for item in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][1]["parts"] == [{"text": "Namaste!"}]


@pytest.mark.asyncio
async def test_gemini_stream_error_raised_before_iteration():
    provider = GeminiProvider(
        make_settings(), "secret", http_client=mock_client(lambda request: httpx.Response(429))
    )

    with pytest.raises(RateLimitedError):
        await provider.open_stream("s", [], temperature=0.7, max_tokens=1024)


# --- openai-compatible -------------------------------------------------------


def completion_json(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "llama-3.3-70b-versatile",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }


def stream_chunk(content: str) -> str:
    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "created": 0,
            "model": "llama-3.3-70b-versatile",
            "choices": [{"index": 0, "delta": {"content": content}, "finish_reason": None}],
        }
    )


@pytest.mark.asyncio
async def test_openai_compatible_complete_prepends_system_message():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion_json("graded"))

    config = make_settings(AI_PROVIDER="groq", GROQ_API_KEY="groq-key")
    provider = OpenAICompatibleProvider(config, "groq", "groq-key", http_client=mock_client(handler))

    text = await provider.complete("Assess.", [{"role": "user", "content": "Q1"}], temperature=0.3, max_tokens=2048)

    assert text == "graded"
    assert seen["path"].endswith("/chat/completions")
    assert seen["auth"] == "Bearer groq-key"
    assert seen["body"]["messages"][0] == {"role": "system", "content": "Assess."}
    assert seen["body"]["model"] == "llama-3.3-70b-versatile"
    assert seen["body"]["temperature"] == 0.3


@pytest.mark.asyncio
async def test_openai_compatible_stream_relays_deltas():
    body = "".join(f"data: {stream_chunk(token)}\n\n" for token in ["Hi", " Asha"]) + "data: [DONE]\n\n"

    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["stream"] is True
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, text=body)

    config = make_settings(AI_PROVIDER="openai", OPENAI_API_KEY="k")
    provider = OpenAICompatibleProvider(config, "openai", "k", http_client=mock_client(handler))

    stream = await provider.open_stream("s", [{"role": "user", "content": "Hi"}], temperature=0.7, max_tokens=1024)
    try:
        tokens = [token async for token in stream]
    finally:
        await stream.aclose()

    assert tokens == ["Hi", " Asha"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error,http_status",
    [(429, RateLimitedError, 429), (402, UpstreamUnavailableError, 402), (500, UpstreamUnavailableError, 500)],
)
async def test_openai_compatible_status_mapping_without_retry(status, error, http_status):
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(status, json={"error": {"message": "upstream says no"}})

    config = make_settings(AI_PROVIDER="openai", OPENAI_API_KEY="k")
    provider = OpenAICompatibleProvider(config, "openai", "k", http_client=mock_client(handler))

    with pytest.raises(error) as exc_info:
        await provider.complete("s", [{"role": "user", "content": "x"}], temperature=0.3, max_tokens=10)

    assert exc_info.value.status_code == http_status
    assert calls["count"] == 1
