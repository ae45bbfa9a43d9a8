"""
Chat Service
Relays a conversation with the "Laila" course advisor as Server-Sent Events.
"""

from collections.abc import AsyncIterator, Awaitable, Callable

from academy.config import Settings, settings
from academy.infrastructure.observability.logging import get_logger
from academy.models.domain.chat_domain import CHAT_ROLES, build_system_prompt, normalize_language
from academy.services.ai_provider import AIClientManager, ai_clients
from academy.services.streaming import SSE_DONE, TokenStream, format_sse_token

logger = get_logger(__name__)

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 1024


class ChatService:
    """Builds the advisor prompt and opens the upstream token stream."""

    def __init__(self, config: Settings = settings, ai: AIClientManager = ai_clients):
        self.config = config
        self.ai = ai

    async def open_chat(
        self,
        messages: list[dict[str, str]],
        language: str | None = "en",
        user_name: str | None = None,
    ) -> TokenStream:
        """
        Open the upstream stream; errors raise here, before any byte is sent.

        Raises:
            ConfigurationError, RateLimitedError, UpstreamUnavailableError
        """
        provider = self.ai.get()
        language = normalize_language(language)
        system_prompt = build_system_prompt(language, user_name)
        conversation = [
            {"role": message["role"], "content": message["content"]}
            for message in messages
            if message.get("role") in CHAT_ROLES
        ]

        logger.info(
            "Opening chat stream",
            provider=provider.name,
            language=language,
            history_length=len(conversation),
        )

        return await provider.open_stream(
            system_prompt,
            conversation,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )

    async def relay(
        self,
        stream: TokenStream,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> AsyncIterator[str]:
        """
        Re-frame upstream tokens as SSE delta frames, then a [DONE] frame.

        Stops early when the client goes away; the upstream stream is always closed.
        """
        token_count = 0
        disconnected = False
        try:
            async for token in stream:
                if is_disconnected is not None and await is_disconnected():
                    disconnected = True
                    break
                token_count += 1
                yield format_sse_token(token)
            if not disconnected:
                yield SSE_DONE
        except Exception as e:
            # Headers are already sent; the browser sees the stream end early
            logger.error("Chat stream interrupted", error=str(e), tokens_sent=token_count)
            raise
        finally:
            await stream.aclose()
            logger.info("Chat stream finished", tokens_sent=token_count, disconnected=disconnected)
