"""
Text-to-Speech Service
Synthesizes the fixed listening-test scripts with ElevenLabs.
"""

import base64
import time
from dataclasses import dataclass

import httpx

from academy.config import Settings, settings
from academy.errors import ConfigurationError, InvalidQuestionIdError, UpstreamUnavailableError
from academy.infrastructure.observability.logging import get_logger, log_upstream_call
from academy.models.domain.listening_domain import LISTENING_SCRIPTS, ListeningScript, get_script

logger = get_logger(__name__)

# Slightly slower than normal speech for learners
VOICE_SETTINGS = {
    "stability": 0.6,
    "similarity_boost": 0.75,
    "style": 0.3,
    "speed": 0.9,
}


@dataclass(slots=True)
class SynthesizedAudio:
    audio_content: str
    transcript: str


class TTSService:
    """ElevenLabs proxy for listening-test audio."""

    def __init__(self, config: Settings = settings, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.ELEVENLABS_TIMEOUT_SECONDS)
        return self._http_client

    def list_scripts(self) -> list[ListeningScript]:
        return [LISTENING_SCRIPTS[key] for key in sorted(LISTENING_SCRIPTS)]

    async def synthesize(self, question_id: int | None) -> SynthesizedAudio:
        """
        Speak the script for a question id.

        Raises:
            InvalidQuestionIdError: unknown id (checked before the credential)
            ConfigurationError: ELEVENLABS_API_KEY missing
            UpstreamUnavailableError: ElevenLabs answered with a non-success status
        """
        script = get_script(question_id)
        if script is None:
            raise InvalidQuestionIdError()

        if not self.config.ELEVENLABS_API_KEY:
            raise ConfigurationError("ELEVENLABS_API_KEY is not configured")

        logger.info("Generating listening audio", question_id=question_id)

        url = (
            f"{self.config.ELEVENLABS_BASE_URL.rstrip('/')}"
            f"/text-to-speech/{self.config.ELEVENLABS_VOICE_ID}"
        )
        start = time.time()
        try:
            response = await self.client.post(
                url,
                params={"output_format": self.config.ELEVENLABS_OUTPUT_FORMAT},
                headers={
                    "xi-api-key": self.config.ELEVENLABS_API_KEY,
                    "Content-Type": "application/json",
                },
                json={
                    "text": script.transcript,
                    "model_id": self.config.ELEVENLABS_MODEL_ID,
                    "voice_settings": VOICE_SETTINGS,
                },
            )
        except httpx.HTTPError as e:
            log_upstream_call("elevenlabs", ok=False, latency_ms=round((time.time() - start) * 1000, 2))
            logger.error("ElevenLabs request failed", error=str(e))
            raise UpstreamUnavailableError("ElevenLabs API error: unreachable") from e

        log_upstream_call(
            "elevenlabs",
            ok=response.is_success,
            latency_ms=round((time.time() - start) * 1000, 2),
            status_code=response.status_code,
        )

        if not response.is_success:
            logger.error(
                "ElevenLabs API error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise UpstreamUnavailableError(
                f"ElevenLabs API error: {response.status_code}",
                upstream_status=response.status_code,
            )

        audio = base64.b64encode(response.content).decode("ascii")
        logger.info("Listening audio generated", question_id=question_id, audio_bytes=len(response.content))
        return SynthesizedAudio(audio_content=audio, transcript=script.transcript)

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
