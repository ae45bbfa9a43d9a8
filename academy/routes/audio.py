"""
Listening Audio API Routes
Text-to-speech for the listening section of the placement test.
"""

from fastapi import APIRouter, Depends

from academy.dependencies import get_tts_service
from academy.errors import AcademyError, InternalError
from academy.infrastructure.observability.logging import get_logger
from academy.models.api.audio_models import (
    GenerateAudioRequest,
    GenerateAudioResponse,
    ListeningQuestion,
    ListeningQuestionsResponse,
)
from academy.services.tts_service import TTSService

logger = get_logger(__name__)

router = APIRouter(prefix="/generate-listening-audio", tags=["audio"])


@router.get("", response_model=ListeningQuestionsResponse)
async def list_listening_questions(service: TTSService = Depends(get_tts_service)):
    """Available listening question ids and their transcripts."""
    return ListeningQuestionsResponse(
        questions=[
            ListeningQuestion(question_id=script.question_id, transcript=script.transcript)
            for script in service.list_scripts()
        ]
    )


@router.post("", response_model=GenerateAudioResponse)
async def generate_listening_audio(
    request: GenerateAudioRequest,
    service: TTSService = Depends(get_tts_service),
):
    """Synthesize one listening script and return it base64-encoded."""
    try:
        audio = await service.synthesize(request.question_id)
    except AcademyError as e:
        logger.warning("Audio generation failed", reason=type(e).__name__, status_code=e.status_code)
        raise
    except Exception as e:
        logger.error("Unexpected audio generation error", error=str(e))
        raise InternalError("Failed to generate audio") from e

    return GenerateAudioResponse(audio_content=audio.audio_content, transcript=audio.transcript)
