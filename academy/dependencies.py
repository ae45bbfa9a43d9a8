"""
FastAPI dependency providers for the service layer.

Routes depend on these functions; tests replace them through
app.dependency_overrides.
"""

from academy.config import settings
from academy.services.ai_provider import ai_clients
from academy.services.booking_service import BookingService
from academy.services.chat_service import ChatService
from academy.services.evaluation_service import EvaluationService
from academy.services.tts_service import TTSService

# Holds the shared ElevenLabs client; closed in the application lifespan
tts_service = TTSService(settings)


def get_booking_service() -> BookingService:
    return BookingService(settings)


def get_evaluation_service() -> EvaluationService:
    return EvaluationService(settings, ai=ai_clients)


def get_chat_service() -> ChatService:
    return ChatService(settings, ai=ai_clients)


def get_tts_service() -> TTSService:
    return tts_service
