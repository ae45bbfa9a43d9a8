"""
Listening-audio API request and response models.
"""

from pydantic import BaseModel, ConfigDict, Field


class GenerateAudioRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int | None = Field(default=None, alias="questionId", description="Script ID (1-4)")


class GenerateAudioResponse(BaseModel):
    """Synthesized speech for one listening question."""

    model_config = ConfigDict(populate_by_name=True)

    audio_content: str = Field(..., alias="audioContent", description="Base64-encoded MP3")
    transcript: str = Field(..., description="Text that was spoken")


class ListeningQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(..., alias="questionId")
    transcript: str


class ListeningQuestionsResponse(BaseModel):
    questions: list[ListeningQuestion] = Field(default_factory=list)
