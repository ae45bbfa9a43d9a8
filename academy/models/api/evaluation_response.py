"""
Placement-test evaluation response models.
Serialized by alias so the browser receives camelCase keys.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EvaluationDetails(BaseModel):
    """Feedback portion of the AI evaluation."""

    scores: list[dict[str, Any]] = Field(default_factory=list, description="Per-question scores")
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    summary: str = Field(default="")


class EvaluateTestResponse(BaseModel):
    """Response for an evaluated and stored test attempt."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True)
    attempt_id: str = Field(..., alias="attemptId", description="Stored TestAttempt ID")
    score: int = Field(..., ge=0, le=100, description="Aggregate score 0-100")
    cefr_level: str = Field(..., alias="cefrLevel", description="CEFR level A1-C2")
    recommended_course: str = Field(..., alias="recommendedCourse")
    evaluation: EvaluationDetails
