"""
Placement-test evaluation request models.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TestAnswerRequest(BaseModel):
    """One answered question."""

    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(..., alias="questionId", description="Question number")
    question: str = Field(default="", description="Question text shown to the user")
    answer: str = Field(default="", description="User's answer; may be blank")
    type: str = Field(default="written", description="written or listening")


class EvaluateTestRequest(BaseModel):
    """Request for AI evaluation of a completed test."""

    model_config = ConfigDict(populate_by_name=True)

    answers: list[TestAnswerRequest] | None = Field(default=None, description="Answers in order")
    test_type: Literal["written", "listening"] = Field(
        default="written", alias="testType", description="Which test was taken"
    )
    user_name: str | None = Field(default=None, alias="userName", description="Optional name")
    user_email: str | None = Field(default=None, alias="userEmail", description="Optional email")
