"""
Chat API request models.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"] = Field(..., description="Who wrote the message")
    content: str = Field(..., description="Message text")


class ChatRequest(BaseModel):
    """Conversation so far plus display preferences."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list, description="Conversation history")
    language: str = Field(default="en", description="Reply language: en or hi")
    user_name: str | None = Field(default=None, alias="userName", description="Visitor's name")
