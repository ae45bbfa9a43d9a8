"""
Evaluation Domain Models
Placement-test answers, the CEFR banding table and the parsed AI evaluation.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any

from academy.errors import EvaluationParseError


@dataclass(slots=True, frozen=True)
class CefrBand:
    """One row of the score -> CEFR level table (inclusive bounds)."""

    min_score: int
    max_score: int
    level: str
    course: str

    def contains(self, score: int) -> bool:
        return self.min_score <= score <= self.max_score


# Canonical table: cut points at 50/60/70/80/90.
CEFR_BANDS: tuple[CefrBand, ...] = (
    CefrBand(0, 49, "A1", "Beginner English"),
    CefrBand(50, 59, "A2", "Elementary English"),
    CefrBand(60, 69, "B1", "Intermediate English"),
    CefrBand(70, 79, "B2", "Upper Intermediate"),
    CefrBand(80, 89, "C1", "Professional English"),
    CefrBand(90, 100, "C2", "Advanced Mastery"),
)


def clamp_score(value: float) -> int:
    """Round to the nearest integer and clamp to [0, 100]."""
    return max(0, min(100, int(round(value))))


def map_score_to_cefr(score: float) -> CefrBand:
    """Map a 0-100 score to its CEFR band; out-of-range input is clamped first."""
    clamped = clamp_score(score)
    for band in CEFR_BANDS:
        if band.contains(clamped):
            return band
    # Unreachable while CEFR_BANDS covers 0..100
    raise ValueError(f"No CEFR band for score {clamped}")


@dataclass(slots=True)
class TestAnswer:
    """A single answered question as submitted by the browser."""

    __test__ = False

    question_id: int
    question: str
    answer: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "question": self.question,
            "answer": self.answer,
            "type": self.type,
        }


@dataclass(slots=True)
class Evaluation:
    """Structured evaluation extracted from the AI response."""

    score: int
    scores: list[dict[str, Any]] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    summary: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "scores": self.scores,
            "strengths": self.strengths,
            "improvements": self.improvements,
            "summary": self.summary,
        }


@dataclass(slots=True)
class TestAttempt:
    """A completed, persisted placement-test submission."""

    __test__ = False

    id: str
    test_type: str
    score_percentage: int
    cefr_level: str
    recommended_course: str
    evaluation: Evaluation
    answers: list[TestAnswer]
    user_name: str | None = None
    user_email: str | None = None


# --- best-effort structured extraction --------------------------------------

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)


def _first_object_span(text: str) -> str | None:
    """Return the first balanced top-level {...} span, honoring string literals."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be stored in a jsonb column
    raise ValueError(f"Non-finite number in evaluation: {name}")


def _finite_float(literal: str) -> float:
    number = float(literal)
    if not math.isfinite(number):
        raise ValueError(f"Number out of range in evaluation: {literal}")
    return number


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Pull a JSON object out of free-form model output.

    Tries a fenced code block first, then the first balanced {...} span.

    Raises:
        EvaluationParseError: no JSON object could be decoded
    """
    if not text or not text.strip():
        raise EvaluationParseError()

    candidates: list[str] = []
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    span = _first_object_span(text)
    if span:
        candidates.append(span)

    for candidate in candidates:
        try:
            payload = json.loads(
                candidate, parse_constant=_reject_constant, parse_float=_finite_float
            )
        except ValueError:
            continue
        if isinstance(payload, dict):
            return payload

    raise EvaluationParseError()


def _as_number(value: Any) -> float | None:
    """A finite number from an int, float or numeric string; None otherwise."""
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().rstrip("%"))
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def parse_evaluation(payload: dict[str, Any]) -> Evaluation:
    """
    Validate the evaluator payload and compute the aggregate score.

    The aggregate is overallScore when numeric, otherwise the mean of the
    per-question scores.

    Raises:
        EvaluationParseError: neither an overall score nor per-question scores
    """
    raw_scores = payload.get("scores")
    scores = [item for item in raw_scores if isinstance(item, dict)] if isinstance(raw_scores, list) else []

    aggregate = _as_number(payload.get("overallScore"))
    if aggregate is None:
        per_question = [n for n in (_as_number(item.get("score")) for item in scores) if n is not None]
        if not per_question:
            raise EvaluationParseError()
        aggregate = sum(per_question) / len(per_question)

    return Evaluation(
        score=clamp_score(aggregate),
        scores=scores,
        strengths=_as_str_list(payload.get("strengths")),
        improvements=_as_str_list(payload.get("improvements")),
        summary=str(payload.get("summary") or ""),
        raw=payload,
    )
