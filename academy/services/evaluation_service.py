"""
Test Evaluation Service
Scores placement-test answers with the configured AI backend, maps the score to
a CEFR level and stores the attempt.
"""

from academy.config import Settings, settings
from academy.db.helpers import DatabaseError
from academy.errors import (
    EvaluationParseError,
    InternalError,
    NoAnswersError,
    UpstreamUnavailableError,
)
from academy.infrastructure.observability.logging import get_logger
from academy.models.domain.evaluation_domain import (
    TestAnswer,
    TestAttempt,
    extract_json_object,
    map_score_to_cefr,
    parse_evaluation,
)
from academy.repositories.test_attempt_repository import TestAttemptRepository
from academy.services.ai_provider import AIClientManager, ai_clients

logger = get_logger(__name__)

EVALUATION_TEMPERATURE = 0.3
EVALUATION_MAX_TOKENS = 2048
EVALUATION_FAILED_MESSAGE = "AI evaluation failed"

ASSESSOR_SYSTEM_MESSAGE = (
    "You are an expert English language assessor. Always respond with valid JSON."
)


def build_evaluation_prompt(test_type: str, answers: list[TestAnswer]) -> str:
    """Embed every question and answer and request the JSON evaluation shape."""
    blocks = "\n".join(
        f"\nQuestion {answer.question_id}: {answer.question}\n"
        f"Answer: {answer.answer.strip() or '(No answer provided)'}\n"
        for answer in answers
    )

    return f"""Evaluate these {test_type} English placement test answers and provide scores.

Test Answers:
{blocks}
Provide your evaluation in this exact JSON format:
{{
  "scores": [
    {{ "questionId": 1, "score": 85, "feedback": "Good grammar and vocabulary usage" }}
  ],
  "overallScore": 75,
  "strengths": ["Good vocabulary", "Clear structure"],
  "improvements": ["Work on complex sentences", "Practice tenses"],
  "summary": "Overall assessment summary here"
}}

Score each answer 0-100 based on:
- Grammar accuracy (25%)
- Vocabulary usage (25%)
- Coherence and relevance (25%)
- Communication effectiveness (25%)

Unanswered questions score 0. Be constructive and encouraging in feedback."""


class EvaluationService:
    """Evaluate, band and persist placement-test attempts."""

    def __init__(
        self,
        config: Settings = settings,
        ai: AIClientManager = ai_clients,
        repository: TestAttemptRepository | None = None,
    ):
        self.config = config
        self.ai = ai
        self.repository = repository or TestAttemptRepository()

    async def evaluate(
        self,
        *,
        answers: list[TestAnswer] | None,
        test_type: str = "written",
        user_name: str | None = None,
        user_email: str | None = None,
    ) -> TestAttempt:
        """
        Run the full evaluation flow for one submission.

        Raises:
            NoAnswersError: empty submission (400)
            ConfigurationError: provider key missing (500)
            RateLimitedError / UpstreamUnavailableError: backend refused (429 / 402 / 500)
            EvaluationParseError: no usable JSON in the reply (500); nothing is stored
            InternalError: the attempt could not be stored (500)
        """
        if not answers:
            raise NoAnswersError()

        provider = self.ai.get()
        prompt = build_evaluation_prompt(test_type, answers)

        logger.info(
            "Starting test evaluation",
            test_type=test_type,
            answer_count=len(answers),
            provider=provider.name,
        )

        try:
            reply = await provider.complete(
                ASSESSOR_SYSTEM_MESSAGE,
                [{"role": "user", "content": prompt}],
                temperature=EVALUATION_TEMPERATURE,
                max_tokens=EVALUATION_MAX_TOKENS,
            )
        except UpstreamUnavailableError as e:
            if e.status_code != 500:
                raise
            raise UpstreamUnavailableError(
                EVALUATION_FAILED_MESSAGE, upstream_status=e.upstream_status
            ) from e

        try:
            evaluation = parse_evaluation(extract_json_object(reply))
        except EvaluationParseError:
            logger.error("Failed to parse AI evaluation", reply_length=len(reply or ""))
            raise

        band = map_score_to_cefr(evaluation.score)

        try:
            attempt_id = await self.repository.insert_attempt(
                test_type=test_type,
                answers=answers,
                evaluation=evaluation,
                cefr_level=band.level,
                recommended_course=band.course,
                user_name=user_name,
                user_email=user_email,
            )
        except DatabaseError as e:
            logger.error("Error saving test attempt", error=str(e))
            raise InternalError("Failed to save test attempt") from e

        logger.info(
            "Test evaluated",
            attempt_id=attempt_id,
            score=evaluation.score,
            cefr_level=band.level,
        )

        return TestAttempt(
            id=attempt_id,
            test_type=test_type,
            score_percentage=evaluation.score,
            cefr_level=band.level,
            recommended_course=band.course,
            evaluation=evaluation,
            answers=answers,
            user_name=user_name,
            user_email=user_email,
        )
