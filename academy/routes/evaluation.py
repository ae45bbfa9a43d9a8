"""
Placement Test API Routes
AI evaluation of written and listening test answers.
"""

from fastapi import APIRouter, Depends

from academy.dependencies import get_evaluation_service
from academy.errors import AcademyError, InternalError
from academy.infrastructure.observability.logging import get_logger
from academy.models.api.evaluation_request import EvaluateTestRequest
from academy.models.api.evaluation_response import EvaluateTestResponse, EvaluationDetails
from academy.models.domain.evaluation_domain import TestAnswer
from academy.services.evaluation_service import EvaluationService

logger = get_logger(__name__)

router = APIRouter(prefix="/evaluate-test", tags=["evaluation"])


@router.post("", response_model=EvaluateTestResponse)
async def evaluate_test(
    request: EvaluateTestRequest,
    service: EvaluationService = Depends(get_evaluation_service),
):
    """Score the answers, map to a CEFR level and store the attempt."""
    answers = [
        TestAnswer(
            question_id=answer.question_id,
            question=answer.question,
            answer=answer.answer,
            type=answer.type,
        )
        for answer in request.answers or []
    ]

    try:
        attempt = await service.evaluate(
            answers=answers,
            test_type=request.test_type,
            user_name=request.user_name,
            user_email=request.user_email,
        )
    except AcademyError as e:
        logger.warning("Evaluation failed", reason=type(e).__name__, status_code=e.status_code)
        raise
    except Exception as e:
        logger.error("Unexpected evaluation error", error=str(e))
        raise InternalError("Failed to evaluate test") from e

    return EvaluateTestResponse(
        attempt_id=attempt.id,
        score=attempt.score_percentage,
        cefr_level=attempt.cefr_level,
        recommended_course=attempt.recommended_course,
        evaluation=EvaluationDetails(**attempt.evaluation.to_public_dict()),
    )
