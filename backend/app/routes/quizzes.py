from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from ..auth import CurrentUser, OptionalCurrentUser
from ..schemas.quizzes import Certificate, QuizResponse, QuizResult, QuizSubmission
from ..services import quiz_service
from ..services.learning_service import LearningError
from ..utils.http_errors import http_error

router = APIRouter(prefix="/api", tags=["quizzes"])


@router.get("/quizzes/{quiz_id}", response_model=QuizResponse)
async def get_quiz(quiz_id: UUID, current: OptionalCurrentUser) -> QuizResponse:
    try:
        return await quiz_service.get_quiz(str(quiz_id), current)
    except LearningError as exc:
        raise http_error(exc) from exc


@router.post("/quizzes/{quiz_id}/submit", response_model=QuizResult)
async def submit_quiz(
    quiz_id: UUID,
    payload: QuizSubmission,
    current: CurrentUser,
) -> QuizResult:
    try:
        return await quiz_service.submit_quiz(str(quiz_id), current, payload.answers)
    except LearningError as exc:
        raise http_error(exc) from exc


@router.get("/certificates/{cert_code}", response_model=Certificate)
async def verify_certificate(cert_code: str) -> Certificate:
    try:
        return await quiz_service.get_certificate(cert_code)
    except LearningError as exc:
        raise http_error(exc) from exc
