from __future__ import annotations

from fastapi import APIRouter, Query

from ..auth import CurrentUser
from ..schemas.dashboard import ActivityResponse, ProgressResponse, QuizResultListResponse
from ..schemas.learning import EntitlementsResponse
from ..schemas.quizzes import CertificateListResponse
from ..services import dashboard_service, learning_service, quiz_service
from ..utils.http_errors import http_error

router = APIRouter(prefix="/api/me", tags=["me"])


@router.get("/entitlements", response_model=EntitlementsResponse)
async def get_my_entitlements(current: CurrentUser) -> EntitlementsResponse:
    return await learning_service.get_entitlements(current)


@router.get("/certificates", response_model=CertificateListResponse)
async def list_my_certificates(current: CurrentUser) -> CertificateListResponse:
    items = await quiz_service.list_certificates(current)
    return CertificateListResponse(items=items)


@router.get("/progress", response_model=ProgressResponse)
async def get_my_progress(current: CurrentUser) -> ProgressResponse:
    try:
        items = await dashboard_service.learner_progress(current)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc
    return ProgressResponse(items=items)


@router.get("/activity", response_model=ActivityResponse)
async def get_my_activity(
    current: CurrentUser,
    limit: int = Query(default=dashboard_service.RECENT_LIMIT, ge=1, le=50),
) -> ActivityResponse:
    try:
        items = await dashboard_service.recent_activity(current, limit=limit)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc
    return ActivityResponse(items=items)


@router.get("/quiz-results", response_model=QuizResultListResponse)
async def get_my_quiz_results(
    current: CurrentUser,
    limit: int = Query(default=dashboard_service.RECENT_LIMIT, ge=1, le=50),
) -> QuizResultListResponse:
    try:
        items = await dashboard_service.recent_quiz_results(current, limit=limit)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc
    return QuizResultListResponse(items=items)
