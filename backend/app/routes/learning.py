from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status

from ..auth import CurrentUser, OptionalCurrentUser
from ..schemas.learning import (
    DialectListResponse,
    DialectOverview,
    LessonCompletionResponse,
    LessonDetail,
    LevelOverview,
    UnitOverview,
)
from ..services import learning_service
from ..utils.http_errors import http_error

router = APIRouter(prefix="/api", tags=["learning"])


@router.get("/dialects", response_model=DialectListResponse)
async def list_dialects() -> DialectListResponse:
    items = await learning_service.list_dialects()
    return DialectListResponse(items=items)


@router.get("/dialects/{dialect_id}", response_model=DialectOverview)
async def get_dialect(dialect_id: UUID, current: OptionalCurrentUser) -> DialectOverview:
    try:
        return await learning_service.dialect_overview(str(dialect_id), current)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc


@router.get("/levels/{level_id}", response_model=LevelOverview)
async def get_level(level_id: UUID, current: OptionalCurrentUser) -> LevelOverview:
    try:
        return await learning_service.level_overview(str(level_id), current)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc


@router.get("/units/{unit_id}", response_model=UnitOverview)
async def get_unit(unit_id: UUID, current: OptionalCurrentUser) -> UnitOverview:
    try:
        return await learning_service.unit_overview(str(unit_id), current)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc


@router.get("/lessons/{lesson_id}", response_model=LessonDetail)
async def get_lesson(lesson_id: UUID, current: OptionalCurrentUser) -> LessonDetail:
    try:
        return await learning_service.get_lesson(str(lesson_id), current)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc


@router.post(
    "/lessons/{lesson_id}/complete",
    response_model=LessonCompletionResponse,
    status_code=status.HTTP_200_OK,
)
async def complete_lesson(lesson_id: UUID, current: CurrentUser) -> LessonCompletionResponse:
    try:
        return await learning_service.complete_lesson(str(lesson_id), current)
    except learning_service.LearningError as exc:
        raise http_error(exc) from exc
