from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from .. import access_control
from ..access_control import ContentLocator, Purchase
from ..metrics import content_access_decisions_total
from ..repositories import catalog
from ..repositories import progress as progress_repo
from ..repositories import purchases as purchases_repo
from ..schemas.learning import (
    AccessCheckResponse,
    Dialect,
    DialectOverview,
    EntitlementsResponse,
    Lesson,
    LessonCompletionResponse,
    LessonDetail,
    LessonSummary,
    LevelDetail,
    LevelOverview,
    LevelSummary,
    QuizAttempt,
    UnitContext,
    UnitOverview,
    UnitSummary,
)

logger = logging.getLogger(__name__)


class LearningError(Exception):
    status_code = 400

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail)
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail


class ContentNotFound(LearningError):
    status_code = 404


class ContentLocked(LearningError):
    status_code = 403


class AuthenticationRequired(LearningError):
    status_code = 401


def user_id_of(user: Mapping[str, Any] | None) -> str | None:
    if not user:
        return None
    value = user.get("id")
    return str(value) if value else None


def _locator(row: Mapping[str, Any]) -> ContentLocator:
    return ContentLocator(
        dialect_id=str(row["dialect_id"]),
        level_id=str(row["level_id"]),
        level_order_index=row.get("level_order_index"),
        unit_order_index=row.get("unit_order_index"),
    )


def _unit_context(row: Mapping[str, Any]) -> UnitContext:
    return UnitContext(
        id=row["unit_id"],
        title=row["unit_title"],
        order_index=row["unit_order_index"],
        level_id=row["level_id"],
        level_name=row.get("level_name"),
        level_order_index=row["level_order_index"],
        dialect_id=row["dialect_id"],
    )


async def purchases_for(user: Mapping[str, Any] | None) -> list[Purchase]:
    return await purchases_repo.list_granting_purchases(user_id_of(user))


async def require_access(
    user: Mapping[str, Any] | None,
    row: Mapping[str, Any],
    *,
    purchases: Sequence[Purchase] | None = None,
) -> str:
    """Raise ContentLocked unless ``row`` (with locator columns) may be opened.

    Returns the rule that granted access.
    """
    if purchases is None:
        purchases = await purchases_for(user)
    locator = _locator(row)
    reason = access_control.access_reason(
        purchases,
        locator.level_id,
        locator.dialect_id,
        locator.level_order_index,
        locator.unit_order_index,
    )
    if reason is None:
        content_access_decisions_total.labels(outcome="denied", reason="no_purchase").inc()
        logger.info(
            "Content locked",
            extra={
                "unit_id": str(row.get("unit_id")),
                "level_id": locator.level_id,
                "anonymous": user_id_of(user) is None,
            },
        )
        detail = (
            "Log in and purchase this level to continue"
            if user_id_of(user) is None
            else "Purchase this level to continue"
        )
        raise ContentLocked(detail)
    content_access_decisions_total.labels(outcome="granted", reason=reason).inc()
    return reason


async def get_entitlements(user: Mapping[str, Any]) -> EntitlementsResponse:
    purchases = await purchases_for(user)
    bundle_ids: list[str] = []
    level_ids: list[str] = []
    for purchase in purchases:
        grant = purchase.grant
        if isinstance(grant, access_control.DialectBundle) and grant.dialect_id not in bundle_ids:
            bundle_ids.append(grant.dialect_id)
        elif isinstance(grant, access_control.LevelGrant) and grant.level_id not in level_ids:
            level_ids.append(grant.level_id)
    return EntitlementsResponse(
        all_access=access_control.has_all_access(purchases),
        bundle_dialect_ids=bundle_ids,
        level_ids=level_ids,
    )


async def check_access(
    user: Mapping[str, Any] | None,
    locator: ContentLocator,
) -> AccessCheckResponse:
    purchases = await purchases_for(user)
    reason = access_control.access_reason(
        purchases,
        locator.level_id,
        locator.dialect_id,
        locator.level_order_index,
        locator.unit_order_index,
    )
    free_trial = (
        locator.level_order_index is not None
        and locator.unit_order_index is not None
        and access_control.is_free_trial(locator.level_order_index, locator.unit_order_index)
    )
    return AccessCheckResponse(
        has_access=reason is not None,
        reason=reason,
        is_free_trial=free_trial,
        has_all_access=access_control.has_all_access(purchases),
        has_dialect_bundle=access_control.has_dialect_bundle_access(purchases, locator.dialect_id),
    )


async def list_dialects() -> list[Dialect]:
    rows = await catalog.list_dialects()
    return [Dialect(**row) for row in rows]


async def dialect_overview(dialect_id: str, user: Mapping[str, Any] | None) -> DialectOverview:
    dialect = await catalog.get_dialect(dialect_id)
    if not dialect:
        raise ContentNotFound("Dialect not found")
    levels = await catalog.list_levels(dialect_id)
    purchases = await purchases_for(user)
    return DialectOverview(
        dialect=Dialect(**dialect),
        levels=[
            LevelSummary(
                id=level["id"],
                name=level["name"],
                order_index=level["order_index"],
                has_access=access_control.has_access_to_level(
                    purchases, str(level["id"]), str(dialect["id"])
                ),
            )
            for level in levels
        ],
        has_all_access=access_control.has_all_access(purchases),
        has_dialect_bundle=access_control.has_dialect_bundle_access(purchases, str(dialect["id"])),
    )


async def level_overview(level_id: str, user: Mapping[str, Any] | None) -> LevelOverview:
    level = await catalog.get_level(level_id)
    if not level:
        raise ContentNotFound("Level not found")
    units = await catalog.list_units(level_id)
    purchases = await purchases_for(user)
    summaries = []
    for unit in units:
        unlocked = access_control.has_access_to_level(
            purchases,
            str(level["id"]),
            str(level["dialect_id"]),
            level["order_index"],
            unit["order_index"],
        )
        summaries.append(
            UnitSummary(
                id=unit["id"],
                title=unit["title"],
                description=unit.get("description"),
                order_index=unit["order_index"],
                is_free_trial=access_control.is_free_trial(
                    level["order_index"], unit["order_index"]
                ),
                locked=not unlocked,
            )
        )
    return LevelOverview(level=LevelDetail(**level), units=summaries)


async def _completed_ids(
    user: Mapping[str, Any] | None,
    lessons: Sequence[Mapping[str, Any]],
) -> set[str]:
    user_id = user_id_of(user)
    if not user_id:
        return set()
    return await progress_repo.list_completed_lesson_ids(
        user_id, [row["id"] for row in lessons]
    )


def _lesson_model(row: Mapping[str, Any], completed: set[str]) -> Lesson:
    return Lesson(
        id=row["id"],
        unit_id=row["unit_id"],
        title=row["title"],
        order_index=row["order_index"],
        arabic_text=row.get("arabic_text"),
        transliteration=row.get("transliteration"),
        audio_url=row.get("audio_url"),
        image_url=row.get("image_url"),
        completed=str(row["id"]) in completed,
    )


async def unit_overview(unit_id: str, user: Mapping[str, Any] | None) -> UnitOverview:
    unit = await catalog.get_unit(unit_id)
    if not unit:
        raise ContentNotFound("Unit not found")
    await require_access(user, unit)

    lessons = await catalog.list_lessons(unit_id)
    completed = await _completed_ids(user, lessons)
    quiz = await catalog.get_unit_quiz(unit_id)
    attempts: list[QuizAttempt] = []
    user_id = user_id_of(user)
    if quiz and user_id:
        rows = await progress_repo.list_attempts(user_id, quiz["id"])
        attempts = [QuizAttempt(**row) for row in rows]

    return UnitOverview(
        unit=_unit_context(unit),
        description=unit.get("description"),
        is_free_trial=access_control.is_free_trial(
            unit["level_order_index"], unit["unit_order_index"]
        ),
        lessons=[_lesson_model(row, completed) for row in lessons],
        quiz_id=quiz["id"] if quiz else None,
        quiz_attempts=attempts,
        completed_count=len(completed),
        total_count=len(lessons),
    )


async def get_lesson(lesson_id: str, user: Mapping[str, Any] | None) -> LessonDetail:
    lesson = await catalog.get_lesson(lesson_id)
    if not lesson:
        raise ContentNotFound("Lesson not found")
    await require_access(user, lesson)

    unit_lessons = await catalog.list_lessons(lesson["unit_id"])
    completed = await _completed_ids(user, unit_lessons)
    summaries = [
        LessonSummary(
            id=row["id"],
            title=row["title"],
            order_index=row["order_index"],
            completed=str(row["id"]) in completed,
        )
        for row in unit_lessons
    ]
    current_index = next(
        (idx for idx, row in enumerate(unit_lessons) if str(row["id"]) == str(lesson["id"])),
        0,
    )
    return LessonDetail(
        lesson=_lesson_model(lesson, completed),
        unit=_unit_context(lesson),
        unit_lessons=summaries,
        current_index=current_index,
        prev_lesson=summaries[current_index - 1] if current_index > 0 else None,
        next_lesson=summaries[current_index + 1] if current_index + 1 < len(summaries) else None,
        is_free_trial=access_control.is_free_trial(
            lesson["level_order_index"], lesson["unit_order_index"]
        ),
        completed_count=len(completed),
        total_count=len(summaries),
    )


async def complete_lesson(lesson_id: str, user: Mapping[str, Any] | None) -> LessonCompletionResponse:
    user_id = user_id_of(user)
    if not user_id:
        raise AuthenticationRequired("Log in to save your progress")
    lesson = await catalog.get_lesson(lesson_id)
    if not lesson:
        raise ContentNotFound("Lesson not found")
    await require_access(user, lesson)

    await progress_repo.mark_lesson_complete(user_id, lesson["id"])
    unit_lessons = await catalog.list_lessons(lesson["unit_id"])
    completed = await progress_repo.list_completed_lesson_ids(
        user_id, [row["id"] for row in unit_lessons]
    )
    total = len(unit_lessons)
    return LessonCompletionResponse(
        lesson_id=lesson["id"],
        completed_count=len(completed),
        total_count=total,
        unit_completed=total > 0 and len(completed) >= total,
    )


__all__ = [
    "AuthenticationRequired",
    "ContentLocked",
    "ContentNotFound",
    "LearningError",
    "check_access",
    "complete_lesson",
    "dialect_overview",
    "get_entitlements",
    "get_lesson",
    "level_overview",
    "list_dialects",
    "purchases_for",
    "require_access",
    "unit_overview",
    "user_id_of",
]
