"""Learner dashboard: per-level progress and recent activity."""

from __future__ import annotations

from typing import Any, Mapping

from ..repositories import catalog
from ..repositories import progress as progress_repo
from ..schemas.dashboard import (
    DialectProgress,
    LevelProgress,
    QuizResultSummary,
    RecentLesson,
)
from .learning_service import AuthenticationRequired, user_id_of
from .quiz_service import score_percent

RECENT_LIMIT = 5


def _require_user_id(user: Mapping[str, Any] | None) -> str:
    user_id = user_id_of(user)
    if not user_id:
        raise AuthenticationRequired("Authorization required")
    return user_id


def _level_progress(level: Mapping[str, Any], completed: set[str]) -> LevelProgress:
    units: dict[str, list[str]] = level["units"]
    lesson_ids = [lesson_id for lessons in units.values() for lesson_id in lessons]
    done = sum(1 for lesson_id in lesson_ids if lesson_id in completed)
    completed_units = sum(
        1
        for lessons in units.values()
        if lessons and all(lesson_id in completed for lesson_id in lessons)
    )
    return LevelProgress(
        level_id=level["level_id"],
        level_name=level["level_name"],
        order_index=level["order_index"],
        total_lessons=len(lesson_ids),
        completed_lessons=done,
        total_units=len(units),
        completed_units=completed_units,
        progress_percent=score_percent(done, len(lesson_ids)),
    )


async def learner_progress(user: Mapping[str, Any] | None) -> list[DialectProgress]:
    """Progress for every level, grouped by dialect.

    A unit counts as completed only when it has lessons and all of them are
    done. Levels are ordered by ``order_index`` inside each dialect.
    """
    user_id = _require_user_id(user)
    rows = await catalog.list_curriculum_outline()

    dialects: dict[str, dict[str, Any]] = {}
    for row in rows:
        dialect = dialects.setdefault(
            str(row["dialect_id"]),
            {"dialect_id": row["dialect_id"], "dialect_name": row["dialect_name"], "levels": {}},
        )
        level = dialect["levels"].setdefault(
            str(row["level_id"]),
            {
                "level_id": row["level_id"],
                "level_name": row["level_name"],
                "order_index": row["level_order_index"],
                "units": {},
            },
        )
        if row.get("unit_id") is None:
            continue
        lessons = level["units"].setdefault(str(row["unit_id"]), [])
        if row.get("lesson_id") is not None:
            lessons.append(str(row["lesson_id"]))

    lesson_ids = [row["lesson_id"] for row in rows if row.get("lesson_id") is not None]
    completed = await progress_repo.list_completed_lesson_ids(user_id, lesson_ids)

    return [
        DialectProgress(
            dialect_id=dialect["dialect_id"],
            dialect_name=dialect["dialect_name"],
            levels=[
                _level_progress(level, completed)
                for level in sorted(dialect["levels"].values(), key=lambda lv: lv["order_index"])
            ],
        )
        for dialect in dialects.values()
    ]


async def recent_activity(
    user: Mapping[str, Any] | None,
    *,
    limit: int = RECENT_LIMIT,
) -> list[RecentLesson]:
    user_id = _require_user_id(user)
    rows = await progress_repo.list_recent_lessons(user_id, limit=limit)
    return [RecentLesson(**row) for row in rows]


async def recent_quiz_results(
    user: Mapping[str, Any] | None,
    *,
    limit: int = RECENT_LIMIT,
) -> list[QuizResultSummary]:
    user_id = _require_user_id(user)
    rows = await progress_repo.list_recent_quiz_attempts(user_id, limit=limit)
    return [QuizResultSummary(**row) for row in rows]


__all__ = [
    "RECENT_LIMIT",
    "learner_progress",
    "recent_activity",
    "recent_quiz_results",
]
