from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from ..db import get_conn

Row = dict[str, Any]

_LESSON_COLUMNS = """
        l.id,
        l.unit_id,
        l.title,
        l.arabic_text,
        l.transliteration,
        l.audio_url,
        l.image_url,
        l.order_index,
        l.created_at
    """

# Joined onto unit/lesson/quiz reads so callers can build a ContentLocator.
_LOCATOR_COLUMNS = """
        u.id AS unit_id,
        u.title AS unit_title,
        u.order_index AS unit_order_index,
        lv.id AS level_id,
        lv.name AS level_name,
        lv.order_index AS level_order_index,
        lv.dialect_id AS dialect_id
    """


async def list_dialects() -> Sequence[Row]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT id, name, description, image_url, created_at
              FROM app.dialects
             ORDER BY created_at, name
            """
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def get_dialect(dialect_id: str | UUID) -> Row | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT id, name, description, image_url, created_at
              FROM app.dialects
             WHERE id = %s
             LIMIT 1
            """,
            (dialect_id,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def list_levels(dialect_id: str | UUID) -> Sequence[Row]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT id, dialect_id, name, order_index, created_at
              FROM app.levels
             WHERE dialect_id = %s
             ORDER BY order_index
            """,
            (dialect_id,),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def get_level(level_id: str | UUID) -> Row | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT lv.id,
                   lv.dialect_id,
                   lv.name,
                   lv.order_index,
                   d.name AS dialect_name
              FROM app.levels AS lv
              JOIN app.dialects AS d ON d.id = lv.dialect_id
             WHERE lv.id = %s
             LIMIT 1
            """,
            (level_id,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def list_units(level_id: str | UUID) -> Sequence[Row]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT id, level_id, title, description, order_index
              FROM app.units
             WHERE level_id = %s
             ORDER BY order_index
            """,
            (level_id,),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def get_unit(unit_id: str | UUID) -> Row | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT u.description,
                   {locator}
              FROM app.units AS u
              JOIN app.levels AS lv ON lv.id = u.level_id
             WHERE u.id = %s
             LIMIT 1
            """.format(locator=_LOCATOR_COLUMNS),
            (unit_id,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def list_lessons(unit_id: str | UUID) -> Sequence[Row]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT {cols}
              FROM app.lessons AS l
             WHERE l.unit_id = %s
             ORDER BY l.order_index
            """.format(cols=_LESSON_COLUMNS),
            (unit_id,),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def get_lesson(lesson_id: str | UUID) -> Row | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT {cols},
                   {locator}
              FROM app.lessons AS l
              JOIN app.units AS u ON u.id = l.unit_id
              JOIN app.levels AS lv ON lv.id = u.level_id
             WHERE l.id = %s
             LIMIT 1
            """.format(cols=_LESSON_COLUMNS, locator=_LOCATOR_COLUMNS),
            (lesson_id,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def get_unit_quiz(unit_id: str | UUID) -> Row | None:
    async with get_conn() as cur:
        await cur.execute(
            "SELECT id, unit_id FROM app.quizzes WHERE unit_id = %s LIMIT 1",
            (unit_id,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def get_quiz(quiz_id: str | UUID) -> Row | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT q.id,
                   {locator}
              FROM app.quizzes AS q
              JOIN app.units AS u ON u.id = q.unit_id
              JOIN app.levels AS lv ON lv.id = u.level_id
             WHERE q.id = %s
             LIMIT 1
            """.format(locator=_LOCATOR_COLUMNS),
            (quiz_id,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def list_quiz_questions(
    quiz_id: str | UUID,
    *,
    include_answers: bool = False,
) -> Sequence[Row]:
    answer_column = ", correct_answer" if include_answers else ""
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT id, quiz_id, type, prompt, options_json, audio_url, order_index{answer}
              FROM app.quiz_questions
             WHERE quiz_id = %s
             ORDER BY order_index
            """.format(answer=answer_column),
            (quiz_id,),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def list_curriculum_outline() -> Sequence[Row]:
    """One row per lesson, with its unit, level and dialect.

    Units without lessons and levels without units still appear, with the
    missing ids left NULL.
    """
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT d.id AS dialect_id,
                   d.name AS dialect_name,
                   lv.id AS level_id,
                   lv.name AS level_name,
                   lv.order_index AS level_order_index,
                   u.id AS unit_id,
                   l.id AS lesson_id
              FROM app.dialects AS d
              JOIN app.levels AS lv ON lv.dialect_id = d.id
              LEFT JOIN app.units AS u ON u.level_id = lv.id
              LEFT JOIN app.lessons AS l ON l.unit_id = u.id
             ORDER BY d.created_at, d.name, lv.order_index, u.order_index, l.order_index
            """
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


__all__ = [
    "get_dialect",
    "get_lesson",
    "get_level",
    "get_quiz",
    "get_unit",
    "get_unit_quiz",
    "list_curriculum_outline",
    "list_dialects",
    "list_lessons",
    "list_levels",
    "list_quiz_questions",
    "list_units",
]
