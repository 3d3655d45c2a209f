from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from psycopg.rows import dict_row

from ..db import get_conn, pool


async def list_completed_lesson_ids(
    user_id: str | UUID,
    lesson_ids: Sequence[str | UUID],
) -> set[str]:
    if not lesson_ids:
        return set()
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT lesson_id
              FROM app.user_progress
             WHERE user_id = %s
               AND lesson_id = ANY(%s::uuid[])
            """,
            (user_id, [str(lesson_id) for lesson_id in lesson_ids]),
        )
        rows = await cur.fetchall()
    return {str(row["lesson_id"]) for row in rows}


async def mark_lesson_complete(user_id: str | UUID, lesson_id: str | UUID) -> dict[str, Any]:
    async with pool.connection() as conn:  # type: ignore[attr-defined]
        async with conn.cursor(row_factory=dict_row) as cur:  # type: ignore[attr-defined]
            await cur.execute(
                """
                INSERT INTO app.user_progress (user_id, lesson_id, completed_at)
                VALUES (%s, %s, now())
                ON CONFLICT (user_id, lesson_id)
                DO UPDATE SET completed_at = app.user_progress.completed_at
                RETURNING id, user_id, lesson_id, completed_at
                """,
                (user_id, lesson_id),
            )
            row = await cur.fetchone()
            await conn.commit()
    return dict(row)


async def record_quiz_attempt(
    user_id: str | UUID,
    quiz_id: str | UUID,
    *,
    score: int,
    passed: bool,
) -> dict[str, Any]:
    async with pool.connection() as conn:  # type: ignore[attr-defined]
        async with conn.cursor(row_factory=dict_row) as cur:  # type: ignore[attr-defined]
            await cur.execute(
                """
                INSERT INTO app.quiz_attempts (user_id, quiz_id, score, passed, created_at)
                VALUES (%s, %s, %s, %s, now())
                RETURNING id, user_id, quiz_id, score, passed, created_at
                """,
                (user_id, quiz_id, score, passed),
            )
            row = await cur.fetchone()
            await conn.commit()
    return dict(row)


async def list_attempts(user_id: str | UUID, quiz_id: str | UUID) -> Sequence[dict[str, Any]]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT id, quiz_id, score, passed, created_at
              FROM app.quiz_attempts
             WHERE user_id = %s
               AND quiz_id = %s
             ORDER BY created_at DESC
            """,
            (user_id, quiz_id),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def list_recent_lessons(user_id: str | UUID, *, limit: int = 5) -> Sequence[dict[str, Any]]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT p.lesson_id,
                   p.completed_at,
                   l.title AS lesson_title,
                   u.title AS unit_title,
                   lv.id AS level_id,
                   lv.name AS level_name,
                   d.id AS dialect_id,
                   d.name AS dialect_name
              FROM app.user_progress AS p
              JOIN app.lessons AS l ON l.id = p.lesson_id
              JOIN app.units AS u ON u.id = l.unit_id
              JOIN app.levels AS lv ON lv.id = u.level_id
              JOIN app.dialects AS d ON d.id = lv.dialect_id
             WHERE p.user_id = %s
             ORDER BY p.completed_at DESC
             LIMIT %s
            """,
            (user_id, limit),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def list_recent_quiz_attempts(
    user_id: str | UUID,
    *,
    limit: int = 5,
) -> Sequence[dict[str, Any]]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT a.id, a.quiz_id, a.score, a.passed, a.created_at,
                   u.title AS unit_title,
                   d.name AS dialect_name
              FROM app.quiz_attempts AS a
              JOIN app.quizzes AS q ON q.id = a.quiz_id
              JOIN app.units AS u ON u.id = q.unit_id
              JOIN app.levels AS lv ON lv.id = u.level_id
              JOIN app.dialects AS d ON d.id = lv.dialect_id
             WHERE a.user_id = %s
             ORDER BY a.created_at DESC
             LIMIT %s
            """,
            (user_id, limit),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def count_level_quizzes(level_id: str | UUID) -> int:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT count(*) AS total
              FROM app.quizzes AS q
              JOIN app.units AS u ON u.id = q.unit_id
             WHERE u.level_id = %s
            """,
            (level_id,),
        )
        row = await cur.fetchone()
    return int(row["total"]) if row else 0


async def count_passed_level_quizzes(user_id: str | UUID, level_id: str | UUID) -> int:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT count(DISTINCT a.quiz_id) AS passed
              FROM app.quiz_attempts AS a
              JOIN app.quizzes AS q ON q.id = a.quiz_id
              JOIN app.units AS u ON u.id = q.unit_id
             WHERE a.user_id = %s
               AND a.passed
               AND u.level_id = %s
            """,
            (user_id, level_id),
        )
        row = await cur.fetchone()
    return int(row["passed"]) if row else 0


_CERTIFICATE_COLUMNS = "id, user_id, level_id, dialect_id, cert_code, public_url, issued_at"


async def get_certificate(user_id: str | UUID, level_id: str | UUID) -> dict[str, Any] | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT {cols}
              FROM app.certificates
             WHERE user_id = %s
               AND level_id = %s
             LIMIT 1
            """.format(cols=_CERTIFICATE_COLUMNS),
            (user_id, level_id),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def insert_certificate(
    user_id: str | UUID,
    *,
    level_id: str | UUID,
    dialect_id: str | UUID,
    cert_code: str,
) -> dict[str, Any] | None:
    """Insert a certificate; returns None if one already exists for the level."""
    async with pool.connection() as conn:  # type: ignore[attr-defined]
        async with conn.cursor(row_factory=dict_row) as cur:  # type: ignore[attr-defined]
            await cur.execute(
                """
                INSERT INTO app.certificates (user_id, level_id, dialect_id, cert_code, issued_at)
                VALUES (%s, %s, %s, %s, now())
                ON CONFLICT (user_id, level_id) DO NOTHING
                RETURNING {cols}
                """.format(cols=_CERTIFICATE_COLUMNS),
                (user_id, level_id, dialect_id, cert_code),
            )
            row = await cur.fetchone()
            await conn.commit()
    return dict(row) if row else None


async def list_certificates(user_id: str | UUID) -> Sequence[dict[str, Any]]:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT c.id, c.user_id, c.level_id, c.dialect_id, c.cert_code,
                   c.public_url, c.issued_at,
                   lv.name AS level_name,
                   d.name AS dialect_name
              FROM app.certificates AS c
              JOIN app.levels AS lv ON lv.id = c.level_id
              JOIN app.dialects AS d ON d.id = c.dialect_id
             WHERE c.user_id = %s
             ORDER BY c.issued_at DESC
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
    return [dict(row) for row in rows]


async def get_certificate_by_code(cert_code: str) -> dict[str, Any] | None:
    async with get_conn() as cur:
        await cur.execute(
            """
            SELECT c.id, c.user_id, c.level_id, c.dialect_id, c.cert_code,
                   c.public_url, c.issued_at,
                   lv.name AS level_name,
                   d.name AS dialect_name
              FROM app.certificates AS c
              JOIN app.levels AS lv ON lv.id = c.level_id
              JOIN app.dialects AS d ON d.id = c.dialect_id
             WHERE c.cert_code = %s
             LIMIT 1
            """,
            (cert_code,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


__all__ = [
    "count_level_quizzes",
    "count_passed_level_quizzes",
    "get_certificate",
    "get_certificate_by_code",
    "insert_certificate",
    "list_attempts",
    "list_certificates",
    "list_completed_lesson_ids",
    "list_recent_lessons",
    "list_recent_quiz_attempts",
    "mark_lesson_complete",
    "record_quiz_attempt",
]
