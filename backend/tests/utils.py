from __future__ import annotations

import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from app.access_control import Purchase, purchase_from_row
from app.config import settings


def make_token(user_id: str, *, expires_in: int = 3600, **claims: Any) -> str:
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def purchase(scope: str | None, *, dialect_id: str | None = None, level_id: str | None = None) -> Purchase:
    product = None if scope is None else {"scope": scope, "dialect_id": dialect_id, "level_id": level_id}
    return purchase_from_row(
        {
            "id": uuid.uuid4().hex,
            "product_id": uuid.uuid4().hex,
            "status": "active",
            "products": product,
        }
    )


_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _id() -> str:
    return str(uuid.uuid4())


class FakeStore:
    """In-memory stand-in for the catalog, progress and purchases repositories.

    Builds two dialects with two levels each; each level has two units, each unit
    two lessons and a quiz with two questions whose answers are "a" and "b".
    """

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.purchase_rows: dict[str, list[dict[str, Any]]] = {}
        self.progress: set[tuple[str, str]] = set()
        self.completed_at: dict[tuple[str, str], datetime] = {}
        self.attempts: list[dict[str, Any]] = []
        self.certificates: list[dict[str, Any]] = []
        self.fail_attempt_insert = False

        self.dialect = {"id": _id(), "name": "Gulf Arabic", "description": None, "image_url": None}
        self.other_dialect = {"id": _id(), "name": "Egyptian Arabic", "description": None, "image_url": None}
        self.dialects = [self.dialect, self.other_dialect]
        self.levels: list[dict[str, Any]] = []
        self.units: list[dict[str, Any]] = []
        self.lessons: list[dict[str, Any]] = []
        self.quizzes: list[dict[str, Any]] = []
        self.questions: list[dict[str, Any]] = []
        for dialect in self.dialects:
            for level_order, name in ((1, "Beginner"), (2, "Intermediate")):
                level = {
                    "id": _id(),
                    "dialect_id": dialect["id"],
                    "name": name,
                    "order_index": level_order,
                    "dialect_name": dialect["name"],
                }
                self.levels.append(level)
                for unit_order in (1, 2):
                    unit = {
                        "id": _id(),
                        "level_id": level["id"],
                        "title": f"{name} unit {unit_order}",
                        "description": None,
                        "order_index": unit_order,
                    }
                    self.units.append(unit)
                    for lesson_order in (1, 2):
                        self.lessons.append(
                            {
                                "id": _id(),
                                "unit_id": unit["id"],
                                "title": f"Lesson {lesson_order}",
                                "arabic_text": "مرحبا",
                                "transliteration": "marhaba",
                                "audio_url": None,
                                "image_url": None,
                                "order_index": lesson_order,
                            }
                        )
                    quiz = {"id": _id(), "unit_id": unit["id"]}
                    self.quizzes.append(quiz)
                    for q_order, answer in ((1, "a"), (2, "b")):
                        self.questions.append(
                            {
                                "id": _id(),
                                "quiz_id": quiz["id"],
                                "type": "multiple_choice",
                                "prompt": f"Question {q_order}",
                                "options_json": ["a", "b", "c"],
                                "audio_url": None,
                                "order_index": q_order,
                                "correct_answer": answer,
                            }
                        )

    # lookups used by tests
    def level(self, dialect: dict[str, Any], order: int) -> dict[str, Any]:
        return next(
            lv for lv in self.levels if lv["dialect_id"] == dialect["id"] and lv["order_index"] == order
        )

    def unit(self, level: dict[str, Any], order: int) -> dict[str, Any]:
        return next(u for u in self.units if u["level_id"] == level["id"] and u["order_index"] == order)

    def unit_lessons(self, unit: dict[str, Any]) -> list[dict[str, Any]]:
        return sorted(
            (lesson for lesson in self.lessons if lesson["unit_id"] == unit["id"]),
            key=lambda row: row["order_index"],
        )

    def unit_quiz(self, unit: dict[str, Any]) -> dict[str, Any]:
        return next(q for q in self.quizzes if q["unit_id"] == unit["id"])

    def add_user(self) -> str:
        user_id = _id()
        self.users[user_id] = {"id": user_id, "email": f"{user_id[:8]}@example.com", "is_admin": False}
        return user_id

    def grant(self, user_id: str, scope: str, *, dialect_id=None, level_id=None, status="completed") -> None:
        self.purchase_rows.setdefault(user_id, []).append(
            {
                "id": _id(),
                "product_id": _id(),
                "status": status,
                "products": {"scope": scope, "dialect_id": dialect_id, "level_id": level_id},
            }
        )

    def _locator(self, unit_id: str) -> dict[str, Any]:
        unit = next(u for u in self.units if u["id"] == unit_id)
        level = next(lv for lv in self.levels if lv["id"] == unit["level_id"])
        return {
            "unit_id": unit["id"],
            "unit_title": unit["title"],
            "unit_order_index": unit["order_index"],
            "level_id": level["id"],
            "level_name": level["name"],
            "level_order_index": level["order_index"],
            "dialect_id": level["dialect_id"],
        }

    # app.auth
    async def fetch_user(self, user_id):
        return self.users.get(str(user_id))

    # app.repositories.purchases
    async def list_purchase_rows(self, user_id):
        rows = self.purchase_rows.get(str(user_id), [])
        return [row for row in rows if row["status"] in settings.granting_purchase_statuses]

    # app.repositories.catalog
    async def list_dialects(self):
        return [dict(d) for d in self.dialects]

    async def get_dialect(self, dialect_id):
        return next((dict(d) for d in self.dialects if d["id"] == str(dialect_id)), None)

    async def list_levels(self, dialect_id):
        rows = [dict(lv) for lv in self.levels if lv["dialect_id"] == str(dialect_id)]
        return sorted(rows, key=lambda row: row["order_index"])

    async def get_level(self, level_id):
        return next((dict(lv) for lv in self.levels if lv["id"] == str(level_id)), None)

    async def list_units(self, level_id):
        rows = [dict(u) for u in self.units if u["level_id"] == str(level_id)]
        return sorted(rows, key=lambda row: row["order_index"])

    async def get_unit(self, unit_id):
        unit = next((u for u in self.units if u["id"] == str(unit_id)), None)
        if unit is None:
            return None
        return {"description": unit["description"], **self._locator(unit["id"])}

    async def list_lessons(self, unit_id):
        rows = [dict(lesson) for lesson in self.lessons if lesson["unit_id"] == str(unit_id)]
        return sorted(rows, key=lambda row: row["order_index"])

    async def get_lesson(self, lesson_id):
        lesson = next((lesson for lesson in self.lessons if lesson["id"] == str(lesson_id)), None)
        if lesson is None:
            return None
        return {**lesson, **self._locator(lesson["unit_id"])}

    async def get_unit_quiz(self, unit_id):
        return next((dict(q) for q in self.quizzes if q["unit_id"] == str(unit_id)), None)

    async def get_quiz(self, quiz_id):
        quiz = next((q for q in self.quizzes if q["id"] == str(quiz_id)), None)
        if quiz is None:
            return None
        return {"id": quiz["id"], **self._locator(quiz["unit_id"])}

    async def list_quiz_questions(self, quiz_id, *, include_answers=False):
        rows = sorted(
            (dict(q) for q in self.questions if q["quiz_id"] == str(quiz_id)),
            key=lambda row: row["order_index"],
        )
        if not include_answers:
            for row in rows:
                row.pop("correct_answer")
        return rows

    async def list_curriculum_outline(self):
        rows = []
        for dialect in self.dialects:
            for level in sorted(
                (lv for lv in self.levels if lv["dialect_id"] == dialect["id"]),
                key=lambda lv: lv["order_index"],
            ):
                for unit in sorted(
                    (u for u in self.units if u["level_id"] == level["id"]),
                    key=lambda u: u["order_index"],
                ):
                    for lesson in self.unit_lessons(unit):
                        rows.append(
                            {
                                "dialect_id": dialect["id"],
                                "dialect_name": dialect["name"],
                                "level_id": level["id"],
                                "level_name": level["name"],
                                "level_order_index": level["order_index"],
                                "unit_id": unit["id"],
                                "lesson_id": lesson["id"],
                            }
                        )
        return rows

    # app.repositories.progress
    async def list_completed_lesson_ids(self, user_id, lesson_ids):
        wanted = {str(lesson_id) for lesson_id in lesson_ids}
        return {lesson for user, lesson in self.progress if user == str(user_id) and lesson in wanted}

    async def mark_lesson_complete(self, user_id, lesson_id):
        key = (str(user_id), str(lesson_id))
        self.progress.add(key)
        # one second apart so "most recent" ordering is deterministic
        self.completed_at.setdefault(key, _EPOCH + timedelta(seconds=len(self.completed_at)))
        return {"user_id": user_id, "lesson_id": lesson_id, "completed_at": self.completed_at[key]}

    async def record_quiz_attempt(self, user_id, quiz_id, *, score, passed):
        if self.fail_attempt_insert:
            raise RuntimeError("insert failed")
        row = {
            "id": _id(),
            "user_id": str(user_id),
            "quiz_id": str(quiz_id),
            "score": score,
            "passed": passed,
            "created_at": datetime.now(timezone.utc),
        }
        self.attempts.append(row)
        return row

    async def list_attempts(self, user_id, quiz_id):
        rows = [
            dict(a) for a in self.attempts if a["user_id"] == str(user_id) and a["quiz_id"] == str(quiz_id)
        ]
        return list(reversed(rows))

    async def list_recent_lessons(self, user_id, *, limit=5):
        keys = sorted(
            (key for key in self.completed_at if key[0] == str(user_id)),
            key=lambda key: self.completed_at[key],
            reverse=True,
        )[:limit]
        rows = []
        for key in keys:
            lesson = next(row for row in self.lessons if row["id"] == key[1])
            locator = self._locator(lesson["unit_id"])
            level = next(lv for lv in self.levels if lv["id"] == locator["level_id"])
            rows.append(
                {
                    "lesson_id": lesson["id"],
                    "completed_at": self.completed_at[key],
                    "lesson_title": lesson["title"],
                    "unit_title": locator["unit_title"],
                    "level_id": level["id"],
                    "level_name": level["name"],
                    "dialect_id": level["dialect_id"],
                    "dialect_name": level["dialect_name"],
                }
            )
        return rows

    async def list_recent_quiz_attempts(self, user_id, *, limit=5):
        rows = []
        for attempt in reversed(self.attempts):
            if attempt["user_id"] != str(user_id):
                continue
            quiz = next(q for q in self.quizzes if q["id"] == attempt["quiz_id"])
            locator = self._locator(quiz["unit_id"])
            level = next(lv for lv in self.levels if lv["id"] == locator["level_id"])
            rows.append(
                {
                    **attempt,
                    "unit_title": locator["unit_title"],
                    "dialect_name": level["dialect_name"],
                }
            )
        return rows[:limit]

    def _level_quiz_ids(self, level_id) -> set[str]:
        unit_ids = {u["id"] for u in self.units if u["level_id"] == str(level_id)}
        return {q["id"] for q in self.quizzes if q["unit_id"] in unit_ids}

    async def count_level_quizzes(self, level_id):
        return len(self._level_quiz_ids(level_id))

    async def count_passed_level_quizzes(self, user_id, level_id):
        quiz_ids = self._level_quiz_ids(level_id)
        return len(
            {
                a["quiz_id"]
                for a in self.attempts
                if a["user_id"] == str(user_id) and a["passed"] and a["quiz_id"] in quiz_ids
            }
        )

    async def get_certificate(self, user_id, level_id):
        return next(
            (
                dict(c)
                for c in self.certificates
                if c["user_id"] == str(user_id) and c["level_id"] == str(level_id)
            ),
            None,
        )

    async def insert_certificate(self, user_id, *, level_id, dialect_id, cert_code):
        if await self.get_certificate(user_id, level_id):
            return None
        row = {
            "id": _id(),
            "user_id": str(user_id),
            "level_id": str(level_id),
            "dialect_id": str(dialect_id),
            "cert_code": cert_code,
            "public_url": None,
            "issued_at": datetime.now(timezone.utc),
        }
        self.certificates.append(row)
        return dict(row)

    def _with_names(self, row: dict[str, Any]) -> dict[str, Any]:
        level = next(lv for lv in self.levels if lv["id"] == row["level_id"])
        return {**row, "level_name": level["name"], "dialect_name": level["dialect_name"]}

    async def list_certificates(self, user_id):
        return [self._with_names(c) for c in self.certificates if c["user_id"] == str(user_id)]

    async def get_certificate_by_code(self, cert_code):
        row = next((c for c in self.certificates if c["cert_code"] == cert_code), None)
        return self._with_names(row) if row else None

    def install(self, monkeypatch) -> None:
        monkeypatch.setattr("app.auth.fetch_user", self.fetch_user)
        monkeypatch.setattr("app.repositories.purchases.list_purchase_rows", self.list_purchase_rows)
        for name in (
            "list_dialects",
            "get_dialect",
            "list_levels",
            "get_level",
            "list_units",
            "get_unit",
            "list_lessons",
            "get_lesson",
            "get_unit_quiz",
            "get_quiz",
            "list_quiz_questions",
            "list_curriculum_outline",
        ):
            monkeypatch.setattr(f"app.repositories.catalog.{name}", getattr(self, name))
        for name in (
            "list_completed_lesson_ids",
            "mark_lesson_complete",
            "record_quiz_attempt",
            "list_attempts",
            "list_recent_lessons",
            "list_recent_quiz_attempts",
            "count_level_quizzes",
            "count_passed_level_quizzes",
            "get_certificate",
            "insert_certificate",
            "list_certificates",
            "get_certificate_by_code",
        ):
            monkeypatch.setattr(f"app.repositories.progress.{name}", getattr(self, name))
