from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any, Mapping

from ..config import settings
from ..metrics import certificates_issued_total, quiz_submissions_total
from ..repositories import catalog
from ..repositories import progress as progress_repo
from ..schemas.quizzes import (
    Certificate,
    QuestionResult,
    QuizQuestion,
    QuizResponse,
    QuizResult,
)
from .learning_service import (
    AuthenticationRequired,
    ContentNotFound,
    LearningError,
    require_access,
    user_id_of,
)

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


class QuizError(LearningError):
    pass


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_cert_code(now_ms: int | None = None) -> str:
    """``CERT-<epoch millis in base36>-<4 random base36 chars>``, upper case."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"CERT-{_to_base36(now_ms)}-{suffix}"


def score_percent(correct: int, total: int) -> int:
    """Percentage rounded half up, so 12.5 becomes 13."""
    if total <= 0:
        return 0
    return (correct * 200 + total) // (total * 2)


def grade_answers(
    questions: list[Mapping[str, Any]],
    answers: Mapping[int, str],
) -> tuple[int, list[QuestionResult]]:
    correct_count = 0
    results: list[QuestionResult] = []
    for index, question in enumerate(questions):
        expected = question["correct_answer"]
        correct = answers.get(index) == expected
        if correct:
            correct_count += 1
        results.append(
            QuestionResult(question_index=index, correct=correct, correct_answer=expected)
        )
    return correct_count, results


def _options(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return list(value.values())
    return []


async def _load_quiz(quiz_id: str) -> dict[str, Any]:
    quiz = await catalog.get_quiz(quiz_id)
    if not quiz:
        raise ContentNotFound("Quiz not found")
    return quiz


async def get_quiz(quiz_id: str, user: Mapping[str, Any] | None) -> QuizResponse:
    quiz = await _load_quiz(quiz_id)
    await require_access(user, quiz)
    rows = await catalog.list_quiz_questions(quiz_id)
    return QuizResponse(
        id=quiz["id"],
        unit_id=quiz["unit_id"],
        questions=[
            QuizQuestion(
                id=row["id"],
                type=row["type"],
                prompt=row["prompt"],
                options=_options(row.get("options_json")),
                audio_url=row.get("audio_url"),
                order_index=row["order_index"],
            )
            for row in rows
        ],
    )


async def _maybe_issue_certificate(user_id: str, quiz: Mapping[str, Any]) -> str | None:
    level_id = str(quiz["level_id"])
    total = await progress_repo.count_level_quizzes(level_id)
    if total == 0:
        return None
    passed = await progress_repo.count_passed_level_quizzes(user_id, level_id)
    if passed < total:
        return None
    if await progress_repo.get_certificate(user_id, level_id):
        return None
    certificate = await progress_repo.insert_certificate(
        user_id,
        level_id=level_id,
        dialect_id=str(quiz["dialect_id"]),
        cert_code=generate_cert_code(),
    )
    if not certificate:
        return None
    certificates_issued_total.inc()
    logger.info(
        "Certificate issued",
        extra={"level_id": level_id, "cert_code": certificate["cert_code"]},
    )
    return certificate["cert_code"]


async def submit_quiz(
    quiz_id: str,
    user: Mapping[str, Any] | None,
    answers: Mapping[int, str],
) -> QuizResult:
    user_id = user_id_of(user)
    if not user_id:
        raise AuthenticationRequired("Authorization required")
    quiz = await _load_quiz(quiz_id)
    await require_access(user, quiz)

    questions = await catalog.list_quiz_questions(quiz_id, include_answers=True)
    if not questions:
        raise ContentNotFound("Quiz not found or has no questions")

    correct_count, results = grade_answers(list(questions), answers)
    total = len(questions)
    score = score_percent(correct_count, total)
    passed = score >= settings.quiz_pass_score

    try:
        await progress_repo.record_quiz_attempt(user_id, quiz_id, score=score, passed=passed)
    except Exception as exc:
        logger.error("Failed to record quiz attempt", exc_info=True, extra={"quiz_id": quiz_id})
        raise QuizError("Failed to record quiz attempt", status_code=500) from exc
    quiz_submissions_total.labels(passed=str(passed).lower()).inc()

    cert_code = await _maybe_issue_certificate(user_id, quiz) if passed else None
    return QuizResult(
        score=score,
        passed=passed,
        correct_count=correct_count,
        total_questions=total,
        results=results,
        certificate_awarded=cert_code is not None,
        certificate_code=cert_code,
    )


async def list_certificates(user: Mapping[str, Any]) -> list[Certificate]:
    rows = await progress_repo.list_certificates(str(user["id"]))
    return [Certificate(**row) for row in rows]


async def get_certificate(cert_code: str) -> Certificate:
    row = await progress_repo.get_certificate_by_code(cert_code.strip().upper())
    if not row:
        raise ContentNotFound("Certificate not found")
    return Certificate(**row)


__all__ = [
    "QuizError",
    "generate_cert_code",
    "get_certificate",
    "get_quiz",
    "grade_answers",
    "list_certificates",
    "score_percent",
    "submit_quiz",
]
