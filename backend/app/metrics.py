from __future__ import annotations

from prometheus_client import Counter

content_access_decisions_total = Counter(
    "content_access_decisions_total",
    "Lesson/unit access decisions, by outcome and the rule that decided them.",
    ["outcome", "reason"],
)
quiz_submissions_total = Counter(
    "quiz_submissions_total",
    "Graded quiz submissions.",
    ["passed"],
)
certificates_issued_total = Counter(
    "certificates_issued_total",
    "Level certificates issued after all quizzes of a level were passed.",
)
