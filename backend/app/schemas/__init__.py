from .dashboard import (
    ActivityResponse,
    DialectProgress,
    LevelProgress,
    ProgressResponse,
    QuizResultListResponse,
    QuizResultSummary,
    RecentLesson,
)
from .learning import (
    AccessCheckResponse,
    Dialect,
    DialectListResponse,
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
from .quizzes import (
    Certificate,
    CertificateListResponse,
    QuestionResult,
    QuizQuestion,
    QuizResponse,
    QuizResult,
    QuizSubmission,
)

__all__ = [
    "AccessCheckResponse",
    "ActivityResponse",
    "Certificate",
    "CertificateListResponse",
    "Dialect",
    "DialectListResponse",
    "DialectOverview",
    "DialectProgress",
    "EntitlementsResponse",
    "Lesson",
    "LessonCompletionResponse",
    "LessonDetail",
    "LessonSummary",
    "LevelDetail",
    "LevelOverview",
    "LevelProgress",
    "LevelSummary",
    "ProgressResponse",
    "QuestionResult",
    "QuizAttempt",
    "QuizQuestion",
    "QuizResponse",
    "QuizResult",
    "QuizResultListResponse",
    "QuizResultSummary",
    "QuizSubmission",
    "RecentLesson",
    "UnitContext",
    "UnitOverview",
    "UnitSummary",
]
