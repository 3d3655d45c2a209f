from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class QuizQuestion(BaseModel):
    id: UUID
    type: str
    prompt: str
    options: List[Any] = Field(default_factory=list)
    audio_url: Optional[str] = None
    order_index: int


class QuizResponse(BaseModel):
    id: UUID
    unit_id: UUID
    questions: List[QuizQuestion]


class QuizSubmission(BaseModel):
    # question index (0-based, in order_index order) -> chosen answer
    answers: Dict[int, str] = Field(default_factory=dict)


class QuestionResult(BaseModel):
    question_index: int
    correct: bool
    correct_answer: str


class QuizResult(BaseModel):
    success: bool = True
    score: int
    passed: bool
    correct_count: int
    total_questions: int
    results: List[QuestionResult]
    certificate_awarded: bool = False
    certificate_code: Optional[str] = None


class Certificate(BaseModel):
    id: UUID
    level_id: UUID
    dialect_id: UUID
    cert_code: str
    public_url: Optional[str] = None
    issued_at: datetime
    level_name: Optional[str] = None
    dialect_name: Optional[str] = None


class CertificateListResponse(BaseModel):
    items: List[Certificate]
