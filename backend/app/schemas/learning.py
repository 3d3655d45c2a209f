from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class EntitlementsResponse(BaseModel):
    all_access: bool = False
    bundle_dialect_ids: List[str] = Field(default_factory=list)
    level_ids: List[str] = Field(default_factory=list)


class AccessCheckResponse(BaseModel):
    has_access: bool
    reason: Optional[str] = None
    is_free_trial: bool = False
    has_all_access: bool = False
    has_dialect_bundle: bool = False


class Dialect(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None


class DialectListResponse(BaseModel):
    items: List[Dialect]


class LevelSummary(BaseModel):
    id: UUID
    name: str
    order_index: int
    has_access: bool = False


class DialectOverview(BaseModel):
    dialect: Dialect
    levels: List[LevelSummary]
    has_all_access: bool = False
    has_dialect_bundle: bool = False


class UnitSummary(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    order_index: int
    is_free_trial: bool = False
    locked: bool = True


class LevelDetail(BaseModel):
    id: UUID
    dialect_id: UUID
    dialect_name: Optional[str] = None
    name: str
    order_index: int


class LevelOverview(BaseModel):
    level: LevelDetail
    units: List[UnitSummary]


class LessonSummary(BaseModel):
    id: UUID
    title: str
    order_index: int
    completed: bool = False


class Lesson(LessonSummary):
    unit_id: UUID
    arabic_text: Optional[str] = None
    transliteration: Optional[str] = None
    audio_url: Optional[str] = None
    image_url: Optional[str] = None


class UnitContext(BaseModel):
    id: UUID
    title: str
    order_index: int
    level_id: UUID
    level_name: Optional[str] = None
    level_order_index: int
    dialect_id: UUID


class QuizAttempt(BaseModel):
    id: UUID
    score: int
    passed: bool
    created_at: datetime


class UnitOverview(BaseModel):
    unit: UnitContext
    description: Optional[str] = None
    is_free_trial: bool = False
    lessons: List[Lesson]
    quiz_id: Optional[UUID] = None
    quiz_attempts: List[QuizAttempt] = Field(default_factory=list)
    completed_count: int = 0
    total_count: int = 0


class LessonDetail(BaseModel):
    lesson: Lesson
    unit: UnitContext
    unit_lessons: List[LessonSummary]
    current_index: int
    prev_lesson: Optional[LessonSummary] = None
    next_lesson: Optional[LessonSummary] = None
    is_free_trial: bool = False
    completed_count: int = 0
    total_count: int = 0


class LessonCompletionResponse(BaseModel):
    lesson_id: UUID
    completed: bool = True
    completed_count: int
    total_count: int
    unit_completed: bool
