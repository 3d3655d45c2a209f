from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel


class LevelProgress(BaseModel):
    level_id: UUID
    level_name: str
    order_index: int
    total_lessons: int = 0
    completed_lessons: int = 0
    total_units: int = 0
    completed_units: int = 0
    progress_percent: int = 0


class DialectProgress(BaseModel):
    dialect_id: UUID
    dialect_name: str
    levels: List[LevelProgress]


class ProgressResponse(BaseModel):
    items: List[DialectProgress]


class RecentLesson(BaseModel):
    lesson_id: UUID
    lesson_title: str
    unit_title: str
    level_id: UUID
    level_name: str
    dialect_id: UUID
    dialect_name: str
    completed_at: datetime


class ActivityResponse(BaseModel):
    items: List[RecentLesson]


class QuizResultSummary(BaseModel):
    id: UUID
    quiz_id: UUID
    unit_title: str
    dialect_name: str
    score: int
    passed: bool
    created_at: datetime


class QuizResultListResponse(BaseModel):
    items: List[QuizResultSummary]
