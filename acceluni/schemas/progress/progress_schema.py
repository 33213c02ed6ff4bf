from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class ProgressSummary(BaseModel):
    """Completion rollup of a course or degree."""

    completedLessons: int
    totalLessons: int
    progressPercentage: int


class LessonProgress(BaseModel):
    completed: bool
    test_score: Optional[int] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HomeProgress(BaseModel):
    totalLessonsCompleted: int
    totalTestsCompleted: int
    averageTestScore: int


class HomeContent(BaseModel):
    # Kept loose to avoid a circular import with the curriculum schemas.
    degrees: List[dict]
    standaloneCourses: List[dict]
    userProgress: HomeProgress
