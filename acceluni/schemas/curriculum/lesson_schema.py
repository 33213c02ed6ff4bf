from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from acceluni.models.curriculum.lesson_model import LessonStatus
from acceluni.schemas.curriculum.test_schema import Test
from acceluni.schemas.progress.progress_schema import LessonProgress


class LessonSummary(BaseModel):
    id: int
    name: str
    description: str
    icon: Optional[str] = None
    lesson_order: int
    status: LessonStatus
    course_id: int

    class Config:
        from_attributes = True


class Lesson(LessonSummary):
    content: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LessonDetail(Lesson):
    test: Optional[Test] = None
    user_progress: Optional[LessonProgress] = None


class GenerateContentRequest(BaseModel):
    forceRegenerate: bool = False


class GenerateContentResponse(BaseModel):
    lesson: Lesson
    contentLength: int
    testQuestionsCount: int
    testOperation: Optional[str] = None


class GenerateTestResponse(BaseModel):
    testId: int
    testQuestionsCount: int
    testOperation: str
