from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime

from acceluni.schemas.curriculum.lesson_schema import LessonSummary
from acceluni.schemas.progress.progress_schema import ProgressSummary


class CourseCreate(BaseModel):
    # The UI sends ``title`` from the wizard and ``name`` elsewhere.
    name: Optional[str] = None
    title: Optional[str] = None
    description: str = ""
    icon: Optional[str] = None
    degree_id: Optional[int] = None
    is_standalone: Optional[bool] = None

    @model_validator(mode="after")
    def _require_name_or_title(self) -> "CourseCreate":
        if not (self.name or self.title):
            raise ValueError("name or title is required")
        return self

    @property
    def resolved_name(self) -> str:
        return (self.name or self.title or "").strip()


class CourseUpdate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    icon: Optional[str] = None


class Course(BaseModel):
    id: int
    name: str
    description: str
    icon: Optional[str] = None
    degree_id: Optional[int] = None
    is_standalone: bool
    course_order: int
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CourseWithLessons(Course):
    lessons: List[LessonSummary] = Field(default_factory=list)


class CourseSummary(Course):
    lesson_count: int = 0
    progress_percentage: int = 0


class CourseList(BaseModel):
    courses: List[CourseSummary]


class CourseDetail(BaseModel):
    course: Course
    lessons: List[LessonSummary]
    userProgress: ProgressSummary


class GenerateLessonsRequest(BaseModel):
    lessonCount: int = Field(12, ge=1, le=30)
    expertiseLevel: str = "intermediate"
