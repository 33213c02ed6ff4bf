from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from acceluni.schemas.curriculum.course_schema import CourseWithLessons
from acceluni.schemas.progress.progress_schema import ProgressSummary


class DegreeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    icon: Optional[str] = None


class Degree(BaseModel):
    id: int
    name: str
    description: str
    icon: Optional[str] = None
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DegreeSummary(Degree):
    course_count: int = 0
    progress_percentage: int = 0


class DegreeList(BaseModel):
    degrees: List[DegreeSummary]


class DegreeDetail(BaseModel):
    degree: Degree
    courses: List[CourseWithLessons]
    userProgress: ProgressSummary


class GenerateCoursesRequest(BaseModel):
    courseCount: int = Field(8, ge=1, le=20)
    targetLevel: str = "comprehensive"
