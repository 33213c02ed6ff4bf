import logging
from sqlalchemy.orm import Session
from typing import Iterable, List

from acceluni.crud import course_crud, degree_crud, progress_crud
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.degree_model import Degree
from acceluni.models.curriculum.lesson_model import Lesson, LessonStatus
from acceluni.schemas.progress.progress_schema import HomeProgress, ProgressSummary

logger = logging.getLogger(__name__)


def percentage(part: int, whole: int) -> int:
    """``round(100 * part / whole)`` with halves rounded up, 0 when ``whole`` is 0.

    Integer arithmetic keeps 1/8 at 13 where float ``round`` would give 12.
    """
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def rounded_mean(values: List[int]) -> int:
    if not values:
        return 0
    return (2 * sum(values) + len(values)) // (2 * len(values))


def summarize_lessons(lessons: Iterable[Lesson]) -> ProgressSummary:
    live = [lesson for lesson in lessons if not lesson.is_deleted]
    completed = sum(1 for lesson in live if lesson.status == LessonStatus.COMPLETED)
    return ProgressSummary(
        completedLessons=completed,
        totalLessons=len(live),
        progressPercentage=percentage(completed, len(live)),
    )


def course_progress(course: Course) -> ProgressSummary:
    return summarize_lessons(course.lessons)


def degree_progress(degree: Degree) -> ProgressSummary:
    """Computed over the flattened lessons of every course, not averaged per course."""
    lessons: List[Lesson] = []
    for course in degree_crud.live_courses(degree):
        lessons.extend(course.lessons)
    return summarize_lessons(lessons)


class ProgressService:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def home_rollup(self) -> HomeProgress:
        rows = progress_crud.get_user_progress_rows(self.db, self.user_id)
        scores = [row.test_score for row in rows if row.test_score is not None]
        return HomeProgress(
            totalLessonsCompleted=progress_crud.count_completed_lessons(self.db, self.user_id),
            totalTestsCompleted=len(scores),
            averageTestScore=rounded_mean(scores),
        )

    def degree_summaries(self) -> list[dict]:
        summaries = []
        for degree in degree_crud.get_user_degrees(self.db, self.user_id):
            summaries.append(
                {
                    "id": degree.id,
                    "name": degree.name,
                    "description": degree.description,
                    "icon": degree.icon,
                    "user_id": degree.user_id,
                    "created_at": degree.created_at,
                    "updated_at": degree.updated_at,
                    "course_count": len(degree_crud.live_courses(degree)),
                    "progress_percentage": degree_progress(degree).progressPercentage,
                }
            )
        return summaries

    def standalone_course_summaries(self) -> list[dict]:
        summaries = []
        for course in course_crud.get_standalone_courses(self.db, self.user_id):
            rollup = course_progress(course)
            summaries.append(
                {
                    "id": course.id,
                    "name": course.name,
                    "description": course.description,
                    "icon": course.icon,
                    "degree_id": course.degree_id,
                    "is_standalone": course.is_standalone,
                    "course_order": course.course_order,
                    "user_id": course.user_id,
                    "created_at": course.created_at,
                    "updated_at": course.updated_at,
                    "lesson_count": rollup.totalLessons,
                    "progress_percentage": rollup.progressPercentage,
                }
            )
        return summaries

    def home_content(self) -> dict:
        content = {
            "degrees": self.degree_summaries(),
            "standaloneCourses": self.standalone_course_summaries(),
            "userProgress": self.home_rollup(),
        }
        logger.info(
            "Home content for user %s: %s degrees, %s standalone courses",
            self.user_id,
            len(content["degrees"]),
            len(content["standaloneCourses"]),
        )
        return content
