from datetime import datetime
from sqlalchemy.orm import Session
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.lesson_model import Lesson, LessonStatus
from acceluni.models.progress.user_lesson_progress_model import UserLessonProgress
from typing import List, Optional


def upsert_progress(
    db: Session,
    *,
    user_id: int,
    lesson_id: int,
    completed: bool,
    test_score: Optional[int] = None,
    completed_at: Optional[datetime] = None,
    keep_completion: bool = True,
) -> UserLessonProgress:
    """Insert or update the (user, lesson) progress row without committing.

    With ``keep_completion`` an earlier completion survives a non-completing
    write, so a failed retake does not erase a pass.
    """
    progress = (
        db.query(UserLessonProgress)
        .filter(
            UserLessonProgress.user_id == user_id,
            UserLessonProgress.lesson_id == lesson_id,
        )
        .first()
    )
    if progress is None:
        progress = UserLessonProgress(user_id=user_id, lesson_id=lesson_id, completed=False)
        db.add(progress)

    progress.is_deleted = False
    if test_score is not None:
        progress.test_score = test_score
    if completed:
        progress.completed = True
        progress.completed_at = completed_at
    elif not (keep_completion and progress.completed):
        progress.completed = False
        progress.completed_at = None
    return progress


def get_user_progress_rows(db: Session, user_id: int) -> List[UserLessonProgress]:
    """Progress rows of the user's live lessons."""
    return (
        db.query(UserLessonProgress)
        .join(Lesson, UserLessonProgress.lesson_id == Lesson.id)
        .join(Course, Lesson.course_id == Course.id)
        .filter(
            UserLessonProgress.user_id == user_id,
            UserLessonProgress.is_deleted.is_(False),
            Lesson.is_deleted.is_(False),
            Course.is_deleted.is_(False),
        )
        .all()
    )


def count_completed_lessons(db: Session, user_id: int) -> int:
    return (
        db.query(Lesson)
        .join(Course, Lesson.course_id == Course.id)
        .filter(
            Course.user_id == user_id,
            Course.is_deleted.is_(False),
            Lesson.is_deleted.is_(False),
            Lesson.status == LessonStatus.COMPLETED,
        )
        .count()
    )
