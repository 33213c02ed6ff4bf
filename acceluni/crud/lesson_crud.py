from sqlalchemy.orm import Session, joinedload
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.lesson_model import Lesson
from acceluni.models.curriculum.test_model import LessonTest
from acceluni.models.progress.user_lesson_progress_model import UserLessonProgress
from typing import Any, Dict, List, Optional


def get_owned_lesson(db: Session, lesson_id: int, user_id: int) -> Optional[Lesson]:
    """Lessons are owned through their course; deleted courses hide their lessons."""
    return (
        db.query(Lesson)
        .join(Course, Lesson.course_id == Course.id)
        .options(joinedload(Lesson.course), joinedload(Lesson.test))
        .filter(
            Lesson.id == lesson_id,
            Lesson.is_deleted.is_(False),
            Course.user_id == user_id,
            Course.is_deleted.is_(False),
        )
        .first()
    )


def create_lesson(
    db: Session,
    *,
    course_id: int,
    name: str,
    description: str,
    lesson_order: int,
    icon: Optional[str] = None,
    content: str = "",
) -> Lesson:
    lesson = Lesson(
        course_id=course_id,
        name=name,
        description=description,
        icon=icon,
        content=content,
        lesson_order=lesson_order,
    )
    db.add(lesson)
    db.commit()
    db.refresh(lesson)
    return lesson


def get_test_for_lesson(db: Session, lesson_id: int) -> Optional[LessonTest]:
    return (
        db.query(LessonTest)
        .filter(LessonTest.lesson_id == lesson_id, LessonTest.is_deleted.is_(False))
        .first()
    )


def get_owned_test(db: Session, test_id: int, user_id: int) -> Optional[LessonTest]:
    return (
        db.query(LessonTest)
        .join(Lesson, LessonTest.lesson_id == Lesson.id)
        .join(Course, Lesson.course_id == Course.id)
        .filter(
            LessonTest.id == test_id,
            LessonTest.is_deleted.is_(False),
            Lesson.is_deleted.is_(False),
            Course.user_id == user_id,
            Course.is_deleted.is_(False),
        )
        .first()
    )


def upsert_test(db: Session, lesson_id: int, questions: List[Dict[str, Any]]) -> tuple[LessonTest, str]:
    """Create the lesson's test or overwrite its questions.

    Returns the test and ``"create"`` or ``"update"``.
    """
    # Any row counts, a soft-deleted test is revived rather than duplicated.
    test = db.query(LessonTest).filter(LessonTest.lesson_id == lesson_id).first()
    if test is None:
        test = LessonTest(lesson_id=lesson_id, questions=questions)
        db.add(test)
        operation = "create"
    else:
        test.questions = questions
        test.is_deleted = False
        operation = "update"
    db.commit()
    db.refresh(test)
    return test, operation


def get_progress(db: Session, user_id: int, lesson_id: int) -> Optional[UserLessonProgress]:
    return (
        db.query(UserLessonProgress)
        .filter(
            UserLessonProgress.user_id == user_id,
            UserLessonProgress.lesson_id == lesson_id,
            UserLessonProgress.is_deleted.is_(False),
        )
        .first()
    )
