from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from acceluni.models.curriculum.degree_model import Degree
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.lesson_model import Lesson
from typing import List, Optional


def get_user_degrees(db: Session, user_id: int) -> List[Degree]:
    """All live degrees of a user, newest first, with courses and lessons loaded."""
    return (
        db.query(Degree)
        .options(selectinload(Degree.courses).selectinload(Course.lessons))
        .filter(Degree.user_id == user_id, Degree.is_deleted.is_(False))
        .order_by(Degree.created_at.desc(), Degree.id.desc())
        .all()
    )


def get_owned_degree(db: Session, degree_id: int, user_id: int) -> Optional[Degree]:
    """Returns None both when the degree is missing and when another user owns it."""
    return (
        db.query(Degree)
        .options(selectinload(Degree.courses).selectinload(Course.lessons))
        .filter(
            Degree.id == degree_id,
            Degree.user_id == user_id,
            Degree.is_deleted.is_(False),
        )
        .first()
    )


def create_degree(
    db: Session, *, user_id: int, name: str, description: str, icon: Optional[str] = None
) -> Degree:
    degree = Degree(user_id=user_id, name=name, description=description, icon=icon)
    db.add(degree)
    db.commit()
    db.refresh(degree)
    return degree


def count_degree_courses(db: Session, degree_id: int) -> int:
    return (
        db.query(func.count(Course.id))
        .filter(Course.degree_id == degree_id, Course.is_deleted.is_(False))
        .scalar()
        or 0
    )


def soft_delete_degree(db: Session, degree: Degree) -> None:
    """Flag the degree and everything under it as deleted."""
    degree.is_deleted = True
    for course in degree.courses:
        course.is_deleted = True
        for lesson in course.lessons:
            lesson.is_deleted = True
    db.commit()


def live_courses(degree: Degree) -> List[Course]:
    return [course for course in degree.courses if not course.is_deleted]


def live_lessons(course: Course) -> List[Lesson]:
    return [lesson for lesson in course.lessons if not lesson.is_deleted]
