from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.lesson_model import Lesson
from typing import List, Optional


def get_standalone_courses(db: Session, user_id: int) -> List[Course]:
    return (
        db.query(Course)
        .options(selectinload(Course.lessons))
        .filter(
            Course.user_id == user_id,
            Course.degree_id.is_(None),
            Course.is_deleted.is_(False),
        )
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )


def get_user_courses(db: Session, user_id: int) -> List[Course]:
    return (
        db.query(Course)
        .options(selectinload(Course.lessons))
        .filter(Course.user_id == user_id, Course.is_deleted.is_(False))
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )


def get_owned_course(db: Session, course_id: int, user_id: int) -> Optional[Course]:
    return (
        db.query(Course)
        .options(selectinload(Course.lessons))
        .filter(
            Course.id == course_id,
            Course.user_id == user_id,
            Course.is_deleted.is_(False),
        )
        .first()
    )


def next_course_order(db: Session, degree_id: int) -> int:
    current = (
        db.query(func.max(Course.course_order))
        .filter(Course.degree_id == degree_id, Course.is_deleted.is_(False))
        .scalar()
    )
    return 0 if current is None else current + 1


def create_course(
    db: Session,
    *,
    user_id: int,
    name: str,
    description: str,
    icon: Optional[str] = None,
    degree_id: Optional[int] = None,
    course_order: int = 0,
    commit: bool = True,
) -> Course:
    course = Course(
        user_id=user_id,
        name=name,
        description=description,
        icon=icon,
        degree_id=degree_id,
        is_standalone=degree_id is None,
        course_order=course_order,
    )
    db.add(course)
    if commit:
        db.commit()
        db.refresh(course)
    else:
        db.flush()
    return course


def update_course(db: Session, course: Course, *, name: str, description: str, icon: Optional[str] = None) -> Course:
    course.name = name
    course.description = description
    if icon is not None:
        course.icon = icon
    db.commit()
    db.refresh(course)
    return course


def soft_delete_course(db: Session, course: Course) -> None:
    course.is_deleted = True
    for lesson in course.lessons:
        lesson.is_deleted = True
    db.commit()


def count_course_lessons(db: Session, course_id: int) -> int:
    return (
        db.query(func.count(Lesson.id))
        .filter(Lesson.course_id == course_id, Lesson.is_deleted.is_(False))
        .scalar()
        or 0
    )
