"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from acceluni.models.billing.subscription_model import Subscription, UserTrial
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.degree_model import Degree
from acceluni.models.curriculum.lesson_model import Lesson, LessonStatus
from acceluni.models.curriculum.test_model import LessonTest
from acceluni.models.user.user_model import User

SAMPLE_QUESTIONS = [
    {
        "question": "Which option is right?",
        "answerType": "multiple choice",
        "options": ["A", "B", "C", "D"],
        "answer": 2,
    },
    {
        "question": "How important is practice?",
        "answerType": "numeric",
        "answer": 9,
    },
]


def create_user(db, **kwargs) -> User:
    defaults = {
        "username": "user",
        "email": "user@example.com",
        "hashed_password": "x",
        "is_active": True,
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_degree(db, user: User, **kwargs) -> Degree:
    defaults = {"name": "Physics - Full Degree", "description": "A Full Degree in Physics.", "icon": "🎓"}
    defaults.update(kwargs)
    degree = Degree(user_id=user.id, **defaults)
    db.add(degree)
    db.commit()
    db.refresh(degree)
    return degree


def create_course(db, user: User, degree: Degree | None = None, **kwargs) -> Course:
    defaults = {
        "name": "Python - Course",
        "description": "A Course in Python.",
        "course_order": 0,
        "is_standalone": degree is None,
    }
    defaults.update(kwargs)
    course = Course(user_id=user.id, degree_id=degree.id if degree else None, **defaults)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def create_lessons(db, course: Course, count: int, completed: int = 0) -> list[Lesson]:
    lessons = []
    for index in range(count):
        lesson = Lesson(
            course_id=course.id,
            name=f"Lesson {index + 1:02d}",
            description="",
            lesson_order=index,
            status=LessonStatus.COMPLETED if index < completed else LessonStatus.NOT_STARTED,
        )
        db.add(lesson)
        lessons.append(lesson)
    db.commit()
    for lesson in lessons:
        db.refresh(lesson)
    return lessons


def create_test(db, lesson: Lesson, questions: list[dict] | None = None) -> LessonTest:
    test = LessonTest(lesson_id=lesson.id, questions=questions if questions is not None else SAMPLE_QUESTIONS)
    db.add(test)
    db.commit()
    db.refresh(test)
    return test


def grant_subscription(db, user: User, **kwargs) -> Subscription:
    defaults = {
        "stripe_subscription_id": f"sub_{user.id}",
        "status": "active",
        "current_period_end": datetime.now(timezone.utc) + timedelta(days=30),
        "cancel_at_period_end": False,
    }
    defaults.update(kwargs)
    subscription = Subscription(user_id=user.id, **defaults)
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    return subscription


def grant_trial(db, user: User, *, days: int = 7, used: bool = False) -> UserTrial:
    trial = UserTrial(
        user_id=user.id,
        trial_end_time=datetime.now(timezone.utc) + timedelta(days=days),
        is_trial_used=used,
    )
    db.add(trial)
    db.commit()
    db.refresh(trial)
    return trial
