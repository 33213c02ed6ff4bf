from decimal import ROUND_HALF_UP, Decimal

import pytest

from acceluni.crud import progress_crud
from acceluni.services.progress_service import (
    ProgressService,
    course_progress,
    degree_progress,
    percentage,
    rounded_mean,
)

from tests.utils import create_course, create_degree, create_lessons, create_user


@pytest.mark.parametrize(
    "part, whole, expected",
    [
        (0, 0, 0),
        (3, 0, 0),
        (1, 8, 13),
        (1, 200, 1),
        (1, 3, 33),
        (2, 3, 67),
        (5, 5, 100),
    ],
)
def test_percentage_rounds_half_up(part, whole, expected):
    assert percentage(part, whole) == expected


def test_rounded_mean():
    assert rounded_mean([]) == 0
    assert rounded_mean([100, 0]) == 50
    assert rounded_mean([70, 71]) == 71


def test_course_progress_ignores_deleted_lessons(db_session):
    user = create_user(db_session)
    course = create_course(db_session, user)
    lessons = create_lessons(db_session, course, 4, completed=1)
    lessons[3].is_deleted = True
    db_session.commit()
    db_session.refresh(course)

    summary = course_progress(course)

    assert summary.totalLessons == 3
    assert summary.completedLessons == 1
    assert summary.progressPercentage == 33


def test_degree_progress_is_flattened_not_averaged(db_session):
    user = create_user(db_session)
    degree = create_degree(db_session, user)
    small = create_course(db_session, user, degree, name="Small", course_order=0)
    large = create_course(db_session, user, degree, name="Large", course_order=1)
    create_lessons(db_session, small, 1, completed=1)
    create_lessons(db_session, large, 9)
    db_session.refresh(degree)

    summary = degree_progress(degree)

    # Averaging per course would give 50.
    assert summary.completedLessons == 1
    assert summary.totalLessons == 10
    assert summary.progressPercentage == 10


def test_degree_without_courses_has_zero_progress(db_session):
    degree = create_degree(db_session, create_user(db_session))

    assert degree_progress(degree).progressPercentage == 0


def test_home_rollup(db_session):
    user = create_user(db_session)
    course = create_course(db_session, user)
    lessons = create_lessons(db_session, course, 3, completed=2)
    for lesson, score in zip(lessons, (100, 71, None)):
        progress_crud.upsert_progress(
            db_session,
            user_id=user.id,
            lesson_id=lesson.id,
            completed=score is not None,
            test_score=score,
        )
    db_session.commit()

    rollup = ProgressService(db_session, user.id).home_rollup()

    assert rollup.totalLessonsCompleted == 2
    assert rollup.totalTestsCompleted == 2
    assert rollup.averageTestScore == 86


def test_home_content_splits_degrees_and_standalone_courses(db_session):
    user = create_user(db_session)
    other = create_user(db_session, username="other", email="other@example.com")
    degree = create_degree(db_session, user)
    create_lessons(db_session, create_course(db_session, user, degree), 2, completed=1)
    standalone = create_course(db_session, user, name="Solo - Course")
    create_lessons(db_session, standalone, 4, completed=1)
    create_course(db_session, other, name="Not mine")
    db_session.expire_all()

    content = ProgressService(db_session, user.id).home_content()

    assert [d["id"] for d in content["degrees"]] == [degree.id]
    assert content["degrees"][0]["course_count"] == 1
    assert content["degrees"][0]["progress_percentage"] == 50
    assert [c["id"] for c in content["standaloneCourses"]] == [standalone.id]
    assert content["standaloneCourses"][0]["lesson_count"] == 4
    assert content["standaloneCourses"][0]["progress_percentage"] == 25
    assert content["userProgress"].totalLessonsCompleted == 2


def test_percentage_matches_decimal_half_up_for_every_total():
    for whole in range(1, 1001):
        for part in range(whole + 1):
            expected = int((Decimal(100 * part) / Decimal(whole)).quantize(Decimal(0), rounding=ROUND_HALF_UP))
            assert percentage(part, whole) == expected, (part, whole)
