import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from acceluni.schemas.curriculum import course_schema
from acceluni.crud import course_crud, degree_crud
from acceluni.core.errors import NotFoundError
from acceluni.api.v1.dependencies import get_db, get_current_user, require_subscription
from acceluni.models.user.user_model import User
from acceluni.services.curriculum_generator import CurriculumGenerator
from acceluni.services.progress_service import course_progress

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_owned_course_or_404(db: Session, course_id: int, user_id: int):
    course = course_crud.get_owned_course(db, course_id, user_id)
    if course is None:
        raise NotFoundError("Course not found or access denied")
    return course


@router.get("", response_model=course_schema.CourseList, summary="List the user's courses with progress")
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    courses = []
    for course in course_crud.get_user_courses(db, current_user.id):
        rollup = course_progress(course)
        summary = course_schema.CourseSummary.model_validate(course)
        summary.lesson_count = rollup.totalLessons
        summary.progress_percentage = rollup.progressPercentage
        courses.append(summary)
    return {"courses": courses}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a course")
def create_course(
    course_in: course_schema.CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    degree_id = course_in.degree_id
    course_order = 0
    if degree_id is not None:
        if degree_crud.get_owned_degree(db, degree_id, current_user.id) is None:
            raise NotFoundError("Degree not found or access denied")
        course_order = course_crud.next_course_order(db, degree_id)

    course = course_crud.create_course(
        db,
        user_id=current_user.id,
        name=course_in.resolved_name,
        description=course_in.description,
        icon=course_in.icon,
        degree_id=degree_id,
        course_order=course_order,
    )
    logger.info("Course %s created by user %s (degree=%s)", course.id, current_user.id, degree_id)
    return {"course": course_schema.Course.model_validate(course)}


@router.get("/{course_id}", response_model=course_schema.CourseDetail, summary="Course with lessons and progress")
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_owned_course_or_404(db, course_id, current_user.id)
    return {
        "course": course,
        "lessons": [lesson for lesson in course.lessons if not lesson.is_deleted],
        "userProgress": course_progress(course),
    }


@router.put("/{course_id}", summary="Update a course")
def update_course(
    course_id: int,
    course_in: course_schema.CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_owned_course_or_404(db, course_id, current_user.id)
    course = course_crud.update_course(
        db,
        course,
        name=course_in.name.strip(),
        description=course_in.description,
        icon=course_in.icon,
    )
    return {"course": course_schema.Course.model_validate(course)}


@router.delete("/{course_id}", summary="Soft delete a course and its lessons")
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_owned_course_or_404(db, course_id, current_user.id)
    course_crud.soft_delete_course(db, course)
    return {"success": True}


@router.post(
    "/{course_id}/generate-lessons",
    status_code=status.HTTP_201_CREATED,
    summary="Generate the course's lessons with the LLM",
)
def generate_lessons(
    course_id: int,
    options: Optional[course_schema.GenerateLessonsRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    options = options or course_schema.GenerateLessonsRequest()
    generator = CurriculumGenerator(db=db, user_id=current_user.id)
    result = generator.generate_lessons_for_course(
        course_id, lesson_count=options.lessonCount, expertise_level=options.expertiseLevel
    )
    return {
        "lessons": [course_schema.LessonSummary.model_validate(lesson) for lesson in result.created],
        "generated": len(result.created),
        "totalExpected": result.total,
        "failed": result.failed,
        "success": True,
    }
