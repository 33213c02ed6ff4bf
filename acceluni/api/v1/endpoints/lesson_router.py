import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from acceluni.schemas.curriculum import lesson_schema
from acceluni.crud import lesson_crud
from acceluni.core.errors import NotFoundError
from acceluni.api.v1.dependencies import get_db, get_current_user, require_subscription
from acceluni.models.user.user_model import User
from acceluni.services.assessment_service import AssessmentService
from acceluni.services.curriculum_generator import CurriculumGenerator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{lesson_id}", response_model=lesson_schema.LessonDetail, summary="Lesson with its test and progress")
def get_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = lesson_crud.get_owned_lesson(db, lesson_id, current_user.id)
    if lesson is None:
        raise NotFoundError("Lesson not found or access denied")

    AssessmentService(db=db, user_id=current_user.id).start_lesson(lesson)

    detail = lesson_schema.LessonDetail.model_validate(lesson)
    test = lesson_crud.get_test_for_lesson(db, lesson.id)
    detail.test = lesson_schema.Test.model_validate(test) if test is not None else None
    progress = lesson_crud.get_progress(db, current_user.id, lesson.id)
    detail.user_progress = (
        lesson_schema.LessonProgress.model_validate(progress) if progress is not None else None
    )
    return detail


@router.post(
    "/{lesson_id}/generate-content",
    response_model=lesson_schema.GenerateContentResponse,
    summary="Generate the lesson's markdown content and test",
)
def generate_content(
    lesson_id: int,
    options: Optional[lesson_schema.GenerateContentRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    options = options or lesson_schema.GenerateContentRequest()
    generator = CurriculumGenerator(db=db, user_id=current_user.id)
    return generator.generate_content(lesson_id, force_regenerate=options.forceRegenerate)


@router.post(
    "/{lesson_id}/generate-test",
    response_model=lesson_schema.GenerateTestResponse,
    summary="Generate (or regenerate) the lesson's test",
)
def generate_test(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    generator = CurriculumGenerator(db=db, user_id=current_user.id)
    return generator.generate_test(lesson_id)


@router.post("/{lesson_id}/complete", summary="Mark the lesson as completed")
def complete_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = AssessmentService(db=db, user_id=current_user.id).mark_complete(lesson_id)
    return {"success": True, "lesson": lesson_schema.Lesson.model_validate(lesson)}
