import logging

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from acceluni.schemas.curriculum import degree_schema
from acceluni.crud import degree_crud
from acceluni.core.errors import NotFoundError
from acceluni.api.v1.dependencies import get_db, get_current_user, require_subscription
from acceluni.models.user.user_model import User
from acceluni.services.curriculum_generator import CurriculumGenerator
from acceluni.services.progress_service import ProgressService, degree_progress

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=degree_schema.DegreeList, summary="List the user's degrees with progress")
def list_degrees(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user_id=current_user.id)
    return {"degrees": service.degree_summaries()}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a degree")
def create_degree(
    degree_in: degree_schema.DegreeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    degree = degree_crud.create_degree(
        db,
        user_id=current_user.id,
        name=degree_in.name.strip(),
        description=degree_in.description,
        icon=degree_in.icon,
    )
    logger.info("Degree %s created by user %s", degree.id, current_user.id)
    return {"degree": degree_schema.Degree.model_validate(degree)}


@router.get("/{degree_id}", response_model=degree_schema.DegreeDetail, summary="Degree with courses and progress")
def get_degree(
    degree_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    degree = degree_crud.get_owned_degree(db, degree_id, current_user.id)
    if degree is None:
        raise NotFoundError("Degree not found or access denied")

    return {
        "degree": degree,
        "courses": degree_crud.live_courses(degree),
        "userProgress": degree_progress(degree),
    }


@router.delete("/{degree_id}", summary="Soft delete a degree and its content")
def delete_degree(
    degree_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    degree = degree_crud.get_owned_degree(db, degree_id, current_user.id)
    if degree is None:
        raise NotFoundError("Degree not found or access denied")
    degree_crud.soft_delete_degree(db, degree)
    return {"success": True}


@router.post(
    "/{degree_id}/generate-courses",
    status_code=status.HTTP_201_CREATED,
    summary="Generate the degree's courses with the LLM",
)
def generate_courses(
    degree_id: int,
    options: Optional[degree_schema.GenerateCoursesRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    options = options or degree_schema.GenerateCoursesRequest()
    generator = CurriculumGenerator(db=db, user_id=current_user.id)
    result = generator.generate_courses_for_degree(
        degree_id, course_count=options.courseCount, target_level=options.targetLevel
    )
    return {
        "courses": [degree_schema.CourseWithLessons.model_validate(c) for c in result.created],
        "generated": len(result.created),
        "totalExpected": result.total,
        "failed": result.failed,
        "success": True,
    }
