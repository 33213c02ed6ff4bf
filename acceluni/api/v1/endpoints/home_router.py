from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from acceluni.schemas.progress import progress_schema
from acceluni.api.v1.dependencies import get_db, get_current_user
from acceluni.models.user.user_model import User
from acceluni.services.progress_service import ProgressService

router = APIRouter()


@router.get("/home-content", response_model=progress_schema.HomeContent, summary="Dashboard rollup")
def get_home_content(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user_id=current_user.id)
    return service.home_content()
