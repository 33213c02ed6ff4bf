from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from acceluni.schemas.billing import subscription_schema
from acceluni.api.v1.dependencies import get_db, get_current_user
from acceluni.models.user.user_model import User
from acceluni.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get(
    "/subscription/status",
    response_model=subscription_schema.SubscriptionAccess,
    summary="Whether the user can generate content",
)
def get_subscription_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return SubscriptionService(db=db, user_id=current_user.id).check_access()


@router.post("/trial/start", status_code=status.HTTP_201_CREATED, summary="Start the free trial")
def start_trial(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    trial = SubscriptionService(db=db, user_id=current_user.id).start_trial()
    return {"trial": subscription_schema.TrialInfo.model_validate(trial), "success": True}
