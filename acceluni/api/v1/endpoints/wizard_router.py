import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from acceluni.schemas.wizard import wizard_schema
from acceluni.core.errors import InvalidRequestError
from acceluni.api.v1.dependencies import get_db, get_current_user, require_subscription
from acceluni.models.user.user_model import User
from acceluni.services import tasks
from acceluni.services.wizard_service import (
    CreatedRecord,
    CreationWizard,
    DatabaseCreator,
    DatabaseDraftStore,
)

router = APIRouter()
logger = logging.getLogger(__name__)

# Starting level -> expertise level passed to the outline prompts.
EXPERTISE_BY_STARTING_LEVEL = {
    "beginner": "beginner",
    "some-experience": "beginner",
    "intermediate": "intermediate",
    "advanced": "advanced",
}


def _wizard_for(db: Session, user: User) -> CreationWizard:
    return CreationWizard(DatabaseDraftStore(db=db, user_id=user.id))


@router.get("/draft", response_model=wizard_schema.WizardState, summary="Current wizard state")
def get_draft(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _wizard_for(db, current_user).state()


@router.put("/draft", response_model=wizard_schema.WizardState, summary="Merge fields into the draft")
def update_draft(
    fields: wizard_schema.WizardUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    wizard = _wizard_for(db, current_user)
    wizard.update(**fields.model_dump(exclude_unset=True))
    return wizard.state()


@router.delete("/draft", response_model=wizard_schema.WizardState, summary="Discard the draft")
def clear_draft(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    wizard = _wizard_for(db, current_user)
    wizard.clear_draft()
    return wizard.state()


@router.post("/next", response_model=wizard_schema.WizardState)
def next_step(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    wizard = _wizard_for(db, current_user)
    if not wizard.next():
        raise InvalidRequestError("Complete this step before continuing")
    return wizard.state()


@router.post("/back", response_model=wizard_schema.WizardState)
def previous_step(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    wizard = _wizard_for(db, current_user)
    wizard.back()
    return wizard.state()


@router.post("/jump", response_model=wizard_schema.WizardState)
def jump_to_step(
    jump: wizard_schema.WizardJump,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    wizard = _wizard_for(db, current_user)
    if not wizard.jump_to(jump.step):
        raise InvalidRequestError(f"Step {jump.step} is not accessible yet")
    return wizard.state()


@router.post("/submit", response_model=wizard_schema.WizardSubmitResult, summary="Create the planned degree or course")
def submit_wizard(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subscription),
):
    wizard = _wizard_for(db, current_user)
    expertise = EXPERTISE_BY_STARTING_LEVEL.get(wizard.form.startingLevel or "", "intermediate")

    def schedule_generation(record: CreatedRecord) -> None:
        if record.kind == "degree":
            background_tasks.add_task(tasks.generate_degree_courses_task, record.id, current_user.id)
        else:
            background_tasks.add_task(
                tasks.generate_course_lessons_task, record.id, current_user.id, expertise
            )

    record = wizard.submit(DatabaseCreator(db=db, user_id=current_user.id), on_created=schedule_generation)
    return {"kind": record.kind, "id": record.id, "redirect": record.redirect}
