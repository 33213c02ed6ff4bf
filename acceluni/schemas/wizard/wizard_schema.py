from pydantic import BaseModel
from typing import Literal, Optional

PlanType = Literal["crash-course", "course", "full-degree"]
StartingLevel = Literal["beginner", "some-experience", "intermediate", "advanced"]
DesiredLevel = Literal["functional", "proficient", "expert", "professional"]


class WizardForm(BaseModel):
    planType: Optional[PlanType] = None
    subject: Optional[str] = None
    category: Optional[str] = None
    customTopic: Optional[str] = None
    startingLevel: Optional[StartingLevel] = None
    desiredLevel: Optional[DesiredLevel] = None


class WizardUpdate(WizardForm):
    """Partial update; only the fields present in the body are merged."""


class WizardState(BaseModel):
    currentStep: int
    stepTitle: str
    form: WizardForm
    canProceed: bool
    accessibleSteps: list[int]
    estimatedDuration: Optional[str] = None
    error: Optional[str] = None


class WizardJump(BaseModel):
    step: int


class WizardSubmitResult(BaseModel):
    kind: Literal["degree", "course"]
    id: int
    redirect: str
