"""Four step creation wizard: plan type, subject, knowledge level, review.

The wizard keeps its form and current step in a draft store so a learner can
leave and resume. Submitting creates a Degree for the full degree plan and a
standalone Course otherwise.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from acceluni.core.errors import AppError, InvalidRequestError
from acceluni.crud import course_crud, degree_crud
from acceluni.models.wizard.wizard_draft_model import WizardDraft
from acceluni.schemas.wizard.wizard_schema import WizardForm, WizardState

logger = logging.getLogger(__name__)

DRAFT_KEY = "courseCreationDraft"

FIRST_STEP = 1
LAST_STEP = 4
STEP_TITLES = {
    1: "Plan Type",
    2: "Subject",
    3: "Knowledge Level",
    4: "Review",
}

FULL_DEGREE = "full-degree"
DEGREE_ICON = "🎓"

# (amount, unit) before the starting level adjustment.
BASE_DURATIONS = {
    "crash-course": (2, "weeks"),
    "course": (2, "months"),
    "full-degree": (36, "months"),
}
LEVEL_MULTIPLIERS = {
    "beginner": 1.5,
    "some-experience": 1.0,
    "intermediate": 0.8,
    "advanced": 0.6,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimated_duration(plan_type: Optional[str], starting_level: Optional[str]) -> str:
    if not plan_type or not starting_level or plan_type not in BASE_DURATIONS:
        return "TBD"
    amount, unit = BASE_DURATIONS[plan_type]
    adjusted = _round_half_up(amount * LEVEL_MULTIPLIERS.get(starting_level, 1.0))
    if unit == "months" and adjusted > 12:
        return f"{_round_half_up(adjusted / 12)} years"
    return f"{adjusted} {unit}"


def format_plan_type(plan_type: str) -> str:
    """``crash-course`` -> ``Crash Course``."""
    return plan_type.replace("-", " ", 1).title()


# --- Draft stores ----------------------------------------------------------


class DraftStore(Protocol):
    def load(self, key: str) -> Optional[Dict[str, Any]]: ...

    def save(self, key: str, data: Dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryDraftStore:
    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._drafts: Dict[str, Dict[str, Any]] = dict(initial or {})

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        data = self._drafts.get(key)
        return dict(data) if data is not None else None

    def save(self, key: str, data: Dict[str, Any]) -> None:
        self._drafts[key] = dict(data)

    def delete(self, key: str) -> None:
        self._drafts.pop(key, None)


class DatabaseDraftStore:
    """Drafts kept in ``wizard_drafts``, one row per (user, key)."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _row(self, key: str) -> Optional[WizardDraft]:
        return (
            self.db.query(WizardDraft)
            .filter(WizardDraft.user_id == self.user_id, WizardDraft.draft_key == key)
            .first()
        )

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        row = self._row(key)
        return dict(row.data) if row is not None and row.data else None

    def save(self, key: str, data: Dict[str, Any]) -> None:
        row = self._row(key)
        if row is None:
            row = WizardDraft(user_id=self.user_id, draft_key=key)
            self.db.add(row)
        row.data = dict(data)
        self.db.commit()

    def delete(self, key: str) -> None:
        row = self._row(key)
        if row is not None:
            self.db.delete(row)
            self.db.commit()


# --- Creation ----------------------------------------------------------------


@dataclass
class CreatedRecord:
    kind: str
    id: int

    @property
    def redirect(self) -> str:
        return f"/{self.kind}s/{self.id}"


class WizardCreator(Protocol):
    def create_degree(self, name: str, description: str, icon: str) -> int: ...

    def create_course(self, name: str, description: str) -> int: ...


class DatabaseCreator:
    """Writes the wizard's record for one user."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def create_degree(self, name: str, description: str, icon: str) -> int:
        try:
            return degree_crud.create_degree(
                self.db, user_id=self.user_id, name=name, description=description, icon=icon
            ).id
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def create_course(self, name: str, description: str) -> int:
        try:
            return course_crud.create_course(
                self.db, user_id=self.user_id, name=name, description=description
            ).id
        except SQLAlchemyError:
            self.db.rollback()
            raise


class CreationWizard:
    def __init__(self, store: DraftStore, draft_key: str = DRAFT_KEY):
        self.store = store
        self.draft_key = draft_key
        self.form = WizardForm()
        self.current_step = FIRST_STEP
        self.error: Optional[str] = None
        self._load_draft()

    # --- Draft persistence ---

    def _load_draft(self) -> None:
        data = self.store.load(self.draft_key)
        if not data:
            return
        try:
            self.form = WizardForm.model_validate(
                {**self.form.model_dump(), **(data.get("form") or {})}
            )
        except ValidationError as exc:
            logger.warning("Ignoring unreadable wizard draft '%s': %s", self.draft_key, exc)
            return
        step = data.get("currentStep", FIRST_STEP)
        if isinstance(step, int) and FIRST_STEP <= step <= LAST_STEP:
            # Never resume past a step the form does not unlock.
            while step > FIRST_STEP and not self.is_accessible(step):
                step -= 1
            self.current_step = step

    def _save_draft(self) -> None:
        self.store.save(
            self.draft_key,
            {"form": self.form.model_dump(exclude_none=True), "currentStep": self.current_step},
        )

    def update(self, **fields: Any) -> WizardForm:
        """Merge ``fields`` into the form and persist the draft."""
        merged = {**self.form.model_dump(), **fields}
        try:
            self.form = WizardForm.model_validate(merged)
        except ValidationError as exc:
            raise InvalidRequestError("Invalid wizard field", details=exc.errors()) from exc
        self.error = None
        self._save_draft()
        return self.form

    def clear_draft(self) -> None:
        self.store.delete(self.draft_key)
        self.form = WizardForm()
        self.current_step = FIRST_STEP
        self.error = None

    # --- Navigation ---

    def can_proceed(self, step: Optional[int] = None) -> bool:
        step = self.current_step if step is None else step
        form = self.form
        if step == 1:
            return bool(form.planType)
        if step == 2:
            return bool(form.subject and form.subject.strip())
        if step == 3:
            return bool(form.startingLevel and form.desiredLevel)
        return step == 4

    def is_accessible(self, step: int) -> bool:
        if step == 1:
            return True
        if step == 2:
            return self.can_proceed(1)
        if step == 3:
            return self.can_proceed(1) and self.can_proceed(2)
        if step == 4:
            return self.can_proceed(1) and self.can_proceed(2) and self.can_proceed(3)
        return False

    def next(self) -> bool:
        if not self.can_proceed():
            return False
        self.current_step = min(self.current_step + 1, LAST_STEP)
        self._save_draft()
        return True

    def back(self) -> bool:
        self.current_step = max(self.current_step - 1, FIRST_STEP)
        self._save_draft()
        return True

    def jump_to(self, step: int) -> bool:
        if step < FIRST_STEP or step > LAST_STEP:
            return False
        if step <= self.current_step or self.is_accessible(step):
            self.current_step = step
            self._save_draft()
            return True
        return False

    def state(self) -> WizardState:
        return WizardState(
            currentStep=self.current_step,
            stepTitle=STEP_TITLES[self.current_step],
            form=self.form,
            canProceed=self.can_proceed(),
            accessibleSteps=[s for s in STEP_TITLES if self.is_accessible(s)],
            estimatedDuration=estimated_duration(self.form.planType, self.form.startingLevel),
            error=self.error,
        )

    # --- Submission ---

    def submit(self, creator: WizardCreator, on_created: Optional[Callable[[CreatedRecord], None]] = None) -> CreatedRecord:
        form = self.form
        if not self.is_accessible(LAST_STEP):
            raise InvalidRequestError("Please complete every step before creating your plan")

        subject = form.subject.strip()
        levels = f"Starting from {form.startingLevel} level, targeting {form.desiredLevel} expertise."
        try:
            if form.planType == FULL_DEGREE:
                record = CreatedRecord(
                    kind="degree",
                    id=creator.create_degree(
                        f"{subject} - Full Degree",
                        f"A Full Degree in {subject}. {levels}",
                        DEGREE_ICON,
                    ),
                )
            else:
                plan_label = format_plan_type(form.planType)
                record = CreatedRecord(
                    kind="course",
                    id=creator.create_course(
                        f"{subject} - {plan_label}",
                        f"A {plan_label} in {subject}. {levels}",
                    ),
                )
        except (AppError, SQLAlchemyError) as exc:
            logger.error("Wizard submission failed for '%s': %s", subject, exc)
            self.current_step = LAST_STEP
            self.error = "Failed to create your plan. Please try again."
            raise

        logger.info("🎓 Wizard created %s %s for subject '%s'", record.kind, record.id, subject)
        self.clear_draft()
        if on_created is not None:
            on_created(record)
        return record
