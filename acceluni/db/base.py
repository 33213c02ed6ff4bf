"""Imports every model so ``Base.metadata`` knows the full schema."""

from acceluni.db.base_class import Base

# Users and billing
from acceluni.models.user.user_model import User
from acceluni.models.billing.subscription_model import Subscription, UserTrial

# Curriculum
from acceluni.models.curriculum.degree_model import Degree
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.lesson_model import Lesson, LessonStatus
from acceluni.models.curriculum.test_model import LessonTest

# Progress
from acceluni.models.progress.user_lesson_progress_model import UserLessonProgress

# Wizard
from acceluni.models.wizard.wizard_draft_model import WizardDraft
