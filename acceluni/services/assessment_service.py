"""Scoring of lesson tests and the progress updates that follow a submission."""

import logging
from datetime import datetime, timezone
from typing import List, Sequence

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from acceluni.core.errors import InvalidRequestError, NotFoundError
from acceluni.crud import lesson_crud, progress_crud
from acceluni.models.curriculum.lesson_model import Lesson, LessonStatus
from acceluni.schemas.curriculum.test_schema import (
    MultipleChoiceQuestion,
    NumericQuestion,
    Question,
    QuestionResult,
    SubmittedAnswer,
    TestResult,
    TestSubmission,
)
from acceluni.services.progress_service import percentage

logger = logging.getLogger(__name__)

PASSING_SCORE = 70

_questions_adapter = TypeAdapter(List[Question])


def parse_questions(raw_questions: Sequence[dict]) -> list:
    try:
        return _questions_adapter.validate_python(list(raw_questions or []))
    except ValidationError as exc:
        raise InvalidRequestError("Stored test questions are malformed", details=exc.errors()) from exc


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_answer_shape(question, answer: SubmittedAnswer) -> None:
    if isinstance(question, MultipleChoiceQuestion):
        if not isinstance(answer.answer, int) or isinstance(answer.answer, bool):
            raise InvalidRequestError(
                f"Question {answer.questionIndex} expects an option index"
            )
    elif isinstance(question, NumericQuestion):
        if not _is_number(answer.answer):
            raise InvalidRequestError(f"Question {answer.questionIndex} expects a number")


def score_submission(questions: Sequence, answers: Sequence[SubmittedAnswer]) -> TestResult:
    """Grade ``answers`` against ``questions`` without touching the database.

    Each answer names the question it answers; unanswered questions count as
    wrong and are reported with a null ``userAnswer``.
    """
    total = len(questions)
    if total == 0:
        raise InvalidRequestError("Test has no questions")
    if not answers:
        raise InvalidRequestError("No answers submitted")

    by_index: dict[int, SubmittedAnswer] = {}
    for answer in answers:
        index = answer.questionIndex
        if index < 0 or index >= total:
            raise InvalidRequestError(f"Question index {index} is out of range")
        if index in by_index:
            raise InvalidRequestError(f"Question {index} was answered twice")
        _check_answer_shape(questions[index], answer)
        by_index[index] = answer

    correct = 0
    mismatches: list[QuestionResult] = []
    for index, question in enumerate(questions):
        submitted = by_index.get(index)
        user_answer = submitted.answer if submitted is not None else None
        if submitted is not None and user_answer == question.answer:
            correct += 1
            continue
        mismatches.append(
            QuestionResult(
                questionIndex=index,
                question=question.question,
                userAnswer=user_answer,
                correctAnswer=question.answer,
                isCorrect=False,
            )
        )

    score = percentage(correct, total)
    return TestResult(
        score=score,
        totalQuestions=total,
        correctAnswers=correct,
        incorrectAnswers=mismatches,
        passed=score >= PASSING_SCORE,
    )


class AssessmentService:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _get_lesson(self, lesson_id: int) -> Lesson:
        lesson = lesson_crud.get_owned_lesson(self.db, lesson_id, self.user_id)
        if lesson is None:
            raise NotFoundError("Lesson not found or access denied")
        return lesson

    def submit(self, lesson_id: int, submission: TestSubmission) -> TestResult:
        lesson = self._get_lesson(lesson_id)
        test = lesson_crud.get_test_for_lesson(self.db, lesson.id)
        if test is None:
            raise NotFoundError("Test not found")

        result = score_submission(parse_questions(test.questions), submission.answers)

        now = datetime.now(timezone.utc)
        progress_crud.upsert_progress(
            self.db,
            user_id=self.user_id,
            lesson_id=lesson.id,
            completed=result.passed,
            test_score=result.score,
            completed_at=now if result.passed else None,
        )
        if result.passed:
            lesson.advance_status(LessonStatus.COMPLETED)
        else:
            # Never moves a completed lesson back.
            lesson.advance_status(LessonStatus.STARTED)
        self.db.commit()

        logger.info(
            "Test submitted: user=%s lesson=%s score=%s passed=%s",
            self.user_id,
            lesson.id,
            result.score,
            result.passed,
        )
        return result

    def mark_complete(self, lesson_id: int) -> Lesson:
        lesson = self._get_lesson(lesson_id)
        progress_crud.upsert_progress(
            self.db,
            user_id=self.user_id,
            lesson_id=lesson.id,
            completed=True,
            completed_at=datetime.now(timezone.utc),
        )
        lesson.advance_status(LessonStatus.COMPLETED)
        self.db.commit()
        self.db.refresh(lesson)
        logger.info("Lesson %s marked complete for user %s", lesson.id, self.user_id)
        return lesson

    def start_lesson(self, lesson: Lesson) -> None:
        """First visit moves a NOT_STARTED lesson to STARTED."""
        if lesson.advance_status(LessonStatus.STARTED):
            self.db.commit()
            self.db.refresh(lesson)
