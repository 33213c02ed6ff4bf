import pytest

from acceluni.core.errors import InvalidRequestError, NotFoundError
from acceluni.crud import lesson_crud
from acceluni.models.curriculum.lesson_model import LessonStatus
from acceluni.schemas.curriculum import test_schema as schemas
from acceluni.services.assessment_service import (
    PASSING_SCORE,
    AssessmentService,
    parse_questions,
    score_submission,
)

from tests.utils import SAMPLE_QUESTIONS, create_course, create_lessons, create_test, create_user


def _answers(*pairs):
    return [schemas.SubmittedAnswer(questionIndex=i, answer=a) for i, a in pairs]


def _submission(*pairs):
    return schemas.TestSubmission(answers=_answers(*pairs))


@pytest.fixture()
def lesson_with_test(db_session):
    user = create_user(db_session)
    course = create_course(db_session, user)
    lesson = create_lessons(db_session, course, 1)[0]
    create_test(db_session, lesson)
    return user, lesson


def test_all_correct_scores_hundred():
    result = score_submission(parse_questions(SAMPLE_QUESTIONS), _answers((0, 2), (1, 9)))

    assert result.score == 100
    assert result.correctAnswers == 2
    assert result.totalQuestions == 2
    assert result.incorrectAnswers == []
    assert result.passed is True


def test_wrong_answers_are_reported_with_both_values():
    result = score_submission(parse_questions(SAMPLE_QUESTIONS), _answers((0, 1), (1, 9)))

    assert result.score == 50
    assert result.passed is False
    assert len(result.incorrectAnswers) == 1
    mismatch = result.incorrectAnswers[0]
    assert mismatch.questionIndex == 0
    assert mismatch.userAnswer == 1
    assert mismatch.correctAnswer == 2
    assert mismatch.isCorrect is False


def test_numeric_answer_accepts_float_equal_to_int():
    result = score_submission(parse_questions(SAMPLE_QUESTIONS), _answers((0, 2), (1, 9.0)))

    assert result.score == 100


def test_unanswered_question_counts_as_wrong():
    result = score_submission(parse_questions(SAMPLE_QUESTIONS), _answers((1, 9)))

    assert result.correctAnswers == 1
    assert result.score == 50
    assert result.incorrectAnswers[0].questionIndex == 0
    assert result.incorrectAnswers[0].userAnswer is None


def test_score_rounds_half_up():
    questions = parse_questions(
        [{"question": f"Q{i}", "answerType": "numeric", "answer": i} for i in range(8)]
    )
    result = score_submission(questions, _answers((0, 0)))

    assert result.score == 13


def test_passing_threshold_is_inclusive():
    questions = parse_questions(
        [{"question": f"Q{i}", "answerType": "numeric", "answer": i} for i in range(10)]
    )
    result = score_submission(questions, _answers(*[(i, i) for i in range(7)]))

    assert result.score == PASSING_SCORE
    assert result.passed is True


@pytest.mark.parametrize(
    "answers",
    [
        [],
        [(2, 1)],
        [(-1, 1)],
        [(0, 2), (0, 2)],
        [(0, "two")],
        [(0, True)],
        [(1, "nine")],
    ],
)
def test_invalid_submissions_are_rejected(answers):
    with pytest.raises(InvalidRequestError):
        score_submission(parse_questions(SAMPLE_QUESTIONS), _answers(*answers))


def test_test_without_questions_is_rejected():
    with pytest.raises(InvalidRequestError):
        score_submission([], _answers((0, 1)))


def test_malformed_stored_questions_are_rejected():
    with pytest.raises(InvalidRequestError):
        parse_questions([{"question": "?", "answerType": "essay", "answer": "x"}])


def test_submit_pass_completes_lesson(db_session, lesson_with_test):
    user, lesson = lesson_with_test
    service = AssessmentService(db_session, user.id)

    result = service.submit(lesson.id, _submission((0, 2), (1, 9)))

    db_session.refresh(lesson)
    progress = lesson_crud.get_progress(db_session, user.id, lesson.id)
    assert result.passed is True
    assert lesson.status == LessonStatus.COMPLETED
    assert progress.completed is True
    assert progress.test_score == 100
    assert progress.completed_at is not None


def test_submit_fail_marks_lesson_started(db_session, lesson_with_test):
    user, lesson = lesson_with_test

    result = AssessmentService(db_session, user.id).submit(lesson.id, _submission((0, 0), (1, 1)))

    db_session.refresh(lesson)
    progress = lesson_crud.get_progress(db_session, user.id, lesson.id)
    assert result.score == 0
    assert lesson.status == LessonStatus.STARTED
    assert progress.completed is False
    assert progress.test_score == 0


def test_failed_retake_keeps_completion(db_session, lesson_with_test):
    user, lesson = lesson_with_test
    service = AssessmentService(db_session, user.id)

    service.submit(lesson.id, _submission((0, 2), (1, 9)))
    service.submit(lesson.id, _submission((0, 0), (1, 1)))

    db_session.refresh(lesson)
    progress = lesson_crud.get_progress(db_session, user.id, lesson.id)
    assert lesson.status == LessonStatus.COMPLETED
    assert progress.completed is True
    assert progress.test_score == 0


def test_submit_for_other_user_is_not_found(db_session, lesson_with_test):
    _, lesson = lesson_with_test
    intruder = create_user(db_session, username="other", email="other@example.com")

    with pytest.raises(NotFoundError):
        AssessmentService(db_session, intruder.id).submit(lesson.id, _submission((0, 2)))


def test_submit_without_test_is_not_found(db_session):
    user = create_user(db_session)
    lesson = create_lessons(db_session, create_course(db_session, user), 1)[0]

    with pytest.raises(NotFoundError):
        AssessmentService(db_session, user.id).submit(lesson.id, _submission((0, 2)))


def test_mark_complete_and_start_lesson(db_session):
    user = create_user(db_session)
    first, second = create_lessons(db_session, create_course(db_session, user), 2)
    service = AssessmentService(db_session, user.id)

    service.start_lesson(first)
    completed = service.mark_complete(second.id)
    service.start_lesson(completed)

    assert first.status == LessonStatus.STARTED
    assert completed.status == LessonStatus.COMPLETED
    assert lesson_crud.get_progress(db_session, user.id, second.id).completed is True


@pytest.mark.parametrize("total", [1, 3, 7, 8, 10])
def test_score_never_drops_when_more_answers_are_right(total):
    questions = parse_questions(
        [{"question": f"Q{i}", "answerType": "numeric", "answer": i} for i in range(total)]
    )

    scores = []
    for correct in range(total + 1):
        answers = [(i, i if i < correct else -1) for i in range(total)]
        scores.append(score_submission(questions, _answers(*answers)).score)

    assert scores == sorted(scores)
    assert scores[0] == 0
    assert scores[-1] == 100


def test_stored_question_with_answer_outside_options_is_rejected():
    with pytest.raises(InvalidRequestError):
        parse_questions([{"question": "?", "answerType": "multiple choice", "options": ["A"], "answer": 3}])
