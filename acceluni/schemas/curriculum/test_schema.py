"""Quiz questions and the submission / result payloads exchanged with the UI.

Field names are camelCase on the wire (``answerType``, ``questionIndex``...)
because the browser client stores and sends them verbatim.
"""
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class MultipleChoiceQuestion(BaseModel):
    answerType: Literal["multiple choice"]
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=1)
    # Index into ``options``.
    answer: int
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def _answer_within_options(self) -> "MultipleChoiceQuestion":
        if not 0 <= self.answer < len(self.options):
            raise ValueError("answer must be the index of one of the options")
        return self


class NumericQuestion(BaseModel):
    answerType: Literal["numeric"]
    question: str = Field(..., min_length=1)
    answer: Union[int, float]
    explanation: Optional[str] = None


Question = Annotated[
    Union[MultipleChoiceQuestion, NumericQuestion],
    Field(discriminator="answerType"),
]


class TestCreate(BaseModel):
    lesson_id: int
    questions: List[Question] = Field(..., min_length=1)


class Test(BaseModel):
    id: int
    lesson_id: int
    questions: List[Question]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmittedAnswer(BaseModel):
    questionIndex: int
    # Shape is checked against the question type when scoring.
    answer: Any = None


class TestSubmission(BaseModel):
    lesson_id: Optional[int] = None
    answers: List[SubmittedAnswer]


class QuestionResult(BaseModel):
    questionIndex: int
    question: str
    userAnswer: Any = None
    correctAnswer: Union[int, float]
    isCorrect: bool = False


class TestResult(BaseModel):
    score: int
    totalQuestions: int
    correctAnswers: int
    incorrectAnswers: List[QuestionResult] = Field(default_factory=list)
    passed: bool


class TestSubmitResponse(BaseModel):
    result: TestResult
    success: bool = True
