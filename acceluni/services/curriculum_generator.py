import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from acceluni.core import openai_service
from acceluni.core.config import settings
from acceluni.core.errors import ConflictError, InvalidRequestError, NotFoundError, UpstreamGenerationError
from acceluni.crud import course_crud, degree_crud, lesson_crud
from acceluni.models.curriculum.course_model import Course
from acceluni.models.curriculum.lesson_model import Lesson
from acceluni.schemas.curriculum.test_schema import Question

logger = logging.getLogger(__name__)

DEFAULT_COURSE_COUNT = 8
DEFAULT_LESSON_COUNT = 12
MIN_CONTENT_LENGTH_FOR_TEST = 100

_question_adapter = TypeAdapter(Question)

FALLBACK_COURSE_TEMPLATES = [
    {"name": "Fundamentals", "icon": "📚", "description": "Core foundational concepts"},
    {"name": "Beginner Essentials", "icon": "🌱", "description": "Essential skills for beginners"},
    {"name": "Intermediate Concepts", "icon": "📈", "description": "Building on fundamental knowledge"},
    {"name": "Advanced Topics", "icon": "🎯", "description": "Complex and specialized areas"},
    {"name": "Practical Applications", "icon": "🛠️", "description": "Real-world applications"},
    {"name": "Professional Skills", "icon": "💼", "description": "Industry-relevant skills"},
    {"name": "Specialized Areas", "icon": "🔬", "description": "Focused specialization topics"},
    {"name": "Capstone Project", "icon": "🏆", "description": "Comprehensive final project"},
]

FALLBACK_LESSON_TEMPLATES = [
    {"name": "Introduction", "icon": "🚀", "difficulty": "beginner"},
    {"name": "Basic Concepts", "icon": "📝", "difficulty": "beginner"},
    {"name": "Core Principles", "icon": "⚖️", "difficulty": "intermediate"},
    {"name": "Practical Examples", "icon": "💡", "difficulty": "intermediate"},
    {"name": "Advanced Techniques", "icon": "🎯", "difficulty": "advanced"},
    {"name": "Best Practices", "icon": "⭐", "difficulty": "advanced"},
]

DEGREE_OUTLINE_SYSTEM_PROMPT = """
<task>
You are a curriculum designer for a university. You will be given a degree name, description, and target level.
Your job is to generate a comprehensive course outline for the degree, equivalent to a degree that may be offered at a university.
</task>

<guidelines>
- Degrees are generally 4-5 years long, with 10 courses per year
- Courses should progress in difficulty, with each course building on the previous ones
- Return exactly "courseCount" courses
</guidelines>

<constraints>
Return only valid JSON.
</constraints>

<response_format>
{
  "courses": [
    {
      "name": "Course Name",
      "description": "Course description",
      "icon": "📚",
      "estimatedDuration": "8-10 weeks",
      "prerequisites": [],
      "learningObjectives": ["objective1", "objective2"]
    }
  ]
}
</response_format>
"""

COURSE_OUTLINE_SYSTEM_PROMPT = """
<task>
You are a curriculum designer for a university. You will be given a course name, description, and degree context.
Your job is to generate a comprehensive course outline for the course, equivalent to a course that may be offered at a university.
</task>

<guidelines>
- Courses are generally 12-16 weeks long, with 12-16 lessons
- Lessons should progress in difficulty, with each lesson building on the previous ones
- Return exactly "lessonCount" lessons
</guidelines>

<response_format>
{
  "lessons": [
    {
      "name": "Lesson Name",
      "description": "Lesson description",
      "icon": "📝",
      "estimatedReadingTime": "15-20 minutes",
      "difficulty": "beginner",
      "learningObjectives": ["objective1", "objective2"]
    }
  ]
}
</response_format>
"""

LESSON_SYSTEM_PROMPT = "You are an educator. Return only valid JSON."

LESSON_USER_PROMPT = """Generate lesson content and test for "{lesson_name}".

Lesson description: {lesson_description}
Course: {course_name}
Program: {degree_context}
Position in course: lesson {lesson_number}
Difficulty: {difficulty}

Return JSON with this structure:
{{
  "content": "# Lesson Title\\n\\nLesson content in markdown...",
  "test": {{
    "questions": [
      {{
        "question": "Question text?",
        "answerType": "multiple choice",
        "options": ["A", "B", "C", "D"],
        "answer": 0,
        "explanation": "Why this is correct."
      }},
      {{
        "question": "Question text?",
        "answerType": "numeric",
        "answer": 42,
        "explanation": "Why this is correct."
      }}
    ]
  }}
}}"""


@dataclass
class BatchResult:
    """Outcome of a bulk insert: rows written and templates that could not be."""

    created: List[Any] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.failed)


# -----------------------------
# Fallback templates
# -----------------------------


def subject_from_degree_name(degree_name: str) -> str:
    return degree_name.split(" -")[0]


def fallback_courses(degree_name: str, count: int) -> List[Dict[str, Any]]:
    subject = subject_from_degree_name(degree_name)
    templates = FALLBACK_COURSE_TEMPLATES[:count]
    courses = []
    for index, template in enumerate(templates):
        lowered = template["name"].lower()
        courses.append(
            {
                "name": f"{subject} {template['name']}",
                "description": f"{template['description']} in {subject.lower()}",
                "icon": template["icon"],
                "estimatedDuration": "8-10 weeks",
                "prerequisites": (
                    [f"{subject} {FALLBACK_COURSE_TEMPLATES[index - 1]['name']}"] if index > 0 else []
                ),
                "learningObjectives": [
                    f"Understand core {lowered} concepts",
                    f"Apply {lowered} in practical scenarios",
                ],
            }
        )
    return courses


def fallback_lessons(course_name: str, count: int) -> List[Dict[str, Any]]:
    lessons = []
    for index, template in enumerate(FALLBACK_LESSON_TEMPLATES[:count]):
        lowered = template["name"].lower()
        lessons.append(
            {
                "name": f"Lesson {index + 1:02d}: {template['name']}",
                "description": f"{template['name']} for {course_name}",
                "icon": template["icon"],
                "estimatedReadingTime": "20-25 minutes",
                "difficulty": template["difficulty"],
                "learningObjectives": [
                    f"Understand {lowered} concepts",
                    f"Apply {lowered} techniques",
                ],
            }
        )
    return lessons


def fallback_content(lesson_name: str, description: str, course_name: str) -> str:
    return f"""# {lesson_name}

## Overview

{description}

This lesson is part of **{course_name}** and covers essential concepts.

## Learning Objectives

- 📚 Understand core concepts
- 🎯 Apply knowledge practically
- 💡 Connect to broader themes

## Key Concepts

The main concepts include understanding and applying the principles of {lesson_name.lower()}.

## Summary

Review these concepts and complete the assessment to test your understanding."""


def fallback_test(lesson_name: str) -> Dict[str, Any]:
    return {
        "questions": [
            {
                "question": f"What is the main focus of {lesson_name}?",
                "answerType": "multiple choice",
                "options": [
                    "Understanding core concepts",
                    "Memorizing definitions",
                    "Completing assignments",
                    "Reading materials",
                ],
                "answer": 0,
                "explanation": "The main focus is understanding core concepts.",
            },
            {
                "question": "On a scale of 1-10, how important is practice?",
                "answerType": "numeric",
                "answer": 9,
                "explanation": "Practice is crucial for mastering concepts.",
            },
        ]
    }


def normalize_questions(raw_questions: Any) -> List[Dict[str, Any]]:
    """Keep the questions that parse as a valid question, in their JSON form."""
    if not isinstance(raw_questions, list):
        return []
    questions = []
    for raw in raw_questions:
        try:
            question = _question_adapter.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Dropping malformed generated question: %s", exc.errors()[:1])
            continue
        questions.append(question.model_dump(exclude_none=True))
    return questions


# -----------------------------
# LLM calls
# -----------------------------


def generate_degree_outline(
    degree_name: str,
    degree_description: str,
    target_level: str = "comprehensive",
    course_count: int = DEFAULT_COURSE_COUNT,
) -> List[Dict[str, Any]]:
    user_prompt = json.dumps(
        {
            "degreeName": degree_name,
            "degreeDescription": degree_description,
            "targetLevel": target_level,
            "courseCount": course_count,
        }
    )
    try:
        parsed = openai_service.generate_json(
            DEGREE_OUTLINE_SYSTEM_PROMPT,
            user_prompt,
            model=settings.OPENAI_OUTLINE_MODEL,
            temperature=0.7,
            max_tokens=3000,
        )
        courses = [c for c in parsed.get("courses") or [] if isinstance(c, dict) and c.get("name")]
        if not courses:
            raise UpstreamGenerationError("Degree outline contained no courses")
        return courses
    except UpstreamGenerationError as exc:
        logger.warning("Degree outline generation failed for '%s', using fallback: %s", degree_name, exc)
        return fallback_courses(degree_name, course_count)


def generate_course_outline(
    course_name: str,
    course_description: str,
    degree_context: str,
    lesson_count: int = DEFAULT_LESSON_COUNT,
    expertise_level: str = "intermediate",
) -> List[Dict[str, Any]]:
    user_prompt = json.dumps(
        {
            "courseName": course_name,
            "courseDescription": course_description,
            "degreeContext": degree_context,
            "expertiseLevel": expertise_level,
            "lessonCount": lesson_count,
        }
    )
    try:
        parsed = openai_service.generate_json(
            COURSE_OUTLINE_SYSTEM_PROMPT,
            user_prompt,
            model=settings.OPENAI_LESSON_MODEL,
            temperature=0.7,
            max_tokens=2500,
        )
        lessons = [l for l in parsed.get("lessons") or [] if isinstance(l, dict) and l.get("name")]
        if not lessons:
            raise UpstreamGenerationError("Course outline contained no lessons")
        return lessons
    except UpstreamGenerationError as exc:
        logger.warning("Course outline generation failed for '%s', using fallback: %s", course_name, exc)
        return fallback_lessons(course_name, lesson_count)


def generate_lesson(
    lesson_name: str,
    lesson_description: str,
    course_name: str,
    degree_context: str,
    lesson_order: int,
    difficulty: str = "intermediate",
) -> Dict[str, Any]:
    """Markdown content and a test for one lesson; each part falls back on its own."""
    user_prompt = LESSON_USER_PROMPT.format(
        lesson_name=lesson_name,
        lesson_description=lesson_description,
        course_name=course_name,
        degree_context=degree_context,
        lesson_number=lesson_order + 1,
        difficulty=difficulty,
    )
    try:
        parsed = openai_service.generate_json(
            LESSON_SYSTEM_PROMPT,
            user_prompt,
            model=settings.OPENAI_LESSON_MODEL,
            temperature=0.6,
            max_tokens=4000,
        )
    except UpstreamGenerationError as exc:
        logger.warning("Lesson generation failed for '%s', using fallback: %s", lesson_name, exc)
        parsed = {}

    content = parsed.get("content")
    if not isinstance(content, str) or not content.strip():
        content = fallback_content(lesson_name, lesson_description, course_name)

    test = parsed.get("test") if isinstance(parsed.get("test"), dict) else {}
    questions = normalize_questions(test.get("questions"))
    if not questions:
        questions = fallback_test(lesson_name)["questions"]

    return {"content": content, "test": {"questions": questions}}


# -----------------------------
# Persistence
# -----------------------------


class CurriculumGenerator:
    """Fills degrees with courses and courses with lessons for one user."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def generate_courses_for_degree(
        self, degree_id: int, course_count: int = DEFAULT_COURSE_COUNT, target_level: str = "comprehensive"
    ) -> BatchResult:
        degree = degree_crud.get_owned_degree(self.db, degree_id, self.user_id)
        if degree is None:
            raise NotFoundError("Degree not found or access denied")
        if degree_crud.count_degree_courses(self.db, degree.id) > 0:
            raise ConflictError("Courses already generated for this degree")

        templates = generate_degree_outline(degree.name, degree.description, target_level, course_count)
        result = BatchResult()
        for index, template in enumerate(templates):
            try:
                course = course_crud.create_course(
                    self.db,
                    user_id=self.user_id,
                    name=str(template["name"]),
                    description=str(template.get("description") or ""),
                    icon=template.get("icon"),
                    degree_id=degree.id,
                    course_order=index,
                )
                result.created.append(course)
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.warning("Failed to create course %s for degree %s: %s", index + 1, degree.id, exc)
                result.failed.append({"index": index, "name": template.get("name"), "error": str(exc)})

        logger.info(
            "✅ Generated %s/%s courses for degree %s",
            len(result.created),
            result.total,
            degree.id,
        )
        return result

    def generate_lessons_for_course(
        self, course_id: int, lesson_count: int = DEFAULT_LESSON_COUNT, expertise_level: str = "intermediate"
    ) -> BatchResult:
        course = course_crud.get_owned_course(self.db, course_id, self.user_id)
        if course is None:
            raise NotFoundError("Course not found or access denied")
        if course_crud.count_course_lessons(self.db, course.id) > 0:
            raise ConflictError("Lessons already generated for this course")

        templates = generate_course_outline(
            course.name,
            course.description,
            self._degree_context(course),
            lesson_count,
            expertise_level,
        )
        result = BatchResult()
        for index, template in enumerate(templates):
            try:
                lesson = lesson_crud.create_lesson(
                    self.db,
                    course_id=course.id,
                    name=str(template["name"]),
                    description=str(template.get("description") or ""),
                    icon=template.get("icon"),
                    lesson_order=index,
                )
                result.created.append(lesson)
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.warning("Failed to create lesson %s for course %s: %s", index + 1, course.id, exc)
                result.failed.append({"index": index, "name": template.get("name"), "error": str(exc)})

        logger.info(
            "✅ Generated %s/%s lessons for course %s",
            len(result.created),
            result.total,
            course.id,
        )
        return result

    def generate_content(self, lesson_id: int, force_regenerate: bool = False) -> Dict[str, Any]:
        lesson = self._get_lesson(lesson_id)
        if not force_regenerate and lesson.content and lesson.content.strip():
            raise ConflictError("Content already generated for this lesson")

        generated = self._generate_for(lesson)
        lesson.content = generated["content"]
        self.db.commit()
        self.db.refresh(lesson)

        questions = generated["test"]["questions"]
        _, operation = lesson_crud.upsert_test(self.db, lesson.id, questions)
        logger.info(
            "Lesson %s content generated (%s chars, %s questions, test %s)",
            lesson.id,
            len(lesson.content),
            len(questions),
            operation,
        )
        return {
            "lesson": lesson,
            "contentLength": len(lesson.content),
            "testQuestionsCount": len(questions),
            "testOperation": operation,
        }

    def generate_test(self, lesson_id: int) -> Dict[str, Any]:
        lesson = self._get_lesson(lesson_id)
        if len((lesson.content or "").strip()) < MIN_CONTENT_LENGTH_FOR_TEST:
            raise InvalidRequestError("Lesson content is required before generating a test")

        questions = self._generate_for(lesson)["test"]["questions"]
        test, operation = lesson_crud.upsert_test(self.db, lesson.id, questions)
        return {
            "testId": test.id,
            "testQuestionsCount": len(questions),
            "testOperation": operation,
        }

    def _get_lesson(self, lesson_id: int) -> Lesson:
        lesson = lesson_crud.get_owned_lesson(self.db, lesson_id, self.user_id)
        if lesson is None:
            raise NotFoundError("Lesson not found or access denied")
        return lesson

    def _generate_for(self, lesson: Lesson) -> Dict[str, Any]:
        course = lesson.course
        return generate_lesson(
            lesson.name,
            lesson.description,
            course.name,
            self._degree_context(course),
            lesson.lesson_order,
            "intermediate",
        )

    @staticmethod
    def _degree_context(course: Course) -> str:
        degree = course.degree
        return degree.name if degree is not None and not degree.is_deleted else "General"
