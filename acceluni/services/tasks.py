"""Background generation jobs scheduled after a wizard submission.

Each task opens its own database session since the request session is
closed by the time FastAPI runs background tasks.
"""
import logging

from acceluni.core.errors import AppError
from acceluni.db import session as db_session
from acceluni.services.curriculum_generator import CurriculumGenerator

logger = logging.getLogger(__name__)


def generate_degree_courses_task(degree_id: int, user_id: int, target_level: str = "comprehensive"):
    db = db_session.SessionLocal()
    try:
        result = CurriculumGenerator(db=db, user_id=user_id).generate_courses_for_degree(
            degree_id, target_level=target_level
        )
        logger.info("Background course generation for degree %s: %s created", degree_id, len(result.created))
    except AppError as e:
        logger.warning("Background course generation skipped for degree %s: %s", degree_id, e.message)
    except Exception as e:
        logger.error(f"Error in background course generation for degree {degree_id}: {e}", exc_info=True)
    finally:
        db.close()


def generate_course_lessons_task(course_id: int, user_id: int, expertise_level: str = "intermediate"):
    db = db_session.SessionLocal()
    try:
        result = CurriculumGenerator(db=db, user_id=user_id).generate_lessons_for_course(
            course_id, expertise_level=expertise_level
        )
        logger.info("Background lesson generation for course %s: %s created", course_id, len(result.created))
    except AppError as e:
        logger.warning("Background lesson generation skipped for course %s: %s", course_id, e.message)
    except Exception as e:
        logger.error(f"Error in background lesson generation for course {course_id}: {e}", exc_info=True)
    finally:
        db.close()
