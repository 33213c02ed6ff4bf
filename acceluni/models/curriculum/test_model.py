from sqlalchemy import Integer, Boolean, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from acceluni.db.base_class import Base
from typing import Any, Dict, List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .lesson_model import Lesson


class LessonTest(Base):
    """The quiz attached to a lesson. Questions are stored verbatim as JSON."""

    __tablename__ = "tests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    lesson_id: Mapped[int] = mapped_column(Integer, ForeignKey("lessons.id"), unique=True, index=True, nullable=False)
    questions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    lesson: Mapped["Lesson"] = relationship(back_populates="test")

    def __repr__(self):
        return f"<LessonTest(id={self.id}, lesson_id={self.lesson_id}, questions={len(self.questions or [])})>"
