from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from acceluni.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum

if TYPE_CHECKING:
    from .course_model import Course
    from .test_model import LessonTest
    from ..progress.user_lesson_progress_model import UserLessonProgress


class LessonStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    LessonStatus.NOT_STARTED: 0,
    LessonStatus.STARTED: 1,
    LessonStatus.COMPLETED: 2,
}


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    # Markdown, empty until generated.
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lesson_order: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[LessonStatus] = mapped_column(
        Enum(LessonStatus, name="lessonstatus", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=LessonStatus.NOT_STARTED,
        server_default=LessonStatus.NOT_STARTED.value,
    )
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    course: Mapped["Course"] = relationship(back_populates="lessons")
    test: Mapped[Optional["LessonTest"]] = relationship(back_populates="lesson", uselist=False)
    progress_entries: Mapped[List["UserLessonProgress"]] = relationship(back_populates="lesson")

    def advance_status(self, target: LessonStatus) -> bool:
        """Move the status forward to ``target``; returns False when it would go back."""
        if LessonStatus(self.status).rank >= target.rank:
            return False
        self.status = target
        return True

    def __repr__(self):
        return f"<Lesson(id={self.id}, name='{self.name}', status={self.status})>"
