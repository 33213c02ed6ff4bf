from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from acceluni.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from ..user.user_model import User
    from .degree_model import Degree
    from .lesson_model import Lesson


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    # NULL degree_id means the course is standalone.
    degree_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("degrees.id"), index=True, nullable=True)
    is_standalone: Mapped[bool] = mapped_column(Boolean, default=True)
    course_order: Mapped[int] = mapped_column(Integer, default=0)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="courses")
    degree: Mapped[Optional["Degree"]] = relationship(back_populates="courses")
    lessons: Mapped[List["Lesson"]] = relationship(
        back_populates="course", order_by="Lesson.lesson_order"
    )

    def __repr__(self):
        return f"<Course(id={self.id}, name='{self.name}', degree_id={self.degree_id})>"
