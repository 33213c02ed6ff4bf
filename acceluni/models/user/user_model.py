from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from acceluni.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from ..curriculum.degree_model import Degree
    from ..curriculum.course_model import Course
    from ..progress.user_lesson_progress_model import UserLessonProgress
    from ..billing.subscription_model import Subscription, UserTrial


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    full_name: Mapped[Optional[str]] = mapped_column(String(255))

    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True, nullable=True)

    degrees: Mapped[List["Degree"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    courses: Mapped[List["Course"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    lesson_progress: Mapped[List["UserLessonProgress"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    subscriptions: Mapped[List["Subscription"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    trial: Mapped[Optional["UserTrial"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
