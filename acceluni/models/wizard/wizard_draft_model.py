from sqlalchemy import Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from acceluni.db.base_class import Base
from typing import Any, Dict
from datetime import datetime


class WizardDraft(Base):
    __tablename__ = "wizard_drafts"
    __table_args__ = (UniqueConstraint("user_id", "draft_key", name="uq_wizard_draft_user_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    draft_key: Mapped[str] = mapped_column(String(100), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
