import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class UserInput(Base):
    __tablename__ = "user_inputs"
    __table_args__ = (
        Index("ix_user_inputs_user_type_created", "user_id", "prompt_type", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    user_id: Mapped[str] = mapped_column(String(255))
    # "goal" or "code" for the scoring flow
    prompt_type: Mapped[str] = mapped_column(String(32))
    content: Mapped[str] = mapped_column(Text)
