# src/mx_space/models/analytics.py
"""Models for page access analytics."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from mx_space.db.ids import generate_id
from mx_space.db.session import Base
from mx_space.db.time import utcnow


class AccessRecord(Base):
    """One recorded public page view."""

    __tablename__ = "access_record"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=generate_id)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ua: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
