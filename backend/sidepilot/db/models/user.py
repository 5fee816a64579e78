"""User model: local mirror of the Clerk identity."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from sidepilot.db.base import Base


class User(Base):
    __tablename__ = "users"

    # Clerk subject id (user_xxx); never changes once written
    id = Column(String(255), primary_key=True)

    email = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    image_url = Column(String(1000), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
