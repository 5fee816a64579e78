"""Project model: one tracked side-project, owned by a single user."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from sidepilot.db.base import Base


class Project(Base):
    __tablename__ = "projects"
    # Ids are never reused after a delete
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)

    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="planning")
    progress = Column(Integer, nullable=False, default=0)  # 0-100
    monthly_cost = Column(Integer, nullable=False, default=0)  # cents
    ai_updates = Column(Integer, nullable=False, default=0)

    github_url = Column(Text, nullable=True)
    live_url = Column(Text, nullable=True)
    docs_url = Column(Text, nullable=True)

    last_activity = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
