from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Text

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TodoModel(Base):
    __tablename__ = "todos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    status = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime, nullable=False, default=utcnow)
    lastmodified = Column(DateTime, nullable=False, default=utcnow)
    duedate = Column(DateTime, nullable=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    projects = Column(Text, nullable=True)
    contexts = Column(Text, nullable=True)
