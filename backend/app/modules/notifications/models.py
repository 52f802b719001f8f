from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Unicode

from app.db import Base


class NotificationType:
    ReminderDue = "ReminderDue"


class Notification(Base):
    """An inbox entry raised for a user, currently only when a reminder fires."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_inbox", "UserId", "IsDismissed", "CreatedAt"),
        Index("ix_notifications_reminder", "ReminderId"),
        {"schema": "notifications"},
    )

    Id = Column(Integer, primary_key=True)
    UserId = Column(Integer, nullable=False)
    Type = Column(String(40), nullable=False, default=NotificationType.ReminderDue)
    Title = Column(Unicode(200), nullable=False)
    Body = Column(Unicode(500))
    # Plain ids: the notification outlives a deleted note or reminder.
    NoteId = Column(Integer)
    ReminderId = Column(Integer)
    DueAt = Column(DateTime(timezone=True))
    IsRead = Column(Boolean, nullable=False, default=False)
    ReadAt = Column(DateTime(timezone=True))
    IsDismissed = Column(Boolean, nullable=False, default=False)
    DismissedAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
