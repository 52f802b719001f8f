from datetime import datetime

from pydantic import BaseModel


class NotificationOut(BaseModel):
    Id: int
    Type: str
    Title: str
    Body: str | None = None
    NoteId: int | None = None
    ReminderId: int | None = None
    DueAt: datetime | None = None
    IsRead: bool
    ReadAt: datetime | None = None
    IsDismissed: bool
    CreatedAt: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    Notifications: list[NotificationOut]
    UnreadCount: int


class UnreadCountResponse(BaseModel):
    UnreadCount: int


class MarkAllReadResponse(BaseModel):
    Updated: int
