from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ReminderRepeatType(str, Enum):
    None_ = "none"
    Daily = "daily"
    Weekly = "weekly"
    Monthly = "monthly"
    Yearly = "yearly"
    Weekdays = "weekdays"
    Weekends = "weekends"


class SearchModeParam(str, Enum):
    FullText = "fulltext"
    Tag = "tag"


class ReminderView(str, Enum):
    Active = "active"
    Upcoming = "upcoming"
    Overdue = "overdue"


# Folders
class FolderCreate(BaseModel):
    Name: str | None = Field(default=None, max_length=200)
    ParentFolderId: int | None = None


class FolderRename(BaseModel):
    Name: str = Field(..., max_length=200)


class FolderMove(BaseModel):
    ParentFolderId: int | None = None


class FolderOut(BaseModel):
    Id: int
    Name: str
    ParentFolderId: int | None = None
    IsRoot: bool
    FullPath: str
    IsInTrash: bool
    ChildCount: int = 0
    NoteCount: int = 0
    CreatedAt: datetime
    UpdatedAt: datetime


# Notes
class NoteCreate(BaseModel):
    FolderId: int
    Title: str | None = Field(default=None, max_length=500)
    Content: str | None = None


class NoteUpdate(BaseModel):
    Title: str | None = Field(default=None, max_length=500)
    Content: str | None = None


class NoteMove(BaseModel):
    FolderId: int


class NoteOut(BaseModel):
    Id: int
    FolderId: int | None = None
    Title: str
    Content: str
    HasRichContent: bool
    IsInTrash: bool
    CreatedAt: datetime
    UpdatedAt: datetime


# Tags
class TagCreate(BaseModel):
    Name: str = Field(..., min_length=1, max_length=120)


class TagRename(BaseModel):
    Name: str = Field(..., min_length=1, max_length=120)


class NoteTagsUpdate(BaseModel):
    Names: list[str] = Field(default_factory=list)


class TagOut(BaseModel):
    Id: int
    Name: str
    NoteCount: int | None = None
    CreatedAt: datetime


# Images
class NoteImageOut(BaseModel):
    Id: int
    NoteId: int | None = None
    ContentType: str | None = None
    OriginalFileName: str | None = None
    FileSizeBytes: int
    Hash: str
    OcrStatus: str
    OcrText: str | None = None
    OcrUpdatedAt: datetime | None = None
    CreatedAt: datetime

    class Config:
        from_attributes = True


class OcrTextResponse(BaseModel):
    Text: str
    LineCount: int


# Reminders
class ReminderCreate(BaseModel):
    Title: str = Field(..., min_length=1, max_length=200)
    ReminderAt: datetime | None = None
    RepeatType: ReminderRepeatType = ReminderRepeatType.None_


class ReminderUpdate(BaseModel):
    Title: str | None = Field(default=None, max_length=200)
    ReminderAt: datetime | None = None
    IsActive: bool | None = None
    RepeatType: ReminderRepeatType | None = None


class ReminderOut(BaseModel):
    Id: int
    NoteId: int | None = None
    NoteTitle: str | None = None
    Title: str
    ReminderAt: datetime
    IsActive: bool
    RepeatType: ReminderRepeatType
    IsOverdue: bool
    TimeRemaining: str
    NextReminderAt: datetime | None = None
    LastTriggeredAt: datetime | None = None
    CreatedAt: datetime
    UpdatedAt: datetime


class ReminderRunResponse(BaseModel):
    Processed: int
    NotificationsSent: int
    Rescheduled: int
    Deactivated: int
    Errors: int


class NoteDetailOut(NoteOut):
    Tags: list[TagOut] = Field(default_factory=list)
    Images: list[NoteImageOut] = Field(default_factory=list)
    Reminders: list[ReminderOut] = Field(default_factory=list)


# Search
class SearchHitOut(BaseModel):
    Note: NoteOut
    Snippet: str


class SearchResponse(BaseModel):
    Query: str
    Mode: SearchModeParam
    Limit: int
    HasMore: bool
    Results: list[SearchHitOut]


class SuggestionsResponse(BaseModel):
    Suggestions: list[str]


# Trash
class TrashOut(BaseModel):
    Notes: list[NoteOut]
    Folders: list[FolderOut]
    Count: int


class TrashCountResponse(BaseModel):
    Count: int


class TrashPurgeResponse(BaseModel):
    NotesDeleted: int
    FoldersDeleted: int
    ImagesDeleted: int
