from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
    Unicode,
    UnicodeText,
)
from sqlalchemy.orm import relationship

from app.db import Base


class Folder(Base):
    __tablename__ = "Folders"
    __table_args__ = (
        Index("ix_notes_folders_owner_parent", "OwnerUserId", "ParentFolderId"),
        {"schema": "notes"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    OwnerUserId = Column(Integer, ForeignKey("auth.users.Id"), nullable=False, index=True)
    ParentFolderId = Column(Integer, ForeignKey("notes.Folders.Id"), nullable=True)
    Name = Column(Unicode(200), nullable=False)
    IsInTrash = Column(Boolean, nullable=False, default=False)
    TrashedAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    # Children and notes go with the folder; a parent survives its children.
    Parent = relationship("Folder", remote_side=[Id], back_populates="Children")
    Children = relationship("Folder", back_populates="Parent", cascade="all")
    Notes = relationship("Note", back_populates="Folder", cascade="all")


class Note(Base):
    __tablename__ = "Notes"
    __table_args__ = (
        Index("ix_notes_notes_owner_trash_updated", "OwnerUserId", "IsInTrash", "UpdatedAt"),
        {"schema": "notes"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    OwnerUserId = Column(Integer, ForeignKey("auth.users.Id"), nullable=False, index=True)
    FolderId = Column(Integer, ForeignKey("notes.Folders.Id", ondelete="CASCADE"), nullable=True, index=True)
    Title = Column(Unicode(500), nullable=False)
    Content = Column(UnicodeText, nullable=False, default="")
    RichContent = Column(LargeBinary, nullable=True)
    IsInTrash = Column(Boolean, nullable=False, default=False)
    TrashedAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    Folder = relationship("Folder", back_populates="Notes")
    Images = relationship("NoteImage", back_populates="Note", cascade="all, delete-orphan")
    Reminders = relationship("Reminder", back_populates="Note", cascade="all, delete-orphan")
    Tags = relationship(
        "Tag",
        secondary=lambda: NoteTagLink.__table__,
        back_populates="Notes",
    )


class NoteImage(Base):
    __tablename__ = "NoteImages"
    __table_args__ = {"schema": "notes"}

    Id = Column(Integer, primary_key=True, index=True)
    OwnerUserId = Column(Integer, ForeignKey("auth.users.Id"), nullable=False, index=True)
    NoteId = Column(Integer, ForeignKey("notes.Notes.Id", ondelete="CASCADE"), nullable=True, index=True)
    StoragePath = Column(String(500), nullable=False)
    ContentType = Column(String(120))
    OriginalFileName = Column(Unicode(255))
    FileSizeBytes = Column(Integer, nullable=False, default=0)
    Hash = Column(String(64), nullable=False)
    OcrText = Column(UnicodeText)
    OcrStatus = Column(String(20), nullable=False, default="Skipped")
    OcrUpdatedAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    Note = relationship("Note", back_populates="Images")


class Reminder(Base):
    __tablename__ = "Reminders"
    __table_args__ = (
        Index("ix_notes_reminders_active_date", "IsActive", "ReminderAt"),
        {"schema": "notes"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    OwnerUserId = Column(Integer, ForeignKey("auth.users.Id"), nullable=False, index=True)
    NoteId = Column(Integer, ForeignKey("notes.Notes.Id", ondelete="CASCADE"), nullable=True, index=True)
    Title = Column(Unicode(200), nullable=False)
    ReminderAt = Column(DateTime(timezone=True), nullable=False)
    IsActive = Column(Boolean, nullable=False, default=True)
    RepeatType = Column(String(20), nullable=False, default="none")
    LastTriggeredAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    Note = relationship("Note", back_populates="Reminders")


class Tag(Base):
    __tablename__ = "Tags"
    __table_args__ = (
        UniqueConstraint("OwnerUserId", "NormalizedName", name="ux_notes_tags_owner_name"),
        {"schema": "notes"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    OwnerUserId = Column(Integer, ForeignKey("auth.users.Id"), nullable=False, index=True)
    Name = Column(Unicode(120), nullable=False)
    NormalizedName = Column(Unicode(120), nullable=False)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    Notes = relationship(
        "Note",
        secondary=lambda: NoteTagLink.__table__,
        back_populates="Tags",
    )


class NoteTagLink(Base):
    __tablename__ = "NoteTagLinks"
    __table_args__ = {"schema": "notes"}

    NoteId = Column(Integer, ForeignKey("notes.Notes.Id", ondelete="CASCADE"), primary_key=True)
    TagId = Column(Integer, ForeignKey("notes.Tags.Id"), primary_key=True)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
