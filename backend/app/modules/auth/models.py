from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"schema": "auth"}

    Id = Column(Integer, primary_key=True)
    Username = Column(String(120), nullable=False, unique=True)
    PasswordHash = Column(String(255), nullable=False)
    Role = Column(String(20), nullable=False, default="User")
    FailedLoginCount = Column(Integer, default=0, nullable=False)
    LockedUntil = Column(DateTime(timezone=True))
    LastLoginAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    RefreshTokens = relationship("RefreshToken", back_populates="User", cascade="all, delete-orphan")


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = {"schema": "auth"}

    Id = Column(Integer, primary_key=True)
    UserId = Column(Integer, ForeignKey("auth.users.Id"), nullable=False, index=True)
    # sha256 hex digest of the opaque token handed to the client.
    TokenHash = Column(String(64), nullable=False, unique=True)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    ExpiresAt = Column(DateTime(timezone=True), nullable=False)
    RevokedAt = Column(DateTime(timezone=True))

    User = relationship("User", back_populates="RefreshTokens")
