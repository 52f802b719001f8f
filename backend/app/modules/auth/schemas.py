from datetime import datetime

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    Username: str = Field(..., max_length=120)
    Password: str = Field(..., max_length=200)


class RefreshRequest(BaseModel):
    RefreshToken: str = Field(..., max_length=400)


class UserOut(BaseModel):
    Id: int
    Username: str
    Role: str
    LastLoginAt: datetime | None = None
    CreatedAt: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    AccessToken: str
    RefreshToken: str
    TokenType: str = "bearer"
    ExpiresIn: int
    User: UserOut
