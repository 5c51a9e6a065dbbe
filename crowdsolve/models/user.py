from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator
from typing import List, Optional


# -------------------------------
# SQLAlchemy ORM Model
# -------------------------------
class User(Base):
    __tablename__ = "users"
    # Reputation tallies; only ever moved by atomic deltas
    __counters__ = ("problems_solved", "solutions_provided")
    __immutable__ = ("user_id", "created_at")

    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, nullable=False)
    # Stored lower-cased so lookups are case-insensitive
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    bio = Column(Text)
    avatar = Column(String(1024))
    location = Column(String(255))
    problems_solved = Column(Integer, nullable=False, default=0, server_default="0")
    solutions_provided = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(TIMESTAMP, server_default=func.now())

    problems = relationship("Problem", back_populates="creator")
    solutions = relationship("Solution", back_populates="proposer")


# -------------------------------
# Pydantic Schemas (for FastAPI)
# -------------------------------

# -------- Requests --------
class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        # Length limits apply to the trimmed name
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdateRequest(BaseModel):
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = Field(None, max_length=1024)
    location: Optional[str] = Field(None, max_length=255)


# -------- Responses --------
class UserSummary(BaseModel):
    user_id: int
    username: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserBase(BaseModel):
    user_id: int
    username: str
    email: EmailStr

    # Pydantic V2 Config
    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(UserBase):
    token: str


class LoginResponse(UserBase):
    token: str


class ProfileResponse(BaseModel):
    user_id: int
    username: str
    email: EmailStr
    bio: Optional[str] = None
    avatar: Optional[str] = None
    location: Optional[str] = None
    problems_solved: int
    solutions_provided: int

    # Pydantic V2 Config
    model_config = ConfigDict(from_attributes=True)


class PublicProfileResponse(BaseModel):
    user_id: int
    username: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    location: Optional[str] = None
    problems_solved: int
    solutions_provided: int

    model_config = ConfigDict(from_attributes=True)


class LeaderboardEntry(BaseModel):
    rank: int
    username: str
    problems_solved: int
    solutions_provided: int


class LeaderboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]
