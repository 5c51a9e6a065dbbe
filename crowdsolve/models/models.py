# models.py
from sqlalchemy import Column, Integer, String, Text, Boolean, JSON, ForeignKey, TIMESTAMP
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from enum import Enum
from ..database import Base
from .user import User, UserSummary


# -------------------------------
# Enumerations
# -------------------------------
class Category(str, Enum):
    ENVIRONMENT = "environment"
    INFRASTRUCTURE = "infrastructure"
    SOCIAL = "social"
    EDUCATION = "education"
    HEALTH = "health"
    OTHER = "other"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ProblemStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


# -------------------------------
# SQLAlchemy ORM Models
# -------------------------------
class Problem(Base):
    __tablename__ = "problems"
    __counters__ = ("upvote_count", "solution_count")
    __immutable__ = ("problem_id", "created_by", "created_at")

    problem_id = Column(Integer, primary_key=True, index=True)
    created_by = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(255), nullable=False)
    images = Column(JSON, nullable=False, default=list)
    category = Column(String(50), nullable=False, index=True)
    urgency = Column(String(50), nullable=False, default=Urgency.MEDIUM.value)
    status = Column(String(50), nullable=False, default=ProblemStatus.OPEN.value, index=True)
    upvote_count = Column(Integer, nullable=False, default=0, server_default="0")
    solution_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    creator = relationship("User", back_populates="problems")
    solutions = relationship("Solution", back_populates="problem")


class Solution(Base):
    __tablename__ = "solutions"
    __counters__ = ("upvote_count", "comment_count")
    __immutable__ = ("solution_id", "problem_id", "proposed_by", "created_at")

    solution_id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(Integer, ForeignKey("problems.problem_id"), nullable=False, index=True)
    proposed_by = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    upvote_count = Column(Integer, nullable=False, default=0, server_default="0")
    comment_count = Column(Integer, nullable=False, default=0, server_default="0")
    is_accepted = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    problem = relationship("Problem", back_populates="solutions")
    proposer = relationship("User", back_populates="solutions")
    comments = relationship(
        "SolutionComment",
        back_populates="solution",
        order_by="SolutionComment.comment_id",
        cascade="all, delete",
    )


class ProblemUpvote(Base):
    """Membership row of a problem's upvoter set."""
    __tablename__ = "problem_upvotes"

    problem_id = Column(Integer, ForeignKey("problems.problem_id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), primary_key=True)
    created_at = Column(TIMESTAMP, server_default=func.now())


class SolutionUpvote(Base):
    """Membership row of a solution's upvoter set."""
    __tablename__ = "solution_upvotes"

    solution_id = Column(Integer, ForeignKey("solutions.solution_id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), primary_key=True)
    created_at = Column(TIMESTAMP, server_default=func.now())


class SolutionComment(Base):
    __tablename__ = "solution_comments"

    comment_id = Column(Integer, primary_key=True, index=True)
    solution_id = Column(Integer, ForeignKey("solutions.solution_id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    solution = relationship("Solution", back_populates="comments")
    user = relationship("User")


# -------------------------------
# Pydantic Schemas (for FastAPI)
# -------------------------------

# -------- Requests --------
class ProblemCreate(BaseModel):
    title: str
    description: str
    location: str
    images: List[str] = []
    category: Category
    urgency: Urgency = Urgency.MEDIUM


class ProblemUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    images: Optional[List[str]] = None
    category: Optional[Category] = None
    urgency: Optional[Urgency] = None
    status: Optional[ProblemStatus] = None


class SolutionCreate(BaseModel):
    problem_id: int
    description: str


class CommentCreate(BaseModel):
    text: str


# -------- Responses --------
class UpvoteResponse(BaseModel):
    count: int
    has_upvoted: bool


class ProblemResponse(BaseModel):
    problem_id: int
    title: str
    description: str
    location: str
    images: List[str] = []
    category: Category
    urgency: Urgency
    status: ProblemStatus
    creator: UserSummary
    upvote_count: int
    solution_count: int
    has_upvoted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProblemListResponse(BaseModel):
    problems: List[ProblemResponse]
    total_pages: int
    current_page: int
    total: int


class CommentResponse(BaseModel):
    comment_id: int
    user: UserSummary
    text: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SolutionResponse(BaseModel):
    solution_id: int
    problem_id: int
    description: str
    proposer: UserSummary
    upvote_count: int
    comment_count: int
    is_accepted: bool
    comments: List[CommentResponse] = []
    has_upvoted: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AcceptResponse(SolutionResponse):
    problem_status: ProblemStatus
