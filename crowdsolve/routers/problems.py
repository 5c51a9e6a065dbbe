from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.models import (
    Category,
    ProblemCreate,
    ProblemListResponse,
    ProblemResponse,
    ProblemStatus,
    ProblemUpdate,
    SolutionResponse,
    UpvoteResponse,
)
from ..models.user import User
from ..services import problems as problem_service
from ..services.upvotes import toggle_upvote
from ..store import EntityKind, EntityStore
from .auth import get_current_user, get_optional_user

router = APIRouter(prefix="/api/v1/problems", tags=["Problems"])


def annotate_upvotes(store: EntityStore, kind: EntityKind, user: Optional[User], entities: list, key: str):
    """Attach has_upvoted per entity, for the caller."""
    voted = store.member_of(kind, [getattr(e, key) for e in entities], user.user_id) if user else set()
    for entity in entities:
        entity.has_upvoted = getattr(entity, key) in voted
    return entities


@router.get("", response_model=ProblemListResponse)
def list_problems(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[Category] = None,
    problem_status: Optional[ProblemStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """List problems, newest first, with optional filters."""
    problems, total, total_pages = problem_service.list_problems(
        db,
        page=page,
        limit=limit,
        category=category.value if category else None,
        status=problem_status.value if problem_status else None,
        search=search,
    )
    annotate_upvotes(EntityStore(db), EntityKind.PROBLEM, current_user, problems, "problem_id")
    return ProblemListResponse(
        problems=[ProblemResponse.model_validate(p) for p in problems],
        total_pages=total_pages,
        current_page=page,
        total=total,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProblemResponse)
def create_problem(
    payload: ProblemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return problem_service.create_problem(EntityStore(db), current_user.user_id, payload)


@router.get("/{problem_id}", response_model=ProblemResponse)
def get_problem(
    problem_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    store = EntityStore(db)
    problem = store.get(EntityKind.PROBLEM, problem_id)
    annotate_upvotes(store, EntityKind.PROBLEM, current_user, [problem], "problem_id")
    return problem


@router.put("/{problem_id}", response_model=ProblemResponse)
def update_problem(
    problem_id: int,
    payload: ProblemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Owner-only edit of a problem's descriptive fields and manual status."""
    return problem_service.update_problem(EntityStore(db), problem_id, current_user.user_id, payload)


@router.post("/{problem_id}/upvote", response_model=UpvoteResponse)
def upvote_problem(
    problem_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Toggle the caller's upvote on a problem."""
    result = toggle_upvote(EntityStore(db), EntityKind.PROBLEM, problem_id, current_user.user_id)
    return UpvoteResponse(count=result.count, has_upvoted=result.has_upvoted)


@router.get("/{problem_id}/solutions", response_model=List[SolutionResponse])
def get_problem_solutions(
    problem_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    store = EntityStore(db)
    store.get(EntityKind.PROBLEM, problem_id)
    solutions = problem_service.list_solutions(db, problem_id)
    annotate_upvotes(store, EntityKind.SOLUTION, current_user, solutions, "solution_id")
    return solutions
