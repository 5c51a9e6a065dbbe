from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.models import (
    AcceptResponse,
    CommentCreate,
    CommentResponse,
    SolutionCreate,
    SolutionResponse,
    UpvoteResponse,
)
from ..models.user import User
from ..services.acceptance import accept_solution
from ..services.submission import add_comment, submit_solution
from ..services.upvotes import toggle_upvote
from ..store import EntityKind, EntityStore
from .auth import get_current_user
from .problems import annotate_upvotes

router = APIRouter(prefix="/api/v1/solutions", tags=["Solutions"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SolutionResponse)
def create_solution(
    payload: SolutionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Propose a solution for a problem."""
    store = EntityStore(db)
    solution = submit_solution(store, payload.problem_id, current_user.user_id, payload.description)
    annotate_upvotes(store, EntityKind.SOLUTION, current_user, [solution], "solution_id")
    return solution


@router.post("/{solution_id}/upvote", response_model=UpvoteResponse)
def upvote_solution(
    solution_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Toggle the caller's upvote on a solution."""
    result = toggle_upvote(EntityStore(db), EntityKind.SOLUTION, solution_id, current_user.user_id)
    return UpvoteResponse(count=result.count, has_upvoted=result.has_upvoted)


@router.post("/{solution_id}/comments", status_code=status.HTTP_201_CREATED, response_model=CommentResponse)
def comment_on_solution(
    solution_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return add_comment(EntityStore(db), solution_id, current_user.user_id, payload.text)


@router.patch("/{solution_id}/accept", response_model=AcceptResponse)
def accept(
    solution_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Accept a solution. Only the problem's creator may do this."""
    store = EntityStore(db)
    result = accept_solution(store, solution_id, current_user.user_id)
    solution = result.solution
    solution.problem_status = result.problem.status
    annotate_upvotes(store, EntityKind.SOLUTION, current_user, [solution], "solution_id")
    return solution
