"""Problem creation, owner updates and listing queries."""

import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..exceptions import ValidationException
from ..models.models import Problem, ProblemCreate, ProblemStatus, ProblemUpdate, Solution
from ..store import EntityKind, EntityStore
from .guards import require_owner
from .submission import clean_text

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MAX_LOCATION_LENGTH = 255

# Statuses an owner may set by hand; "resolved" only comes from acceptance
OWNER_STATUSES = {ProblemStatus.OPEN, ProblemStatus.IN_PROGRESS, ProblemStatus.CLOSED}


def create_problem(store: EntityStore, creator_id: int, payload: ProblemCreate) -> Problem:
    problem = store.create(
        EntityKind.PROBLEM,
        created_by=creator_id,
        title=clean_text(payload.title, "title", MAX_TITLE_LENGTH),
        description=clean_text(payload.description, "description", MAX_DESCRIPTION_LENGTH),
        location=clean_text(payload.location, "location", MAX_LOCATION_LENGTH),
        images=list(payload.images),
        category=payload.category.value,
        urgency=payload.urgency.value,
    )
    logger.info(f"Problem created | problem={problem.problem_id}, creator={creator_id}")
    return problem


def update_problem(store: EntityStore, problem_id: int, acting_user_id: int, payload: ProblemUpdate) -> Problem:
    problem = store.get(EntityKind.PROBLEM, problem_id)
    require_owner(problem.created_by, acting_user_id, "Not authorized to update this problem")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    fields = {}
    if "title" in changes:
        fields["title"] = clean_text(changes["title"], "title", MAX_TITLE_LENGTH)
    if "description" in changes:
        fields["description"] = clean_text(changes["description"], "description", MAX_DESCRIPTION_LENGTH)
    if "location" in changes:
        fields["location"] = clean_text(changes["location"], "location", MAX_LOCATION_LENGTH)
    if "images" in changes:
        fields["images"] = list(changes["images"])
    if "category" in changes:
        fields["category"] = changes["category"].value
    if "urgency" in changes:
        fields["urgency"] = changes["urgency"].value
    if "status" in changes:
        if changes["status"] not in OWNER_STATUSES:
            raise ValidationException("A problem is resolved by accepting one of its solutions", field="status")
        fields["status"] = changes["status"].value

    if not fields:
        return problem

    problem = store.set_fields(EntityKind.PROBLEM, problem_id, fields)
    logger.info(f"Problem updated | problem={problem_id}, fields={sorted(fields)}")
    return problem


def list_problems(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> Tuple[List[Problem], int, int]:
    """Return (problems, total, total_pages) for one page, newest first."""
    query = db.query(Problem)
    if category:
        query = query.filter(Problem.category == category)
    if status:
        query = query.filter(Problem.status == status)
    if search:
        pattern = f"%{_escape_like(search.strip())}%"
        query = query.filter(or_(
            Problem.title.ilike(pattern, escape="\\"),
            Problem.description.ilike(pattern, escape="\\"),
            Problem.location.ilike(pattern, escape="\\"),
        ))

    total = query.count()
    problems = (
        query.order_by(Problem.created_at.desc(), Problem.problem_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return problems, total, math.ceil(total / limit)


def _escape_like(text: str) -> str:
    """Make % and _ in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_solutions(db: Session, problem_id: int) -> List[Solution]:
    """Solutions of a problem, most upvoted first, then newest."""
    return (
        db.query(Solution)
        .filter(Solution.problem_id == problem_id)
        .order_by(Solution.upvote_count.desc(), Solution.created_at.desc(), Solution.solution_id.desc())
        .all()
    )
