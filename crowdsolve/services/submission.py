"""Solution submission and solution comments."""

import logging

from ..exceptions import ValidationException
from ..models import Solution, SolutionComment
from ..store import EntityKind, EntityStore

logger = logging.getLogger(__name__)

MAX_SOLUTION_LENGTH = 2000
MAX_COMMENT_LENGTH = 500


def clean_text(value: str, field: str, max_length: int) -> str:
    """Trim ``value`` and require 1..max_length characters."""
    text = (value or "").strip()
    if not text:
        raise ValidationException(f"{field.capitalize()} is required", field=field)
    if len(text) > max_length:
        raise ValidationException(f"{field.capitalize()} cannot exceed {max_length} characters", field=field)
    return text


def submit_solution(store: EntityStore, problem_id: int, author_id: int, description: str) -> Solution:
    """
    Create a solution under a problem.

    The solution row is written first and the two counters after it, so a
    failure part-way leaves the counters short, never pointing at a
    solution that does not exist.
    """
    text = clean_text(description, "description", MAX_SOLUTION_LENGTH)
    store.get(EntityKind.PROBLEM, problem_id)

    solution = store.create(
        EntityKind.SOLUTION,
        problem_id=problem_id,
        proposed_by=author_id,
        description=text,
    )
    store.apply_delta(EntityKind.PROBLEM, problem_id, "solution_count", 1)
    store.apply_delta(EntityKind.USER, author_id, "solutions_provided", 1)

    logger.info(f"Solution submitted | solution={solution.solution_id}, problem={problem_id}, author={author_id}")
    return store.get(EntityKind.SOLUTION, solution.solution_id)


def add_comment(store: EntityStore, solution_id: int, user_id: int, text: str) -> SolutionComment:
    body = clean_text(text, "comment", MAX_COMMENT_LENGTH)
    store.get(EntityKind.SOLUTION, solution_id)

    comment = store.append_comment(solution_id, user_id, body)
    store.apply_delta(EntityKind.SOLUTION, solution_id, "comment_count", 1)

    logger.info(f"Comment added | solution={solution_id}, comment={comment.comment_id}, user={user_id}")
    return comment
