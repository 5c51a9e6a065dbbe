"""
Solution acceptance.

Per problem the workflow is a small state machine: no solution accepted, or
exactly one. Accepting a solution while another one is accepted re-targets
the acceptance. Writes are ranked by how bad a partial failure would be:

1. clear every other accepted solution of the problem (one scoped UPDATE),
2. flag the target solution (conditional UPDATE),
3. mark the problem resolved,
4. credit the proposer's ``problems_solved``.

Steps 1 and 2 run in one transaction holding a lock on the problem row, and
step 2 only applies when no other solution of the problem is accepted. An
interruption therefore leaves zero or one accepted solutions, never two.
Re-running ``accept_solution`` repairs a zero state.
"""

import logging
from dataclasses import dataclass

from ..exceptions import PreconditionFailedException
from ..models.models import Problem, ProblemStatus, Solution
from ..store import EntityKind, EntityStore, field_is, none_other
from .guards import require_owner

logger = logging.getLogger(__name__)


@dataclass
class AcceptanceResult:
    solution: Solution
    problem: Problem
    newly_accepted: bool


def accept_solution(store: EntityStore, solution_id: int, acting_user_id: int) -> AcceptanceResult:
    solution = store.get(EntityKind.SOLUTION, solution_id)
    problem_id = solution.problem_id
    proposer_id = solution.proposed_by
    problem = store.get(EntityKind.PROBLEM, problem_id)

    require_owner(problem.created_by, acting_user_id, "Not authorized to accept solutions for this problem")

    try:
        newly_accepted = _move_acceptance(store, problem_id, solution_id)
    except PreconditionFailedException:
        logger.warning(f"Concurrent acceptance detected | solution={solution_id}, problem={problem_id}")
        raise

    problem = store.set_fields(EntityKind.PROBLEM, problem_id, {"status": ProblemStatus.RESOLVED.value})

    if newly_accepted:
        store.apply_delta(EntityKind.USER, proposer_id, "problems_solved", 1)
        logger.info(f"Solution accepted | solution={solution_id}, problem={problem_id}, proposer={proposer_id}")
    else:
        logger.info(f"Solution already accepted | solution={solution_id}, problem={problem_id}")

    return AcceptanceResult(
        solution=store.get(EntityKind.SOLUTION, solution_id),
        problem=problem,
        newly_accepted=newly_accepted,
    )


def _move_acceptance(store: EntityStore, problem_id: int, solution_id: int) -> bool:
    """Clear other accepted solutions, then flag ``solution_id``. True if the flag flipped."""
    with store.transaction(lock=(EntityKind.PROBLEM, problem_id)):
        cleared = store.scoped_update(
            EntityKind.SOLUTION,
            {"is_accepted": False},
            Solution.problem_id == problem_id,
            Solution.solution_id != solution_id,
            Solution.is_accepted.is_(True),
        )
        if cleared:
            logger.info(f"Cleared {cleared} previously accepted solution(s) | problem={problem_id}")

        if store.get(EntityKind.SOLUTION, solution_id).is_accepted:
            # Retry of an acceptance that already went through
            return False

        store.set_fields(
            EntityKind.SOLUTION,
            solution_id,
            {"is_accepted": True},
            precondition=field_is(EntityKind.SOLUTION, "is_accepted", False)
            & none_other(
                EntityKind.SOLUTION,
                solution_id,
                scope={"problem_id": problem_id},
                field="is_accepted",
                value=True,
            ),
        )
        return True
