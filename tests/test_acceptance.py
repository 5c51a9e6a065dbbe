import pytest

from crowdsolve.exceptions import ForbiddenException, NotFoundException
from crowdsolve.models import Solution
from crowdsolve.services.acceptance import accept_solution
from crowdsolve.services.submission import submit_solution
from crowdsolve.store import EntityKind


@pytest.fixture
def scenario(store, make_user, make_problem):
    """Problem P owned by `owner` with S1 proposed by A and S2 proposed by B."""
    owner = make_user("owner")
    alice = make_user("alice")
    bob = make_user("bob")
    problem_id = make_problem(owner)
    s1 = submit_solution(store, problem_id, alice, "Replace the bulb").solution_id
    s2 = submit_solution(store, problem_id, bob, "Install solar lamps").solution_id
    return {"owner": owner, "alice": alice, "bob": bob, "problem": problem_id, "s1": s1, "s2": s2}


def accepted_ids(store, problem_id):
    rows = store.db.query(Solution.solution_id).filter(
        Solution.problem_id == problem_id, Solution.is_accepted.is_(True)
    ).all()
    return {solution_id for (solution_id,) in rows}


def test_accept_marks_solution_and_resolves_problem(store, scenario):
    result = accept_solution(store, scenario["s1"], scenario["owner"])

    assert result.solution.is_accepted is True
    assert result.newly_accepted is True
    assert result.problem.status == "resolved"
    assert store.get(EntityKind.USER, scenario["alice"]).problems_solved == 1


def test_accept_retargets_and_keeps_reputation_monotonic(store, scenario):
    accept_solution(store, scenario["s1"], scenario["owner"])
    result = accept_solution(store, scenario["s2"], scenario["owner"])

    assert store.get(EntityKind.SOLUTION, scenario["s1"]).is_accepted is False
    assert result.solution.is_accepted is True
    assert store.get(EntityKind.PROBLEM, scenario["problem"]).status == "resolved"
    assert store.get(EntityKind.USER, scenario["alice"]).problems_solved == 1
    assert store.get(EntityKind.USER, scenario["bob"]).problems_solved == 1
    assert accepted_ids(store, scenario["problem"]) == {scenario["s2"]}


def test_any_sequence_leaves_at_most_one_accepted(store, scenario):
    for solution_id in ("s1", "s2", "s2", "s1", "s2"):
        accept_solution(store, scenario[solution_id], scenario["owner"])
        assert len(accepted_ids(store, scenario["problem"])) == 1
    assert accepted_ids(store, scenario["problem"]) == {scenario["s2"]}


def test_retried_accept_does_not_double_count(store, scenario):
    accept_solution(store, scenario["s1"], scenario["owner"])
    result = accept_solution(store, scenario["s1"], scenario["owner"])

    assert result.newly_accepted is False
    assert result.solution.is_accepted is True
    assert store.get(EntityKind.USER, scenario["alice"]).problems_solved == 1


def test_non_owner_is_forbidden_without_side_effects(store, scenario):
    with pytest.raises(ForbiddenException) as exc:
        accept_solution(store, scenario["s1"], scenario["bob"])

    assert exc.value.status_code == 403
    assert accepted_ids(store, scenario["problem"]) == set()
    assert store.get(EntityKind.PROBLEM, scenario["problem"]).status == "open"
    assert store.get(EntityKind.USER, scenario["alice"]).problems_solved == 0
    assert store.get(EntityKind.USER, scenario["bob"]).problems_solved == 0


def test_accept_missing_solution(store, scenario):
    with pytest.raises(NotFoundException):
        accept_solution(store, 999, scenario["owner"])


def test_accept_heals_multiple_accepted_solutions(store, scenario, make_user):
    carol = make_user("carol")
    s3 = submit_solution(store, scenario["problem"], carol, "Ask the city").solution_id
    # Drift left behind by an earlier failure: two accepted at once
    store.scoped_update(
        EntityKind.SOLUTION, {"is_accepted": True},
        Solution.solution_id.in_([scenario["s1"], scenario["s2"]]),
    )

    accept_solution(store, s3, scenario["owner"])

    assert accepted_ids(store, scenario["problem"]) == {s3}
    assert store.get(EntityKind.USER, carol).problems_solved == 1


def test_accept_only_touches_its_own_problem(store, scenario, make_problem):
    other_problem = make_problem(scenario["owner"], title="Pothole")
    other_solution = submit_solution(store, other_problem, scenario["bob"], "Fill it").solution_id
    accept_solution(store, other_solution, scenario["owner"])

    accept_solution(store, scenario["s1"], scenario["owner"])

    assert store.get(EntityKind.SOLUTION, other_solution).is_accepted is True
    assert accepted_ids(store, scenario["problem"]) == {scenario["s1"]}
