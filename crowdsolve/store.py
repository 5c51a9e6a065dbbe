"""
Typed accessors over the persistent collections (problems, solutions, users).

The store is the only place the consistency workflows touch storage. Its
contract is deliberately narrow:

- ``get`` loads one row, always fresh from the database.
- ``apply_delta`` moves a counter with a single ``SET c = c + n`` statement,
  so concurrent callers never lose updates.
- ``set_fields`` is a single conditional UPDATE. Counters and immutable
  references cannot be written through it.
- Upvoter sets are independent keyed tables with their own membership
  operations, each reporting whether membership actually changed.

Each write commits on its own unless it runs inside ``transaction()``.
Failures surface as ``NotFoundException`` or ``PreconditionFailedException``.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from .exceptions import NotFoundException, PreconditionFailedException
from .models import Problem, ProblemUpvote, Solution, SolutionComment, SolutionUpvote, User

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    PROBLEM = "problem"
    SOLUTION = "solution"
    USER = "user"


_MODELS = {
    EntityKind.PROBLEM: Problem,
    EntityKind.SOLUTION: Solution,
    EntityKind.USER: User,
}

# Upvoter set table and the column holding the owning entity's id
_UPVOTE_SETS = {
    EntityKind.PROBLEM: (ProblemUpvote, ProblemUpvote.problem_id),
    EntityKind.SOLUTION: (SolutionUpvote, SolutionUpvote.solution_id),
}


def _model(kind: EntityKind):
    return _MODELS[EntityKind(kind)]


def _pk(model):
    return model.__mapper__.primary_key[0]


def _label(kind: EntityKind) -> str:
    return EntityKind(kind).value.capitalize()


# ---------------------------
# Preconditions
# ---------------------------
def field_is(kind: EntityKind, field: str, value: Any):
    """Precondition: the target row's ``field`` currently equals ``value``."""
    return getattr(_model(kind), field) == value


def none_other(kind: EntityKind, entity_id: int, scope: Dict[str, Any], field: str, value: Any):
    """
    Precondition: no row other than ``entity_id`` within ``scope`` currently
    has ``field == value``.
    """
    model = _model(kind)
    other = aliased(model)
    criteria = [getattr(other, name) == scope_value for name, scope_value in scope.items()]
    criteria.append(getattr(other, _pk(model).key) != entity_id)
    criteria.append(getattr(other, field) == value)
    return ~select(getattr(other, _pk(model).key)).where(*criteria).exists()


class EntityStore:
    def __init__(self, db: Session):
        self.db = db
        self._in_transaction = False

    # ---------------------------
    # Reads
    # ---------------------------
    def get(self, kind: EntityKind, entity_id: int, for_update: bool = False):
        model = _model(kind)
        query = self.db.query(model).filter(_pk(model) == entity_id).populate_existing()
        if for_update:
            query = query.with_for_update()
        entity = query.first()
        if entity is None:
            raise NotFoundException(_label(kind), entity_id)
        return entity

    def has_member(self, kind: EntityKind, entity_id: int, user_id: int) -> bool:
        table, key = _UPVOTE_SETS[EntityKind(kind)]
        row = self.db.query(key).filter(key == entity_id, table.user_id == user_id).first()
        return row is not None

    def member_of(self, kind: EntityKind, entity_ids: Iterable[int], user_id: int) -> Set[int]:
        """Return the subset of ``entity_ids`` whose upvoter set contains ``user_id``."""
        ids = list(entity_ids)
        if not ids:
            return set()
        table, key = _UPVOTE_SETS[EntityKind(kind)]
        rows = self.db.query(key).filter(key.in_(ids), table.user_id == user_id).all()
        return {entity_id for (entity_id,) in rows}

    # ---------------------------
    # Writes
    # ---------------------------
    def create(self, kind: EntityKind, **fields):
        model = _model(kind)
        self._check_writable(model, fields, allow_immutable=True)
        entity = model(**fields)
        self.db.add(entity)
        self.db.flush()
        logger.debug(f"[DB] Insert on '{model.__tablename__}' | {_pk(model).key}={getattr(entity, _pk(model).key)}")
        self._commit()
        self.db.refresh(entity)
        return entity

    def apply_delta(self, kind: EntityKind, entity_id: int, counter: str, delta: int):
        model = _model(kind)
        if counter not in model.__counters__:
            raise ValueError(f"{counter!r} is not a counter of {model.__name__}")
        column = getattr(model, counter)
        stmt = (
            update(model)
            .where(_pk(model) == entity_id)
            .values({counter: column + delta})
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundException(_label(kind), entity_id)
        logger.debug(f"[DB] Delta on '{model.__tablename__}' | id={entity_id}, {counter} {delta:+d}")
        self._commit()
        return self.get(kind, entity_id)

    def set_fields(self, kind: EntityKind, entity_id: int, fields: Dict[str, Any], precondition=None):
        model = _model(kind)
        self._check_writable(model, fields)
        stmt = update(model).where(_pk(model) == entity_id)
        if precondition is not None:
            stmt = stmt.where(precondition)
        stmt = stmt.values(fields).execution_options(synchronize_session=False)
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            # Distinguish a missing row from a precondition that did not hold
            self.get(kind, entity_id)
            raise PreconditionFailedException()
        logger.debug(f"[DB] Update on '{model.__tablename__}' | id={entity_id}, fields={sorted(fields)}")
        self._commit()
        return self.get(kind, entity_id)

    def scoped_update(self, kind: EntityKind, fields: Dict[str, Any], *criteria) -> int:
        """Apply ``fields`` to every row matching ``criteria`` in one statement."""
        model = _model(kind)
        self._check_writable(model, fields)
        stmt = update(model).where(*criteria).values(fields).execution_options(synchronize_session=False)
        result = self.db.execute(stmt)
        logger.debug(f"[DB] Scoped update on '{model.__tablename__}' | rows={result.rowcount}, fields={sorted(fields)}")
        self._commit()
        return result.rowcount

    def add_member(self, kind: EntityKind, entity_id: int, user_id: int) -> bool:
        """Insert ``user_id`` into the upvoter set. False if it was already there."""
        table, key = _UPVOTE_SETS[EntityKind(kind)]
        try:
            self.db.execute(insert(table).values({key.key: entity_id, "user_id": user_id}))
        except IntegrityError:
            # Primary key collision: a concurrent request inserted it first
            self.db.rollback()
            return False
        self._commit()
        return True

    def remove_member(self, kind: EntityKind, entity_id: int, user_id: int) -> bool:
        """Delete ``user_id`` from the upvoter set. False if it was not there."""
        table, key = _UPVOTE_SETS[EntityKind(kind)]
        result = self.db.execute(delete(table).where(key == entity_id, table.user_id == user_id))
        self._commit()
        return result.rowcount == 1

    def append_comment(self, solution_id: int, user_id: int, text: str) -> SolutionComment:
        comment = SolutionComment(solution_id=solution_id, user_id=user_id, text=text)
        self.db.add(comment)
        self._commit()
        self.db.refresh(comment)
        return comment

    @contextmanager
    def transaction(self, lock: Optional[Tuple[EntityKind, int]] = None):
        """
        Group writes into one database transaction. ``lock`` names a row
        that is selected FOR UPDATE first, serializing concurrent callers
        scoped to that row.
        """
        if self._in_transaction:
            raise RuntimeError("EntityStore transactions do not nest")
        self._in_transaction = True
        try:
            if lock is not None:
                self.get(*lock, for_update=True)
            yield self
        except Exception:
            self._in_transaction = False
            self.db.rollback()
            raise
        self._in_transaction = False
        self.db.commit()

    # ---------------------------
    # Helpers
    # ---------------------------
    def _commit(self):
        if not self._in_transaction:
            self.db.commit()

    @staticmethod
    def _check_writable(model, fields: Dict[str, Any], allow_immutable: bool = False):
        counters = set(fields) & set(model.__counters__)
        if counters:
            raise ValueError(f"Counters of {model.__name__} only move through apply_delta: {sorted(counters)}")
        if not allow_immutable:
            immutable = set(fields) & set(model.__immutable__)
            if immutable:
                raise ValueError(f"Fields of {model.__name__} are immutable: {sorted(immutable)}")
