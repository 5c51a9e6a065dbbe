from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import LeaderboardResponse, PublicProfileResponse, User
from ..store import EntityKind, EntityStore

router = APIRouter(prefix="/api/v1", tags=["Users"])


@router.get("/users/{user_id}", response_model=PublicProfileResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """Public profile with reputation counters."""
    return EntityStore(db).get(EntityKind.USER, user_id)


# -------------------------------------------------------
# LEADERBOARD
# -------------------------------------------------------
@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(db: Session = Depends(get_db)):
    """Return the top 10 users ranked by problems solved."""
    users = (
        db.query(User)
        .order_by(User.problems_solved.desc(), User.solutions_provided.desc(), User.user_id)
        .limit(10)
        .all()
    )

    leaderboard = [
        {
            "rank": idx + 1,
            "username": u.username,
            "problems_solved": u.problems_solved,
            "solutions_provided": u.solutions_provided,
        }
        for idx, u in enumerate(users)
    ]
    return LeaderboardResponse(leaderboard=leaderboard)
