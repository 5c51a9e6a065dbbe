"""
Authentication routes and the principal dependencies used by every
mutating endpoint.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth_utils import create_access_token, decode_access_token, hash_password, verify_password
from ..database import get_db
from ..exceptions import AlreadyExistsException, UnauthenticatedException
from ..models.user import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    User,
)
from ..store import EntityKind, EntityStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login", auto_error=False)


def _user_from_token(token: Optional[str], db: Session) -> Optional[User]:
    payload = decode_access_token(token) if token else None
    if payload is None:
        return None
    return db.query(User).filter(User.user_id == payload.get("user_id")).first()


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Decode JWT and fetch the current user; reject the request otherwise."""
    if not token:
        raise UnauthenticatedException()
    user = _user_from_token(token, db)
    if user is None:
        raise UnauthenticatedException("Invalid or expired token")
    return user


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Same as get_current_user, but anonymous readers get None."""
    return _user_from_token(token, db)


def _issue_token(user: User) -> str:
    return create_access_token({"user_id": user.user_id, "username": user.username})


# -------------------------------------------------------
# REGISTER
# -------------------------------------------------------
@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse)
def register_user(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user."""
    email = payload.email.lower()
    username = payload.username

    if db.query(User).filter(func.lower(User.email) == email).first():
        raise AlreadyExistsException("Email already registered")
    if db.query(User).filter(User.username == username).first():
        raise AlreadyExistsException("Username already taken")

    store = EntityStore(db)
    try:
        new_user = store.create(
            EntityKind.USER,
            username=username,
            email=email,
            password_hash=hash_password(payload.password),
        )
    except IntegrityError:
        # Lost a race against an identical registration
        db.rollback()
        raise AlreadyExistsException("Username or email already registered")

    logger.info(f"User registered | user={new_user.user_id}")
    return RegisterResponse(
        user_id=new_user.user_id,
        username=new_user.username,
        email=new_user.email,
        token=_issue_token(new_user),
    )


# -------------------------------------------------------
#  LOGIN
# -------------------------------------------------------
@router.post("/login", response_model=LoginResponse)
def login_user(payload: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate user and issue JWT token."""
    user = db.query(User).filter(func.lower(User.email) == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise UnauthenticatedException("Invalid credentials")

    logger.info(f"User logged in | user={user.user_id}")
    return LoginResponse(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        token=_issue_token(user),
    )


# -------------------------------------------------------
# PROFILE
# -------------------------------------------------------
@router.get("/profile/me", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    """Get the currently logged-in user's profile."""
    return ProfileResponse.model_validate(current_user)


@router.put("/profile/me", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the optional profile fields of the logged-in user."""
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        return ProfileResponse.model_validate(current_user)
    user = EntityStore(db).set_fields(EntityKind.USER, current_user.user_id, fields)
    return ProfileResponse.model_validate(user)
