"""Account registration, login and profile routes."""
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import create_access_token, get_current_user, get_password_hash, verify_password
from app.db.sessions import get_db
from app.models import User


router = APIRouter(prefix="/auth", tags=["Authentication"])


class Credentials(BaseModel):
    email: EmailStr
    password: str


class SignUpRequest(Credentials):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class SessionToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    is_admin: bool


class Profile(BaseModel):
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    is_admin: bool
    has_active_subscription: bool
    trial_taken: bool
    created_at: str


def issue_session_token(user: User) -> SessionToken:
    """JWT whose ``sub`` is the user id; lifetime from settings."""
    token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return SessionToken(access_token=token, user_id=str(user.id), email=user.email, is_admin=user.is_admin)


@router.post("/register", response_model=SessionToken, status_code=status.HTTP_201_CREATED)
def sign_up(request: SignUpRequest, db: Session = Depends(get_db)):
    """
    Create a student account.

    New accounts start without a subscription and with the trial unused;
    only the subscription functions change those flags.
    """
    if db.query(User.id).filter(User.email == request.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    account = User(
        email=request.email,
        password_hash=get_password_hash(request.password),
        first_name=request.first_name,
        last_name=request.last_name,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return issue_session_token(account)


@router.post("/login", response_model=SessionToken)
def sign_in(request: Credentials, db: Session = Depends(get_db)):
    account = db.query(User).filter(User.email == request.email).first()
    if account is None or not verify_password(request.password, account.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    return issue_session_token(account)


@router.get("/me", response_model=Profile)
def read_profile(current_user: User = Depends(get_current_user)):
    return Profile(
        id=str(current_user.id),
        email=current_user.email,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        is_admin=current_user.is_admin,
        has_active_subscription=current_user.has_active_subscription,
        trial_taken=current_user.trial_taken,
        created_at=current_user.created_at.isoformat(),
    )
