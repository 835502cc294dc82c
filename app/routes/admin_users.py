"""Privileged user management functions."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import UpstreamServiceError
from app.core.security import get_current_admin, get_password_hash
from app.db.sessions import get_db
from app.models import User


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Admin Users"])


class CreateUserRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: bool = False


class DeleteUserRequest(BaseModel):
    user_id: Optional[uuid.UUID] = None


class UpdateUserProfileRequest(BaseModel):
    user_id: Optional[uuid.UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: Optional[bool] = None
    has_active_subscription: Optional[bool] = None
    password: Optional[str] = None


def _find_user(db: Session, user_id: uuid.UUID) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


@router.post("/admin-create-user")
def admin_create_user(
    request: CreateUserRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Create a confirmed account with its profile fields."""
    if not request.email or not request.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: email or password.")

    if db.query(User.id).filter(User.email == request.email).first():
        raise UpstreamServiceError("Failed to create user: A user with this email address has already been registered")

    user = User(
        email=request.email,
        password_hash=get_password_hash(request.password),
        first_name=request.first_name or None,
        last_name=request.last_name or None,
        is_admin=request.is_admin,
    )
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error creating user: %s", e)
        raise UpstreamServiceError(f"Failed to create user: {e}") from e

    return {"message": "User created successfully.", "userId": str(user.id)}


@router.post("/admin-delete-user")
def admin_delete_user(
    request: DeleteUserRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Delete a user; subscriptions, bookmarks and feedback go with it."""
    if not request.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required field: user_id.")

    user = _find_user(db, request.user_id)
    if user is None:
        raise UpstreamServiceError("Failed to delete user: User not found")

    db.delete(user)
    db.commit()
    return {"message": "User deleted successfully."}


@router.post("/admin-update-user-profile")
def admin_update_user_profile(
    request: UpdateUserProfileRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Apply only the fields present in the request."""
    if not request.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required field: user_id.")

    user = _find_user(db, request.user_id)
    if user is None:
        raise UpstreamServiceError("Failed to update user profile: User not found")

    changes = request.model_dump(exclude_unset=True, exclude_none=True, exclude={"user_id", "password"})
    for key, value in changes.items():
        setattr(user, key, value)
    if request.password:
        user.password_hash = get_password_hash(request.password)

    db.commit()
    return {"message": "User profile updated successfully."}
