"""Admin CRUD for video groups and sub-groups."""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.security import get_current_admin
from app.db.sessions import get_db
from app.models import User, VideoGroup, VideoSubgroup


router = APIRouter(prefix="/admin", tags=["Video Taxonomy"])


class VideoGroupRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    order: int = Field(default=0, ge=0)


class VideoGroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    order: int


class VideoSubgroupRequest(VideoGroupRequest):
    group_id: uuid.UUID


class VideoSubgroupResponse(VideoGroupResponse):
    group_id: str
    group_name: Optional[str]


def _group_response(group: VideoGroup) -> VideoGroupResponse:
    return VideoGroupResponse(id=str(group.id), name=group.name, description=group.description, order=group.order)


def _subgroup_response(sub: VideoSubgroup) -> VideoSubgroupResponse:
    return VideoSubgroupResponse(
        id=str(sub.id),
        group_id=str(sub.group_id),
        group_name=sub.group.name if sub.group else None,
        name=sub.name,
        description=sub.description,
        order=sub.order,
    )


def _get_or_404(db: Session, model, item_id: uuid.UUID, label: str):
    item = db.query(model).filter(model.id == item_id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return item


def _require_group(db: Session, group_id: uuid.UUID) -> None:
    if not db.query(VideoGroup.id).filter(VideoGroup.id == group_id).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Main group is required.")


@router.get("/video-groups", response_model=List[VideoGroupResponse])
def list_groups(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    groups = db.query(VideoGroup).order_by(VideoGroup.order).all()
    return [_group_response(g) for g in groups]


@router.post("/video-groups", response_model=VideoGroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(request: VideoGroupRequest, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    group = VideoGroup(**request.model_dump())
    db.add(group)
    db.commit()
    db.refresh(group)
    return _group_response(group)


@router.put("/video-groups/{group_id}", response_model=VideoGroupResponse)
def update_group(
    group_id: uuid.UUID,
    request: VideoGroupRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    group = _get_or_404(db, VideoGroup, group_id, "Video group")
    for key, value in request.model_dump().items():
        setattr(group, key, value)
    db.commit()
    return _group_response(group)


@router.delete("/video-groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(group_id: uuid.UUID, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    group = _get_or_404(db, VideoGroup, group_id, "Video group")
    db.delete(group)
    db.commit()


@router.get("/video-subgroups", response_model=List[VideoSubgroupResponse])
def list_subgroups(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    subgroups = db.query(VideoSubgroup).order_by(VideoSubgroup.order).all()
    return [_subgroup_response(s) for s in subgroups]


@router.post("/video-subgroups", response_model=VideoSubgroupResponse, status_code=status.HTTP_201_CREATED)
def create_subgroup(request: VideoSubgroupRequest, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    _require_group(db, request.group_id)
    sub = VideoSubgroup(**request.model_dump())
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return _subgroup_response(sub)


@router.put("/video-subgroups/{subgroup_id}", response_model=VideoSubgroupResponse)
def update_subgroup(
    subgroup_id: uuid.UUID,
    request: VideoSubgroupRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    sub = _get_or_404(db, VideoSubgroup, subgroup_id, "Video sub-group")
    _require_group(db, request.group_id)
    for key, value in request.model_dump().items():
        setattr(sub, key, value)
    db.commit()
    db.refresh(sub)
    return _subgroup_response(sub)


@router.delete("/video-subgroups/{subgroup_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subgroup(subgroup_id: uuid.UUID, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    sub = _get_or_404(db, VideoSubgroup, subgroup_id, "Video sub-group")
    db.delete(sub)
    db.commit()
