import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

import config
from directory import UserDirectory
from errors import DuplicateGroupError, InvalidFieldError, PersistenceError
from groups import GroupManager
from matcher import find_matches, shared_courses
from models import StudyGroup, User
from records import validate_field

logger = logging.getLogger(__name__)


# ----------------------
# Application state
# ----------------------
@dataclass
class StudyState:
    directory: UserDirectory
    groups: GroupManager
    # Every save rewrites a whole file, so requests must not interleave.
    lock: threading.RLock


def load_state(users_file: Union[str, Path], groups_file: Union[str, Path]) -> StudyState:
    directory = UserDirectory(users_file)
    directory.load()
    groups = GroupManager(groups_file)
    unresolved = groups.load(directory.all())
    if unresolved:
        logger.warning("%d group member(s) could not be resolved: %s", len(unresolved), ", ".join(unresolved))
    return StudyState(directory=directory, groups=groups, lock=threading.RLock())


def get_state(request: Request) -> StudyState:
    return request.app.state.study


# ----------------------
# Pydantic models
# ----------------------
def _clean(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} must not be empty")
    try:
        return validate_field(value, label)
    except InvalidFieldError as e:
        raise ValueError(str(e)) from e


class RegisterPayload(BaseModel):
    name: str
    courses: List[str] = []
    preferred_time: str
    learning_style: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        return _clean(v, "name")

    @field_validator("courses")
    @classmethod
    def _check_courses(cls, v: List[str]) -> List[str]:
        return [_clean(c, "course") for c in v if c.strip()]

    @field_validator("preferred_time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        return _clean(v, "preferred time")

    @field_validator("learning_style")
    @classmethod
    def _check_style(cls, v: str) -> str:
        v = _clean(v, "learning style")
        allowed = config.LEARNING_STYLES
        if allowed:
            for option in allowed:
                if option.lower() == v.lower():
                    return option
            raise ValueError(f"learning style must be one of: {', '.join(allowed)}")
        return v


class MembershipPayload(BaseModel):
    group_name: str
    user_name: str

    @field_validator("group_name")
    @classmethod
    def _check_group(cls, v: str) -> str:
        return _clean(v, "group name")

    @field_validator("user_name")
    @classmethod
    def _check_user(cls, v: str) -> str:
        return v.strip()


# ----------------------
# Helpers
# ----------------------
def user_to_dict(user: User) -> dict:
    return {
        "name": user.name,
        "courses": list(user.courses),
        "preferred_time": user.preferred_time,
        "learning_style": user.learning_style,
    }


def group_to_dict(group: StudyGroup) -> dict:
    return {"group_name": group.name, "members": group.member_names()}


def require_user(state: StudyState, name: str) -> User:
    user = state.directory.find_by_name(name)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User '{name}' not found")
    return user


def require_group(state: StudyState, name: str) -> StudyGroup:
    group = state.groups.find_group_by_name(name)
    if group is None:
        raise HTTPException(status_code=404, detail=f"Group '{name}' not found")
    return group


router = APIRouter()


@router.get("/")
def root():
    return {"status": "ok", "service": "StudyMatch server"}


# ----------------------
# Users
# ----------------------
@router.post("/users")
def register(payload: RegisterPayload, state: StudyState = Depends(get_state)):
    user = User(
        name=payload.name,
        courses=tuple(payload.courses),
        preferred_time=payload.preferred_time,
        learning_style=payload.learning_style,
    )
    with state.lock:
        state.directory.register(user)
    return {"status": "registered", "user": user_to_dict(user)}


@router.get("/users")
def list_users(state: StudyState = Depends(get_state)):
    with state.lock:
        return {"users": [user_to_dict(u) for u in state.directory.all()]}


@router.get("/users/{name}")
def get_user(name: str, state: StudyState = Depends(get_state)):
    with state.lock:
        return user_to_dict(require_user(state, name))


@router.get("/users/{name}/matches")
def matches(name: str, state: StudyState = Depends(get_state)):
    with state.lock:
        me = require_user(state, name)
        found = find_matches(me, state.directory.all())
    return {
        "user": me.name,
        "matches": [dict(user_to_dict(m), shared_courses=shared_courses(me, m)) for m in found],
    }


@router.get("/users/{name}/group")
def view_group(name: str, state: StudyState = Depends(get_state)):
    with state.lock:
        user = require_user(state, name)
        group = state.groups.find_group_by_user(user)
        if group is None:
            return {"status": "unassigned", "user": user.name}
        return {"status": "member", "user": user.name, "group": group_to_dict(group)}


# ----------------------
# Groups
# ----------------------
@router.get("/groups")
def list_groups(state: StudyState = Depends(get_state)):
    with state.lock:
        return {"groups": [group_to_dict(g) for g in state.groups.groups]}


@router.get("/groups/{name}")
def get_group(name: str, state: StudyState = Depends(get_state)):
    with state.lock:
        return group_to_dict(require_group(state, name))


@router.post("/groups")
def create_group(payload: MembershipPayload, state: StudyState = Depends(get_state)):
    with state.lock:
        user = require_user(state, payload.user_name)
        previous = state.groups.find_group_by_user(user)
        try:
            group = state.groups.create_group(payload.group_name, user)
        except DuplicateGroupError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {
            "status": "created",
            "left": previous.name if previous else None,
            "group": group_to_dict(group),
        }


@router.post("/groups/join")
def join_group(payload: MembershipPayload, state: StudyState = Depends(get_state)):
    with state.lock:
        user = require_user(state, payload.user_name)
        target = require_group(state, payload.group_name)
        current = state.groups.find_group_by_user(user)
        if current is target:
            return {"status": "already_member", "group": group_to_dict(target)}
        if current is not None:
            raise HTTPException(
                status_code=409,
                detail=f"User '{user.name}' is already in group '{current.name}'; switch groups instead",
            )
        state.groups.join_group(target.name, user)
        return {"status": "joined", "group": group_to_dict(target)}


@router.post("/groups/switch")
def switch_group(payload: MembershipPayload, state: StudyState = Depends(get_state)):
    with state.lock:
        user = require_user(state, payload.user_name)
        previous, joined = state.groups.switch_group(payload.group_name, user)
        if joined is None:
            raise HTTPException(status_code=404, detail=f"Group '{payload.group_name}' not found")
        if previous is joined:
            return {"status": "already_member", "left": None, "group": group_to_dict(joined)}
        return {
            "status": "switched",
            "left": previous.name if previous else None,
            "group": group_to_dict(joined),
        }


@router.post("/groups/leave")
def leave_group(payload: MembershipPayload, state: StudyState = Depends(get_state)):
    with state.lock:
        user = require_user(state, payload.user_name)
        group = require_group(state, payload.group_name)
        if not group.has_member(user):
            return {"status": "not_member", "group": group_to_dict(group)}
        state.groups.leave_group(group.name, user)
        return {"status": "left", "group": group_to_dict(group)}


# ----------------------
# App factory
# ----------------------
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(users_file: Optional[Union[str, Path]] = None,
               groups_file: Optional[Union[str, Path]] = None) -> FastAPI:
    app = FastAPI(title="StudyMatch Server")
    app.state.study = load_state(users_file or config.USERS_FILE, groups_file or config.GROUPS_FILE)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL)
    uvicorn.run("main:create_app", factory=True, host=config.API_HOST, port=config.API_PORT, log_level=config.LOG_LEVEL.lower())
