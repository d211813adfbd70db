from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from core.store import InMemoryStore

router = APIRouter()


class WorkspaceSnapshot(BaseModel):
    tasks: List[Dict[str, Any]] = []
    trackers: List[Dict[str, Any]] = []
    habits: List[Dict[str, Any]] = []
    habit_logs: List[Dict[str, Any]] = []
    user_stats: Optional[Dict[str, Any]] = None


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


@router.put("/{user_id}")
def load_workspace(user_id: str, snapshot: WorkspaceSnapshot, request: Request):
    """Replace the user's workspace with the posted snapshot."""
    store = get_store(request)
    try:
        store.load_snapshot(user_id, snapshot.model_dump())
    except (ValueError, TypeError, AttributeError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid snapshot: {exc}")
    return store.export_snapshot(user_id)


@router.get("/{user_id}")
def get_workspace(user_id: str, request: Request):
    return get_store(request).export_snapshot(user_id)
