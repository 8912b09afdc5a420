"""Google Tasks operations on behalf of a user."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from classmate.domains.google.schemas import TaskPatch, TaskWrite
from classmate.domains.google.services.calendar_gateway import client_for, require_value
from classmate.domains.google.services.normalizer import (
    denormalize_task,
    normalize_task,
    task_to_json,
    tasklist_to_json,
)


def list_tasklists(user_id: int) -> List[Dict[str, Any]]:
    data = client_for(user_id).list_tasklists()
    return [tasklist_to_json(item) for item in data.get("items", [])]


def list_tasks(user_id: int, tasklist_id: str) -> List[Dict[str, Any]]:
    params = {"showCompleted": "true", "showHidden": "true", "showDeleted": "false"}
    data = client_for(user_id).list_tasks(tasklist_id, params)
    return [task_to_json(normalize_task(item)) for item in data.get("items", [])]


def create_task(user_id: int, tasklist_id: str, task: TaskWrite) -> Dict[str, Any]:
    created = client_for(user_id).insert_task(tasklist_id, denormalize_task(task))
    return task_to_json(normalize_task(created))


def update_task(
    user_id: int, tasklist_id: str, task_id: Optional[str], patch: TaskPatch
) -> Dict[str, Any]:
    task_id = require_value(task_id, "task_id")
    updated = client_for(user_id).patch_task(tasklist_id, task_id, denormalize_task(patch))
    return task_to_json(normalize_task(updated))


def delete_task(user_id: int, tasklist_id: str, task_id: Optional[str]) -> Dict[str, Any]:
    """Delete a task; one Google no longer has counts as deleted."""
    task_id = require_value(task_id, "task_id")
    client_for(user_id).delete_task(tasklist_id, task_id)
    return {"success": True}
