from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
GENERATED_ID_LENGTH = 22

MAX_ID_LENGTH = 24
MAX_TITLE_LENGTH = 100
MAX_DETAIL_LENGTH = 2000

# Wire names, in the order assignments appear in an update expression.
UPDATABLE_FIELDS = ("title", "detail", "isComplete", "dueAt")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def new_task_id() -> str:
    """Random UUIDv4 rendered as fixed-width (22 char) Base58."""
    n = int.from_bytes(uuid.uuid4().bytes, "big")
    chars: list[str] = []
    while n > 0:
        n, rem = divmod(n, 58)
        chars.append(BASE58_ALPHABET[rem])
    encoded = "".join(reversed(chars))
    return encoded.rjust(GENERATED_ID_LENGTH, BASE58_ALPHABET[0])


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    is_complete: bool = False
    detail: str | None = None
    due_at: str | None = None

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
        }
        if self.detail is not None:
            out["detail"] = self.detail
        out["isComplete"] = self.is_complete
        if self.due_at is not None:
            out["dueAt"] = self.due_at
        return out

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Task":
        detail = item.get("detail")
        due_at = item.get("dueAt")
        return cls(
            id=str(item.get("id") or ""),
            title=str(item.get("title") or ""),
            is_complete=bool(item.get("isComplete", False)),
            detail=str(detail) if detail is not None else None,
            due_at=str(due_at) if due_at is not None else None,
        )


@dataclass(frozen=True)
class CreateTaskRequest:
    title: str
    id: str | None = None
    detail: str | None = None
    is_complete: bool = False
    due_at: str | None = None

    def to_task(self) -> Task:
        return Task(
            id=self.id or new_task_id(),
            title=self.title,
            is_complete=self.is_complete,
            detail=self.detail,
            due_at=self.due_at,
        )


@dataclass(frozen=True)
class UpdateTaskRequest:
    title: str | None = None
    detail: str | None = None
    is_complete: bool | None = None
    due_at: str | None = None

    def changes(self) -> dict[str, Any]:
        """Fields present in the request, keyed by wire name."""
        values = {
            "title": self.title,
            "detail": self.detail,
            "isComplete": self.is_complete,
            "dueAt": self.due_at,
        }
        return {name: values[name] for name in UPDATABLE_FIELDS if values[name] is not None}

    def is_empty(self) -> bool:
        return not self.changes()


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_valid_date(value: str) -> bool:
    if not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _check_string(
    data: dict[str, Any],
    key: str,
    errors: list[str],
    *,
    max_length: int,
    too_long: str,
    required: str | None = None,
) -> str | None:
    if key not in data:
        if required:
            errors.append(required)
        return None
    value = data[key]
    if not isinstance(value, str):
        errors.append(f"Expected string, received {_json_type(value)}")
        return None
    if required and not value:
        errors.append(required)
        return None
    if len(value) > max_length:
        errors.append(too_long)
        return None
    return value


def _check_bool(data: dict[str, Any], key: str, errors: list[str]) -> bool | None:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, bool):
        errors.append(f"Expected boolean, received {_json_type(value)}")
        return None
    return value


def _check_date(data: dict[str, Any], key: str, errors: list[str]) -> str | None:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, str):
        errors.append(f"Expected string, received {_json_type(value)}")
        return None
    if not _is_valid_date(value):
        errors.append("Invalid date")
        return None
    return value


def _check_object(data: Any) -> list[str]:
    if isinstance(data, dict):
        return []
    return [f"Expected object, received {_json_type(data)}"]


def _check_title(data: dict[str, Any], errors: list[str], *, required: bool) -> str | None:
    return _check_string(
        data,
        "title",
        errors,
        max_length=MAX_TITLE_LENGTH,
        too_long=f"Title must be {MAX_TITLE_LENGTH} characters or less",
        required="Title is required" if required else None,
    )


def _check_detail(data: dict[str, Any], errors: list[str]) -> str | None:
    return _check_string(
        data,
        "detail",
        errors,
        max_length=MAX_DETAIL_LENGTH,
        too_long=f"Detail must be {MAX_DETAIL_LENGTH} characters or less",
    )


def _check_id(data: dict[str, Any], errors: list[str], *, required: bool) -> str | None:
    return _check_string(
        data,
        "id",
        errors,
        max_length=MAX_ID_LENGTH,
        too_long=f"ID must be {MAX_ID_LENGTH} characters or less",
        required="ID is required" if required else None,
    )


def validate_create(data: Any) -> tuple[CreateTaskRequest | None, list[str]]:
    errors = _check_object(data)
    if errors:
        return None, errors

    title = _check_title(data, errors, required=True)
    detail = _check_detail(data, errors)
    is_complete = _check_bool(data, "isComplete", errors)
    due_at = _check_date(data, "dueAt", errors)
    task_id = _check_id(data, errors, required=False)
    if errors:
        return None, errors

    assert title is not None
    return (
        CreateTaskRequest(
            title=title,
            id=task_id or None,
            detail=detail,
            is_complete=bool(is_complete),
            due_at=due_at,
        ),
        [],
    )


def validate_update(data: Any) -> tuple[UpdateTaskRequest | None, list[str]]:
    errors = _check_object(data)
    if errors:
        return None, errors

    title = _check_title(data, errors, required=False)
    detail = _check_detail(data, errors)
    is_complete = _check_bool(data, "isComplete", errors)
    due_at = _check_date(data, "dueAt", errors)
    if "title" in data and title == "":
        errors.append("Title is required")
    if errors:
        return None, errors

    return UpdateTaskRequest(title=title, detail=detail, is_complete=is_complete, due_at=due_at), []


def validate_task(data: Any) -> tuple[Task | None, list[str]]:
    """Validate a complete Task document (wire names)."""
    errors = _check_object(data)
    if errors:
        return None, errors

    task_id = _check_id(data, errors, required=True)
    title = _check_title(data, errors, required=True)
    detail = _check_detail(data, errors)
    due_at = _check_date(data, "dueAt", errors)
    is_complete = _check_bool(data, "isComplete", errors)
    if errors:
        return None, errors

    assert task_id is not None and title is not None
    return Task(id=task_id, title=title, is_complete=bool(is_complete), detail=detail, due_at=due_at), []
