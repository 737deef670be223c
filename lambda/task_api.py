from __future__ import annotations

import base64
import json
from typing import Any, Callable

import task_response as response
from task_config import Config
from task_config import ConfigError
from task_config import load_config
from task_logging import Logger
from task_model import validate_create
from task_model import validate_task
from task_model import validate_update
from task_store import TaskStore

INVALID_JSON_MESSAGE = "Invalid request format: The request body must be valid JSON"
MISCONFIGURED_MESSAGE = "Server misconfigured"

OPERATIONS = ("create_task", "list_tasks", "get_task", "update_task", "delete_task")


class TaskValidationError(Exception):
    def __init__(self, message: str, *, reason: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.details = details


class TaskNotFoundError(Exception):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with ID {task_id} not found")
        self.task_id = task_id


def _request_id(event: dict[str, Any]) -> str:
    rc = event.get("requestContext") or {}
    if not isinstance(rc, dict):
        return ""
    return str(rc.get("requestId") or "")


def _parse_json_body(event: dict[str, Any]) -> Any:
    raw = event.get("body")
    if not isinstance(raw, str):
        raise TaskValidationError(INVALID_JSON_MESSAGE, reason="Invalid request format", details="missing body")
    if bool(event.get("isBase64Encoded")):
        try:
            raw = base64.b64decode(raw.encode("utf-8"), validate=True).decode("utf-8")
        except Exception:
            raise TaskValidationError(
                INVALID_JSON_MESSAGE, reason="Invalid request format", details="base64 decode failed"
            ) from None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise TaskValidationError(INVALID_JSON_MESSAGE, reason="Invalid request format", details=str(e)) from None


def _path_task_id(event: dict[str, Any], message: str) -> str:
    params = event.get("pathParameters") or {}
    task_id = params.get("taskId") if isinstance(params, dict) else None
    if not isinstance(task_id, str) or not task_id:
        raise TaskValidationError(message, reason="Invalid path parameters")
    return task_id


class TaskApi:
    """The five task operations, each mapping an API Gateway event to a response."""

    def __init__(self, *, config: Config, logger: Logger, store: TaskStore) -> None:
        self._config = config
        self._logger = logger
        self._store = store

    @property
    def _origin(self) -> str:
        return self._config.cors_allow_origin

    def _invoke(
        self,
        event: dict[str, Any],
        action: Callable[[dict[str, Any], dict[str, Any]], dict[str, Any]],
        *,
        start_message: str,
        failure_log: str,
        failure_message: str,
    ) -> dict[str, Any]:
        log_ctx: dict[str, Any] = {"requestId": _request_id(event)}
        self._logger.info(start_message, log_ctx)
        self._logger.debug("Received event", {**log_ctx, "event": event})
        try:
            return action(event, log_ctx)
        except TaskValidationError as e:
            self._logger.warn(e.reason, {**log_ctx, "errors": e.details or e.message})
            return response.bad_request(e.message, origin=self._origin)
        except TaskNotFoundError as e:
            self._logger.info("Task not found", {**log_ctx, "taskId": e.task_id})
            return response.not_found(str(e), origin=self._origin)
        except Exception as e:
            self._logger.error(failure_log, e, log_ctx)
            return response.internal_server_error(failure_message, origin=self._origin)

    def create_task(self, event: dict[str, Any]) -> dict[str, Any]:
        return self._invoke(
            event,
            self._create,
            start_message="Processing create task request",
            failure_log="Failed to create task",
            failure_message="An unexpected error occurred while creating the task",
        )

    def _create(self, event: dict[str, Any], log_ctx: dict[str, Any]) -> dict[str, Any]:
        data = _parse_json_body(event)
        request, errors = validate_create(data)
        if errors:
            joined = ", ".join(errors)
            raise TaskValidationError(f"Invalid task data: {joined}", reason="Invalid task data", details=joined)
        assert request is not None

        # Re-check the assembled record so nothing out of bounds is persisted.
        task, errors = validate_task(request.to_task().to_json())
        if errors:
            joined = ", ".join(errors)
            raise TaskValidationError(f"Invalid task data: {joined}", reason="Invalid task data", details=joined)
        assert task is not None

        log_ctx["taskId"] = task.id
        self._logger.debug("Creating task", {**log_ctx, "taskData": task.to_json()})
        self._store.put_task(task)
        self._logger.info("Task created successfully", log_ctx)
        return response.created(task.to_json(), origin=self._origin)

    def list_tasks(self, event: dict[str, Any]) -> dict[str, Any]:
        return self._invoke(
            event,
            self._list,
            start_message="Processing list tasks request",
            failure_log="Failed to list tasks",
            failure_message="An unexpected error occurred while retrieving tasks",
        )

    def _list(self, event: dict[str, Any], log_ctx: dict[str, Any]) -> dict[str, Any]:
        tasks = self._store.scan_tasks()
        self._logger.info("Tasks retrieved successfully", {**log_ctx, "count": len(tasks)})
        return response.ok([t.to_json() for t in tasks], origin=self._origin)

    def get_task(self, event: dict[str, Any]) -> dict[str, Any]:
        return self._invoke(
            event,
            self._get,
            start_message="Processing get task request",
            failure_log="Failed to get task",
            failure_message="An unexpected error occurred while retrieving the task",
        )

    def _get(self, event: dict[str, Any], log_ctx: dict[str, Any]) -> dict[str, Any]:
        task_id = _path_task_id(event, "Invalid request: taskId is required")
        log_ctx["taskId"] = task_id
        task = self._store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        self._logger.info("Task retrieved successfully", log_ctx)
        return response.ok(task.to_json(), origin=self._origin)

    def update_task(self, event: dict[str, Any]) -> dict[str, Any]:
        return self._invoke(
            event,
            self._update,
            start_message="Processing update task request",
            failure_log="Failed to update task",
            failure_message="An unexpected error occurred while updating the task",
        )

    def _update(self, event: dict[str, Any], log_ctx: dict[str, Any]) -> dict[str, Any]:
        task_id = _path_task_id(event, "Invalid request: taskId path variable is required")
        log_ctx["taskId"] = task_id
        data = _parse_json_body(event)
        request, errors = validate_update(data)
        if errors:
            joined = ", ".join(errors)
            raise TaskValidationError(
                f"Invalid update task data: {joined}", reason="Invalid update task data", details=joined
            )
        assert request is not None

        # Existence is checked before the empty-update rule.
        if self._store.get_task(task_id) is None:
            raise TaskNotFoundError(task_id)
        if request.is_empty():
            raise TaskValidationError(
                "At least one field must be provided for update", reason="No update fields provided"
            )

        changes = request.changes()
        self._logger.debug("Updating task", {**log_ctx, "updateData": changes})
        updated = self._store.update_task(task_id, changes)
        if updated is None:
            # Deleted between the read and the conditional write.
            raise TaskNotFoundError(task_id)
        self._logger.info("Task updated successfully", log_ctx)
        return response.ok(updated.to_json(), origin=self._origin)

    def delete_task(self, event: dict[str, Any]) -> dict[str, Any]:
        return self._invoke(
            event,
            self._delete,
            start_message="Processing delete task request",
            failure_log="Failed to delete task",
            failure_message="An unexpected error occurred while deleting the task",
        )

    def _delete(self, event: dict[str, Any], log_ctx: dict[str, Any]) -> dict[str, Any]:
        task_id = _path_task_id(event, "Invalid request: taskId is required")
        log_ctx["taskId"] = task_id
        if not self._store.delete_task(task_id):
            raise TaskNotFoundError(task_id)
        self._logger.info("Task deleted successfully", log_ctx)
        return response.no_content(origin=self._origin)


_default_api: TaskApi | None = None


def default_api() -> TaskApi:
    """Per-process TaskApi wired from the environment; built on first use."""
    global _default_api
    if _default_api is None:
        config = load_config()
        logger = Logger.from_config(config)
        _default_api = TaskApi(config=config, logger=logger, store=TaskStore.from_config(config, logger))
    return _default_api


def dispatch(operation: str, event: dict[str, Any]) -> dict[str, Any]:
    if operation not in OPERATIONS:
        raise ValueError(f"unknown task operation: {operation}")
    try:
        api = default_api()
    except ConfigError as e:
        Logger().error("Task service misconfigured", e, {"requestId": _request_id(event)})
        return response.internal_server_error(MISCONFIGURED_MESSAGE)
    return getattr(api, operation)(event)
