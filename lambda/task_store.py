from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import ClientError

from task_config import Config
from task_logging import Logger
from task_model import Task
from task_model import UPDATABLE_FIELDS


def build_update_expression(changes: dict[str, Any]) -> dict[str, Any]:
    """Turn present fields into update_item kwargs; absent fields stay untouched."""
    names = [name for name in UPDATABLE_FIELDS if name in changes]
    if not names:
        raise ValueError("update requires at least one field")

    assignments = [f"#{name} = :{name}" for name in names]
    return {
        "UpdateExpression": "SET " + ", ".join(assignments),
        "ExpressionAttributeNames": {f"#{name}": name for name in names},
        "ExpressionAttributeValues": {f":{name}": changes[name] for name in names},
    }


class TaskStore:
    """Task persistence over a single DynamoDB table keyed by ``id``."""

    def __init__(self, table: Any, logger: Logger) -> None:
        self._table = table
        self._logger = logger

    @classmethod
    def from_config(cls, config: Config, logger: Logger) -> "TaskStore":
        resource = boto3.resource("dynamodb", region_name=config.aws_region)
        logger.info("Initialized AWS DynamoDB client", {"region": config.aws_region})
        return cls(resource.Table(config.tasks_table), logger)

    def put_task(self, task: Task) -> None:
        item = task.to_json()
        self._logger.debug("Saving task to DynamoDB", {"task": item})
        self._table.put_item(Item=item)

    def scan_tasks(self) -> list[Task]:
        out: list[Task] = []
        start_key: dict[str, Any] | None = None
        while True:
            kwargs: dict[str, Any] = {}
            if start_key:
                kwargs["ExclusiveStartKey"] = start_key
            page = self._table.scan(**kwargs)
            for item in page.get("Items", []) or []:
                if isinstance(item, dict):
                    out.append(Task.from_item(item))
            start_key = page.get("LastEvaluatedKey")
            if not start_key:
                break
        self._logger.debug("Scanned tasks table", {"count": len(out)})
        return out

    def get_task(self, task_id: str) -> Task | None:
        resp = self._table.get_item(Key={"id": task_id})
        item = resp.get("Item") if isinstance(resp, dict) else None
        if not item:
            return None
        return Task.from_item(item)

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        """Patch an existing task; None when nothing is stored under the id."""
        kwargs = build_update_expression(changes)
        kwargs["ExpressionAttributeNames"]["#id"] = "id"
        self._logger.debug(
            "Updating task in DynamoDB",
            {"taskId": task_id, "updateExpression": kwargs["UpdateExpression"]},
        )
        try:
            out = self._table.update_item(
                Key={"id": task_id},
                ConditionExpression="attribute_exists(#id)",
                ReturnValues="ALL_NEW",
                **kwargs,
            )
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code") or "")
            if code == "ConditionalCheckFailedException":
                return None
            raise
        return Task.from_item(out.get("Attributes") or {})

    def delete_task(self, task_id: str) -> bool:
        """Delete by id; False when nothing was stored under it."""
        try:
            self._table.delete_item(
                Key={"id": task_id},
                ConditionExpression="attribute_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
            )
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code") or "")
            if code == "ConditionalCheckFailedException":
                return False
            raise
        return True
