from typing import Any

from task_api import dispatch


def handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    return dispatch("create_task", event)
