from __future__ import annotations

import json
from typing import Any

from task_config import DEFAULT_CORS_ALLOW_ORIGIN


def create_response(status_code: int, body: Any, *, origin: str = DEFAULT_CORS_ALLOW_ORIGIN) -> dict[str, Any]:
    return {
        "statusCode": int(status_code),
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": origin,
        },
        "body": json.dumps(body),
    }


def ok(body: Any, *, origin: str = DEFAULT_CORS_ALLOW_ORIGIN) -> dict[str, Any]:
    return create_response(200, body, origin=origin)


def created(body: Any, *, origin: str = DEFAULT_CORS_ALLOW_ORIGIN) -> dict[str, Any]:
    return create_response(201, body, origin=origin)


def no_content(*, origin: str = DEFAULT_CORS_ALLOW_ORIGIN) -> dict[str, Any]:
    return create_response(204, {}, origin=origin)


def bad_request(message: str = "Bad Request", *, origin: str = DEFAULT_CORS_ALLOW_ORIGIN) -> dict[str, Any]:
    return create_response(400, {"message": message}, origin=origin)


def not_found(message: str = "Not Found", *, origin: str = DEFAULT_CORS_ALLOW_ORIGIN) -> dict[str, Any]:
    return create_response(404, {"message": message}, origin=origin)


def internal_server_error(
    message: str = "Internal Server Error", *, origin: str = DEFAULT_CORS_ALLOW_ORIGIN
) -> dict[str, Any]:
    return create_response(500, {"message": message}, origin=origin)
