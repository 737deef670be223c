from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_REGION = "us-east-1"
DEFAULT_CORS_ALLOW_ORIGIN = "*"
DEFAULT_LOG_LEVEL = "debug"
LOG_LEVELS = ("debug", "info", "warn", "error")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Config:
    tasks_table: str
    aws_region: str = DEFAULT_REGION
    cors_allow_origin: str = DEFAULT_CORS_ALLOW_ORIGIN
    enable_logging: bool = True
    log_level: str = DEFAULT_LOG_LEVEL


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a validated Config from environment variables.

    All problems are reported at once so a misconfigured function fails with
    the complete list instead of one variable per deploy.
    """
    env = os.environ if environ is None else environ
    problems: list[str] = []

    tasks_table = str(env.get("TASKS_TABLE") or "").strip()
    if not tasks_table:
        problems.append("TASKS_TABLE: TASKS_TABLE environment variable is required")

    aws_region = str(env.get("AWS_REGION") or "").strip() or DEFAULT_REGION
    cors_allow_origin = str(env.get("CORS_ALLOW_ORIGIN") or "").strip() or DEFAULT_CORS_ALLOW_ORIGIN

    raw_enable = str(env.get("ENABLE_LOGGING") or "true").strip().lower()
    if raw_enable not in {"true", "false"}:
        problems.append("ENABLE_LOGGING: must be 'true' or 'false'")

    log_level = str(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().lower()
    if log_level not in LOG_LEVELS:
        problems.append(f"LOG_LEVEL: must be one of {', '.join(LOG_LEVELS)}")

    if problems:
        raise ConfigError("Configuration validation failed:\n" + "\n".join(problems))

    return Config(
        tasks_table=tasks_table,
        aws_region=aws_region,
        cors_allow_origin=cors_allow_origin,
        enable_logging=raw_enable == "true",
        log_level=log_level,
    )
