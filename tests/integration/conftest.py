import json
import os
import secrets
import string
import subprocess
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Iterator

import boto3
import pytest


def _require_env(name: str) -> str:
    val = os.environ.get(name)
    if not val:
        raise RuntimeError(f"missing required env var: {name}")
    return val


def _run(cmd: str, *, env: dict[str, str] | None = None) -> str:
    return subprocess.check_output(["bash", "-lc", cmd], env=env, text=True).strip()


def _rand_suffix(n: int = 8) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(n))


@dataclass
class StackOutputs:
    stack_name: str
    api_url: str
    tasks_table: str


@dataclass
class ApiResponse:
    status: int
    headers: dict[str, str]
    body: Any


def pytest_collection_modifyitems(config, items):
    if os.environ.get("RUN_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="integration tests require RUN_INTEGRATION=1")
    for item in items:
        if "tests/integration/" in item.nodeid:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def it_env() -> dict[str, str]:
    if os.environ.get("RUN_INTEGRATION") != "1":
        pytest.skip("set RUN_INTEGRATION=1 to run integration tests")

    # The caller provides AWS_PROFILE/AWS_REGION.
    _require_env("AWS_PROFILE")
    _require_env("AWS_REGION")

    env = os.environ.copy()
    env.setdefault("JSII_SILENCE_WARNING_UNTESTED_NODE_VERSION", "1")
    env.setdefault("CDK_DEFAULT_REGION", env["AWS_REGION"])
    return env


@pytest.fixture(scope="session")
def stack_name(it_env: dict[str, str]) -> str:
    prefix = it_env.get("IT_STACK_PREFIX", "TaskServiceIT")
    ts = time.strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{ts}-{_rand_suffix()}"


@pytest.fixture(scope="session")
def deploy_stack(it_env: dict[str, str], stack_name: str) -> Iterator[StackOutputs]:
    env = dict(it_env)
    env["CDK_STACK_NAME"] = stack_name

    _run(f"npx --yes aws-cdk deploy {stack_name} --require-approval never", env=env)

    cfn = boto3.session.Session(profile_name=env["AWS_PROFILE"], region_name=env["AWS_REGION"]).client(
        "cloudformation"
    )
    desc = cfn.describe_stacks(StackName=stack_name)["Stacks"][0]
    outputs = {o["OutputKey"]: o["OutputValue"] for o in desc.get("Outputs", [])}

    yield StackOutputs(
        stack_name=stack_name,
        api_url=outputs["ApiUrl"].rstrip("/"),
        tasks_table=outputs["TasksTableName"],
    )

    if it_env.get("IT_DESTROY", "1") != "1":
        return
    try:
        _run(f"npx --yes aws-cdk destroy {stack_name} --force", env=env)
    except subprocess.CalledProcessError:
        print(f"failed to destroy {stack_name}; remove it manually")


@pytest.fixture(scope="session")
def call_api(deploy_stack: StackOutputs):
    def _call(method: str, path: str, body: Any = None, raw_body: str | None = None) -> ApiResponse:
        data = None
        if raw_body is not None:
            data = raw_body.encode("utf-8")
        elif body is not None:
            data = json.dumps(body).encode("utf-8")
        req = urllib.request.Request(
            f"{deploy_stack.api_url}{path}",
            data=data,
            headers={"Content-Type": "application/json"},
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=30) as resp:
                status = resp.status
                headers = dict(resp.headers)
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            status = e.code
            headers = dict(e.headers)
            raw = e.read().decode("utf-8")
        return ApiResponse(status=status, headers=headers, body=json.loads(raw) if raw else None)

    return _call
