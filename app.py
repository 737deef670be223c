#!/usr/bin/env python3
import os

import aws_cdk as cdk

from stacks.task_service_stack import TaskServiceStack

DEPLOY_ENVS = {"dev", "qa", "prod"}

app = cdk.App()

deploy_env = (os.getenv("ENV") or "dev").strip().lower()
if deploy_env not in DEPLOY_ENVS:
    raise ValueError(f"ENV must be one of {sorted(DEPLOY_ENVS)}")

stack_name = os.getenv("CDK_STACK_NAME") or f"task-service-api-{deploy_env}"

stack = TaskServiceStack(
    app,
    stack_name,
    description="Task Service API with Lambda, API Gateway, and DynamoDB",
    env=cdk.Environment(
        account=os.getenv("CDK_DEFAULT_ACCOUNT"),
        region=os.getenv("CDK_DEFAULT_REGION", "us-east-1"),
    ),
)
cdk.Tags.of(stack).add("App", "task-service")
cdk.Tags.of(stack).add("Env", deploy_env)

app.synth()
