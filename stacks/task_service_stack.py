import os

from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    Stack,
    aws_apigateway as apigw,
    aws_dynamodb as ddb,
    aws_lambda as _lambda,
    aws_logs as logs,
)
from constructs import Construct

LOG_LEVELS = {"debug", "info", "warn", "error"}

# (construct id, lambda module, table grant)
TASK_FUNCTIONS = (
    ("CreateTaskFunction", "create_task", "write"),
    ("ListTasksFunction", "list_tasks", "read"),
    ("GetTaskFunction", "get_task", "read"),
    ("UpdateTaskFunction", "update_task", "read_write"),
    ("DeleteTaskFunction", "delete_task", "write"),
)


class TaskServiceStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        data_retention_mode = os.getenv("DATA_RETENTION_MODE", "destroy").strip().lower()
        if data_retention_mode not in {"destroy", "retain"}:
            raise ValueError(
                "DATA_RETENTION_MODE must be 'destroy' or 'retain' (case-insensitive)"
            )
        # Dev-first default: delete the table on teardown. Set DATA_RETENTION_MODE=retain for production.
        stateful_removal_policy = (
            RemovalPolicy.DESTROY
            if data_retention_mode == "destroy"
            else RemovalPolicy.RETAIN
        )

        cors_allow_origin = (os.getenv("CORS_ALLOW_ORIGIN") or "*").strip()
        log_level = (os.getenv("LOG_LEVEL") or "info").strip().lower()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(LOG_LEVELS)}")
        enable_logging = (os.getenv("ENABLE_LOGGING") or "true").strip().lower()
        if enable_logging not in {"true", "false"}:
            raise ValueError("ENABLE_LOGGING must be 'true' or 'false'")

        tasks_table = ddb.Table(
            self,
            "TasksTable",
            partition_key=ddb.Attribute(name="id", type=ddb.AttributeType.STRING),
            billing_mode=ddb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=True,
            removal_policy=stateful_removal_policy,
        )

        function_env = {
            "TASKS_TABLE": tasks_table.table_name,
            "CORS_ALLOW_ORIGIN": cors_allow_origin,
            "ENABLE_LOGGING": enable_logging,
            "LOG_LEVEL": log_level,
        }

        functions: dict[str, _lambda.Function] = {}
        for construct_name, module, grant in TASK_FUNCTIONS:
            log_group = logs.LogGroup(
                self,
                f"{construct_name}LogGroup",
                retention=logs.RetentionDays.ONE_WEEK,
                removal_policy=stateful_removal_policy,
            )
            fn = _lambda.Function(
                self,
                construct_name,
                runtime=_lambda.Runtime.PYTHON_3_12,
                handler=f"{module}.handler",
                code=_lambda.Code.from_asset("lambda"),
                memory_size=1024,
                timeout=Duration.seconds(6),
                log_group=log_group,
                environment=function_env,
            )
            if grant == "read":
                tasks_table.grant_read_data(fn)
            elif grant == "write":
                tasks_table.grant_write_data(fn)
            else:
                tasks_table.grant_read_write_data(fn)
            functions[module] = fn

        allow_origins = (
            apigw.Cors.ALL_ORIGINS if cors_allow_origin == "*" else [cors_allow_origin]
        )
        rest_api = apigw.RestApi(
            self,
            "TasksApi",
            rest_api_name="Task Service API",
            description="API for managing tasks",
            deploy_options=apigw.StageOptions(stage_name="api"),
        )

        tasks = rest_api.root.add_resource("tasks")
        task = tasks.add_resource("{taskId}")
        for resource in (tasks, task):
            resource.add_cors_preflight(
                allow_origins=allow_origins,
                allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                allow_headers=apigw.Cors.DEFAULT_HEADERS,
                status_code=200,
            )

        tasks.add_method("POST", apigw.LambdaIntegration(functions["create_task"]))
        tasks.add_method("GET", apigw.LambdaIntegration(functions["list_tasks"]))
        task.add_method("GET", apigw.LambdaIntegration(functions["get_task"]))
        task.add_method("PUT", apigw.LambdaIntegration(functions["update_task"]))
        task.add_method("DELETE", apigw.LambdaIntegration(functions["delete_task"]))

        CfnOutput(
            self,
            "ApiUrl",
            value=rest_api.url,
            description="URL for the Task Service API",
        )
        CfnOutput(
            self,
            "TasksTableName",
            value=tasks_table.table_name,
            description="Name of the Tasks DynamoDB table",
        )
