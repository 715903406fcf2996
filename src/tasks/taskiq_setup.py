import time
import uuid
from typing import Any

import structlog
from taskiq import InMemoryBroker, TaskiqMessage, TaskiqMiddleware, TaskiqResult
from taskiq.abc.broker import AsyncBroker
from taskiq.serializers import ORJSONSerializer
from taskiq_redis import RedisStreamBroker

from src.constants.env import TASK_BROKER, VALKEY_WORKER_URL
from src.utils.logger import log_error, logger, setup_logging

# Initialize logging for worker processes
setup_logging()


class TaskLoggingMiddleware(TaskiqMiddleware):
    async def startup(self) -> None:
        logger.info("TaskiqMiddleware startup", broker=type(self.broker).__name__)

    async def pre_execute(self, message: TaskiqMessage) -> TaskiqMessage:
        structlog.contextvars.clear_contextvars()

        # Every log line inside the task carries the same worker_trace_id
        task_trace_id = message.task_id or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(
            worker_trace_id=task_trace_id,
            task_name=message.task_name,
        )

        message.labels["task_start_time"] = time.time()

        logger.info(
            "Task started",
            task_args=message.args,
            task_kwargs=message.kwargs,
        )
        return message

    async def post_execute(self, message: TaskiqMessage, result: Any) -> Any:
        start_time = float(message.labels.get("task_start_time", time.time()))
        duration = time.time() - start_time

        logger.info(
            "Task completed successfully",
            duration_seconds=round(duration, 2),
            result_preview=str(result)[:200] if result else None,
        )
        return result

    async def on_error(
        self,
        message: TaskiqMessage,
        result: "TaskiqResult[Any]",
        exception: BaseException,
    ) -> None:
        start_time = float(message.labels.get("task_start_time", time.time()))
        duration = time.time() - start_time

        logger.error(
            "Task failed",
            duration_seconds=round(duration, 2),
            error_message=str(exception),
            error_type=type(exception).__name__,
            result=str(result)[:200] if result else None,
        )


def create_broker(kind: str = TASK_BROKER) -> AsyncBroker:
    """
    memory: tasks run as asyncio tasks inside the API process (also used by tests)
    redis:  tasks are pushed to a Valkey stream and consumed by `taskiq worker`
    """
    try:
        if kind == "redis":
            b: AsyncBroker = RedisStreamBroker(url=VALKEY_WORKER_URL)
            b.serializer = ORJSONSerializer()
        else:
            b = InMemoryBroker()
        b.add_middlewares(TaskLoggingMiddleware())
        logger.info("Task broker initialized", broker=type(b).__name__)
        return b
    except Exception as e:
        log_error(logger, "Broker creation failed", e)
        raise


# 'broker' is the default export used by decorators (@broker.task)
# and by the generic worker entrypoint.
broker = create_broker()
