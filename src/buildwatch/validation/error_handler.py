"""
Error handling for background asyncio tasks.

A task that fails while nobody awaits it would otherwise only surface as a
"Task exception was never retrieved" message at garbage collection. The
helpers here forward such failures to the event loop exception handler right
away, which is where the shutdown coordinator listens for uncaught errors.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class TaskErrorContext:
    """Context information for a failed background task."""
    component: str
    operation: str
    timestamp: datetime
    task_name: Optional[str] = None


def supervise_task(task: asyncio.Task, component: str, operation: str) -> asyncio.Task:
    """
    Route an unhandled exception of `task` to the loop exception handler.

    Cancellation is not an error. The task is returned so calls can be
    chained with `create_task`.

    Args:
        task: The task to supervise
        component: Component name used in the log context
        operation: Operation being performed

    Returns:
        The same task
    """

    def _on_done(done: asyncio.Task) -> None:
        if done.cancelled():
            return
        exception = done.exception()
        if exception is None:
            return

        context = TaskErrorContext(
            component=component,
            operation=operation,
            timestamp=datetime.now(),
            task_name=done.get_name(),
        )
        logger.debug(
            f"Task {context.task_name} failed in {context.component}.{context.operation}: "
            f"{type(exception).__name__}: {exception}"
        )
        done.get_loop().call_exception_handler({
            "message": f"Unhandled error in {component} while {operation}",
            "exception": exception,
            "task": done,
        })

    task.add_done_callback(_on_done)
    return task
