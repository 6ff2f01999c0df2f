"""Batch execution of an ExecutionPlan.

Groups from the planner run strictly in order; tasks inside a group run
concurrently as asyncio tasks. A failing task is recorded and never stops
the rest of the batch.
"""

import asyncio
import copy
import logging
import shlex
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from askai.errors import AskAiError
from askai.executor.planner import ExecutionPlan, Task
from askai.executor.runner import CommandRunner

logger = logging.getLogger(__name__)

NOT_SCHEDULED_ERROR = "Not scheduled: unresolved dependency or dependency cycle"


@dataclass
class TaskResult:
    task_id: int
    description: str
    success: bool
    output: Optional[str] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    @classmethod
    def succeeded(cls, task: Task, output: str, duration_ms: float) -> "TaskResult":
        return cls(task.id, task.description, True, output=output, duration_ms=duration_ms)

    @classmethod
    def failed(cls, task: Task, error: str, duration_ms: float) -> "TaskResult":
        return cls(task.id, task.description, False, error=error, duration_ms=duration_ms)


@dataclass
class BatchResult:
    total: int
    success_count: int
    failure_count: int
    task_results: List[TaskResult] = field(default_factory=list)
    total_duration_ms: float = 0.0

    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    def failed_tasks(self) -> List[TaskResult]:
        return [result for result in self.task_results if not result.success]

    def success_rate(self) -> float:
        """Percentage of successful tasks (0.0 for an empty batch)."""
        if self.total == 0:
            return 0.0
        return self.success_count / self.total * 100.0


def build_shell_command(task: Task) -> str:
    """Prefix the task's command with a cd into its working directory."""
    if task.working_dir:
        return f"cd {shlex.quote(task.working_dir)} && {task.command}"
    return task.command


class BatchExecutor:
    """
    Runs every task of a plan and aggregates the results.

    Args:
        max_parallel: Concurrency cap. Values <= 1 force sequential execution;
            otherwise at most this many tasks of one group run at once.
        runner: Command execution primitive (default: CommandRunner)
        dry_run: Report commands without executing them
        on_task_done: Optional callback invoked with each TaskResult as it finishes
    """

    def __init__(
        self,
        max_parallel: int = 4,
        runner: Optional[CommandRunner] = None,
        dry_run: bool = False,
        on_task_done: Optional[Callable[[TaskResult], None]] = None,
    ):
        self.max_parallel = max_parallel
        if runner is None:
            runner = CommandRunner(dry_run=dry_run)
        elif dry_run:
            # The caller keeps its own runner untouched
            runner = copy.copy(runner).with_dry_run(True)
        self.runner = runner
        self.on_task_done = on_task_done

    async def execute(self, plan: ExecutionPlan) -> BatchResult:
        start = time.perf_counter()
        total = plan.task_count()
        logger.info(f"Executing {total} task(s)")

        results: List[TaskResult] = []

        if plan.can_parallelize and self.max_parallel > 1:
            semaphore = asyncio.Semaphore(self.max_parallel)
            groups = plan.get_parallel_groups()
            for index, group in enumerate(groups, start=1):
                logger.info(f"Group {index}/{len(groups)} ({len(group)} task(s))")
                results.extend(await self._execute_group(group, semaphore))

            for task in plan.unschedulable_tasks():
                results.append(self._report(TaskResult.failed(task, NOT_SCHEDULED_ERROR, 0.0)))
        else:
            for task in plan.tasks:
                results.append(await self._execute_task(task))

        success_count = sum(1 for result in results if result.success)
        return BatchResult(
            total=total,
            success_count=success_count,
            failure_count=len(results) - success_count,
            task_results=results,
            total_duration_ms=(time.perf_counter() - start) * 1000,
        )

    async def _execute_group(
        self, group: List[Task], semaphore: asyncio.Semaphore
    ) -> List[TaskResult]:
        async def bounded(task: Task) -> TaskResult:
            async with semaphore:
                return await self._execute_task(task)

        return list(await asyncio.gather(*(bounded(task) for task in group)))

    async def _execute_task(self, task: Task) -> TaskResult:
        start = time.perf_counter()
        logger.debug(f"Starting {task.description}")
        try:
            output = await self.runner.execute(build_shell_command(task))
        except AskAiError as e:
            result = TaskResult.failed(task, str(e), (time.perf_counter() - start) * 1000)
        except OSError as e:
            result = TaskResult.failed(
                task, f"Failed to launch command: {e}", (time.perf_counter() - start) * 1000
            )
        else:
            result = TaskResult.succeeded(task, output, (time.perf_counter() - start) * 1000)
        return self._report(result)

    def _report(self, result: TaskResult) -> TaskResult:
        if result.success:
            logger.info(f"{result.description} succeeded ({result.duration_ms:.0f}ms)")
        else:
            logger.info(f"{result.description} failed: {result.error}")
        if self.on_task_done is not None:
            self.on_task_done(result)
        return result
