from askai.executor.planner import ExecutionPlan, ExecutionPlanner, Task
from askai.executor.runner import CommandRunner
from askai.executor.batch import BatchExecutor, BatchResult, TaskResult
from askai.executor.validator import CommandValidator, DangerLevel

__all__ = [
    "ExecutionPlan",
    "ExecutionPlanner",
    "Task",
    "CommandRunner",
    "BatchExecutor",
    "BatchResult",
    "TaskResult",
    "CommandValidator",
    "DangerLevel",
]
