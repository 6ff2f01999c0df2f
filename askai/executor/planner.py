"""Execution plans: tasks, dependency edges and the parallel schedule."""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Set

from askai.errors import CycleDetectedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Task:
    """One shell command, optionally bound to a working directory."""
    id: int
    command: str
    working_dir: Optional[str] = None
    description: str = ""

    def __post_init__(self):
        if not self.description:
            object.__setattr__(self, "description", f"Task {self.id}")

    def with_dir(self, working_dir: str) -> "Task":
        return replace(self, working_dir=working_dir)

    def with_description(self, description: str) -> "Task":
        return replace(self, description=description)


@dataclass
class ExecutionPlan:
    """
    A set of tasks plus "task_id depends on task_ids" edges.

    Dependencies are flat and are not validated on insertion; use
    validate() to reject plans that cannot be fully scheduled.
    """
    tasks: List[Task] = field(default_factory=list)
    can_parallelize: bool = True
    dependencies: Dict[int, List[int]] = field(default_factory=dict)

    def add_task(self, task: Task) -> None:
        self.tasks.append(task)

    def add_dependency(self, task_id: int, depends_on: int) -> None:
        """Record that task_id must run after depends_on."""
        self.dependencies.setdefault(task_id, []).append(depends_on)

    def disable_parallelization(self) -> None:
        self.can_parallelize = False

    def task_count(self) -> int:
        return len(self.tasks)

    def get_parallel_groups(self) -> List[List[Task]]:
        """
        Split tasks into groups that can each run concurrently.

        Groups must run in order. Every task lands in a later group than all
        of its dependencies. When parallelization is disabled (or there are
        no tasks) a single group with every task is returned.

        If some tasks can never become ready (a cycle, or a dependency on an
        id that is not in the plan) the schedule stops at the last group that
        made progress and those tasks are left out.
        """
        if not self.can_parallelize or not self.tasks:
            return [list(self.tasks)]

        groups: List[List[Task]] = []
        placed: Set[int] = set()

        while len(placed) < len(self.tasks):
            current_group = [
                task
                for task in self.tasks
                if task.id not in placed
                and all(dep in placed for dep in self.dependencies.get(task.id, []))
            ]
            if not current_group:
                stuck = sorted(t.id for t in self.tasks if t.id not in placed)
                logger.warning(f"Dependency resolution stalled; tasks {stuck} not scheduled")
                break

            placed.update(task.id for task in current_group)
            groups.append(current_group)

        return groups

    def unschedulable_tasks(self) -> List[Task]:
        """Tasks that get_parallel_groups() leaves out of the schedule."""
        if not self.can_parallelize:
            return []
        scheduled = {task.id for group in self.get_parallel_groups() for task in group}
        return [task for task in self.tasks if task.id not in scheduled]

    def validate(self) -> None:
        """Raise CycleDetectedError if any task cannot be scheduled."""
        known_ids = {task.id for task in self.tasks}
        unknown = {
            dep
            for deps in self.dependencies.values()
            for dep in deps
            if dep not in known_ids
        }
        stuck = [task.id for task in self.unschedulable_tasks()]
        if stuck:
            raise CycleDetectedError(stuck, unknown)


class ExecutionPlanner:
    """Convenience constructors for common plan shapes."""

    @staticmethod
    def create_single(command: str) -> ExecutionPlan:
        return ExecutionPlan([Task(0, command)])

    @staticmethod
    def create_parallel(commands: List[str]) -> ExecutionPlan:
        """Independent tasks, free to run concurrently."""
        return ExecutionPlan([Task(i, command) for i, command in enumerate(commands)])

    @staticmethod
    def create_sequential(commands: List[str]) -> ExecutionPlan:
        plan = ExecutionPlanner.create_parallel(commands)
        plan.disable_parallelization()
        return plan

    @staticmethod
    def create_batch(dirs: List[str], command: str) -> ExecutionPlan:
        """The same command fanned out across many working directories."""
        tasks = []
        for i, directory in enumerate(dirs):
            dir_name = os.path.basename(os.path.normpath(directory)) or directory
            tasks.append(
                Task(i, command)
                .with_dir(directory)
                .with_description(f"{command} in {dir_name}")
            )
        return ExecutionPlan(tasks)
