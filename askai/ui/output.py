"""
Color-coded terminal output.

Everything here writes to stderr so that stdout carries only command
output and can be piped.
"""

import sys
from typing import Optional, TextIO

from askai.executor.batch import BatchResult
from askai.executor.validator import DangerLevel

TEXT_COLOR_MAPPING = {
    "blue": "36;1",
    "yellow": "33;1",
    "green": "32;1",
    "red": "31;1",
    "cyan": "96;1",
    "gray": "90",
}

DANGER_COLORS = {
    DangerLevel.LOW: "green",
    DangerLevel.MEDIUM: "yellow",
    DangerLevel.HIGH: "red",
}


def get_colored_text(text: str, color: str) -> str:
    """
    Wrap text in an ANSI color sequence.

    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )
    return f"\u001b[{TEXT_COLOR_MAPPING[color]}m{text}\u001b[0m"


def get_bolded_text(text: str) -> str:
    return f"\033[1m{text}\033[0m"


class UIManager:
    """Colored status output for askai."""

    def __init__(self, file: Optional[TextIO] = None, color: Optional[bool] = None):
        """
        Args:
            file: Output stream (default: sys.stderr, resolved at print time)
            color: Force colors on/off (default: only when the stream is a TTY)
        """
        self._file = file
        self._color = color

    @property
    def file(self) -> TextIO:
        return self._file or sys.stderr

    def _use_color(self) -> bool:
        if self._color is not None:
            return self._color
        return hasattr(self.file, "isatty") and self.file.isatty()

    def success(self, message: str) -> None:
        self._print_colored(message, "green")

    def error(self, message: str) -> None:
        self._print_colored(message, "red")

    def warning(self, message: str) -> None:
        self._print_colored(message, "yellow")

    def info(self, message: str) -> None:
        self._print_colored(message, "blue")

    def assessed_command(self, command: str, level: DangerLevel) -> None:
        """Show a generated command colored by risk, with a warning line unless it is low."""
        self._print_colored(command, DANGER_COLORS[level])
        if level is not DangerLevel.LOW:
            self._print_colored(f"Risk level: {level.label}", DANGER_COLORS[level])

    def dim(self, text: str) -> None:
        self._print_colored(text, "gray")

    def plain(self, text: str) -> None:
        print(text, file=self.file)

    def _print_colored(self, text: str, color: str, end: str = "\n") -> None:
        if self._use_color():
            text = get_colored_text(text, color)
        print(text, end=end, file=self.file)
        self.file.flush()

    def batch_summary(self, result: BatchResult) -> None:
        """Print totals, success rate and the error of each failed task."""
        self.success("Batch execution complete!")
        self.plain(f"  - Total tasks: {result.total}")
        self.plain(f"  - Success: {result.success_count}")
        self.plain(f"  - Failed: {result.failure_count}")
        self.plain(f"  - Success rate: {result.success_rate():.1f}%")
        self.plain(f"  - Execution time: {result.total_duration_ms:.0f}ms")

        failed = result.failed_tasks()
        if failed:
            self.error("Failed tasks:")
            for task_result in failed:
                self.plain(f"  - {task_result.description}: {task_result.error}")
