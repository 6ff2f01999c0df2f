"""Seed the response cache with frequently requested commands."""

from typing import Iterable, Tuple

from askai.cache.response import ResponseCache

COMMON_PROMPTS: Tuple[Tuple[str, str], ...] = (
    ("current time", "date"),
    ("show current time", "date"),
    ("git status", "git status"),
    ("show git status", "git status"),
    ("list files", "ls -la"),
    ("list all files", "ls -la"),
    ("current directory", "pwd"),
    ("git pull", "git pull origin main"),
    ("git push", "git push origin main"),
    ("list docker containers", "docker ps"),
    ("npm install", "npm install"),
    ("cargo build", "cargo build"),
    ("run tests", "cargo test"),
)


def prewarm(
    cache: ResponseCache,
    context: str,
    prompts: Iterable[Tuple[str, str]] = COMMON_PROMPTS,
) -> int:
    """
    Insert each (prompt, command) pair that is not already cached.

    Returns the number of entries added; a second call with the same
    context adds nothing.
    """
    count = 0
    for prompt, command in prompts:
        if cache.get(prompt, context) is None:
            cache.set(prompt, context, command)
            count += 1
    return count
