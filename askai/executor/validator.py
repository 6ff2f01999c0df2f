"""
Safety check for generated commands before they run.

Plain substring matching on the lowercased, whitespace-collapsed command.
Forbidden patterns are refused outright; risky keywords only raise the
danger level shown with the confirmation prompt.
"""

import re
from enum import Enum

from askai.errors import DangerousCommandError


class DangerLevel(Enum):
    """How risky a command looks to the validator."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return {
            DangerLevel.LOW: "Low - [*] Safe",
            DangerLevel.MEDIUM: "Medium - [!] Caution",
            DangerLevel.HIGH: "High - [!!!] Very dangerous",
        }[self]


# rm -rf on / itself (or /*), not on paths below it
_ROOT_WIPE = re.compile(r"\brm\s+-[a-z]*(?:rf|fr)[a-z]*\s+(?:--no-preserve-root\s+)?/\*?(?=$|[\s;&|])")


class CommandValidator:
    """Classifies commands and refuses the ones that can wreck a machine."""

    FORBIDDEN_PATTERNS = (
        "dd if=/dev/zero",
        "dd if=/dev/random",
        "mkfs",
        "> /dev/sd",
        "mv /* ",
        ":(){ :|:& };:",  # Fork bomb
    )

    HIGH_RISK_KEYWORDS = (
        "rm -rf",
        "rm -fr",
        "dd if=",
        "shred",
        "chmod -r 777",
        "> /dev/",
    )

    MEDIUM_RISK_KEYWORDS = (
        "sudo",
        "rm -r",
        "chown -r",
    )

    def validate(self, command: str) -> DangerLevel:
        """
        Assess a command.

        Returns:
            The DangerLevel of a command that may run after confirmation

        Raises:
            DangerousCommandError: The command matches a forbidden pattern
        """
        normalized = " ".join(command.lower().split())

        if _ROOT_WIPE.search(normalized):
            raise DangerousCommandError("rm -rf /")
        for pattern in self.FORBIDDEN_PATTERNS:
            if pattern in normalized:
                raise DangerousCommandError(pattern)

        if any(keyword in normalized for keyword in self.HIGH_RISK_KEYWORDS):
            return DangerLevel.HIGH
        if any(keyword in normalized for keyword in self.MEDIUM_RISK_KEYWORDS):
            return DangerLevel.MEDIUM
        return DangerLevel.LOW
