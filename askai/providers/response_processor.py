import re
from re import DOTALL

from askai.errors import GenerationQualityError


class ResponseProcessor:
    """
    Cleans raw provider output down to a single shell command.

    Applied uniformly to every provider so that cached commands have the
    same shape regardless of which backend produced them.
    """

    REFUSAL_PATTERNS = (
        "I am unable to",
        "I cannot",
        "I can't",
        "I will try to find",
        "I'm sorry",
        "As an AI",
        "I don't have the ability",
    )

    PREFIXES = (
        "Here is the command:",
        "The command is:",
        "You can use:",
        "Try this:",
        "Run this:",
        "Execute:",
        "Command:",
    )

    CODE_BLOCK_REGEX = re.compile(r"```(?:bash|sh)?\n(.*?)\n```", DOTALL)

    # A first line longer than this is treated as prose, not a command
    LABEL_MAX_LENGTH = 50

    @classmethod
    def process(cls, raw: str) -> str:
        """
        Extract the command from a raw backend response.

        Raises:
            GenerationQualityError: On refusal text or an empty result
        """
        command = raw
        lowered = command.lower()
        for pattern in cls.REFUSAL_PATTERNS:
            if pattern.lower() in lowered:
                raise GenerationQualityError(
                    "AI returned an explanation instead of a command: "
                    f"{raw.strip()}\nPlease try again with a clearer prompt."
                )

        if "```" in command:
            match = cls.CODE_BLOCK_REGEX.search(command)
            if match:
                command = match.group(1)
            else:
                command = (
                    command.replace("```bash", "")
                    .replace("```sh", "")
                    .replace("```", "")
                    .strip()
                )

        for prefix in cls.PREFIXES:
            if command.lower().startswith(prefix.lower()):
                command = command[len(prefix):].strip()

        lines = [line.strip() for line in command.splitlines() if line.strip()]
        if len(lines) > 1:
            first = lines[0]
            if first.endswith(":") or len(first) > cls.LABEL_MAX_LENGTH:
                command = lines[1]
            else:
                command = first

        command = command.strip()
        if not command:
            raise GenerationQualityError("AI returned an empty command. Please try again.")

        return command


def process_response(raw: str) -> str:
    """Module-level shortcut for ResponseProcessor.process."""
    return ResponseProcessor.process(raw)
