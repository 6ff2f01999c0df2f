"""Abstract provider interface for command generation."""

from abc import ABC, abstractmethod


class Provider(ABC):
    """
    Base class for natural-language-to-command generation backends.

    Each backend (a CLI tool or an LLM API) implements this interface so the
    daemon and the CLI can treat them uniformly.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the provider (e.g. "gemini")."""

    @abstractmethod
    async def check_installation(self) -> None:
        """
        Verify the backend is usable.

        Raises:
            ExternalToolError: If the backend is absent or not configured
        """

    @abstractmethod
    async def generate_command(self, prompt: str, context: str) -> str:
        """
        Generate a single shell command.

        Args:
            prompt: User's natural language request (e.g., "list git branches")
            context: Execution context string (cwd, shell, OS, project info)

        Returns:
            Post-processed shell command ready for execution

        Raises:
            ExternalToolError: Backend missing or failed
            GenerationQualityError: Backend refused or returned nothing usable
        """
