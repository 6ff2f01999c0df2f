"""Providers that shell out to an installed AI command-line tool."""

import asyncio
import logging
import shutil

from askai.errors import ExternalToolError
from askai.providers.base import Provider
from askai.providers.prompt_template import build_command_prompt
from askai.providers.response_processor import ResponseProcessor

logger = logging.getLogger(__name__)


class CliProvider(Provider):
    """
    Runs `<binary> "<full prompt>"` and post-processes stdout.

    Subclasses only declare the binary name and an install hint.
    """

    provider_name = ""
    cli_command = ""
    install_hint = ""

    def __init__(self, timeout: float = 30.0):
        """
        Args:
            timeout: Seconds to wait for the CLI to answer (0 = no limit)
        """
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.provider_name

    async def check_installation(self) -> None:
        if shutil.which(self.cli_command) is None:
            raise ExternalToolError(
                f"{self.cli_command} CLI is not installed.\n{self.install_hint}"
            )

    async def generate_command(self, prompt: str, context: str) -> str:
        await self.check_installation()

        full_prompt = build_command_prompt(prompt, context)
        logger.debug(f"Invoking {self.cli_command} for prompt: {prompt!r}")
        try:
            process = await asyncio.create_subprocess_exec(
                self.cli_command,
                full_prompt,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalToolError(f"Failed to run {self.cli_command}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout or None
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ExternalToolError(
                f"{self.cli_command} did not answer within {self.timeout:g} seconds"
            )

        if process.returncode != 0:
            error = stderr.decode("utf-8", errors="replace").strip()
            raise ExternalToolError(
                error or f"{self.cli_command} exited with status {process.returncode}"
            )

        raw_output = stdout.decode("utf-8", errors="replace").strip()
        return ResponseProcessor.process(raw_output)


class GeminiProvider(CliProvider):
    provider_name = "gemini"
    cli_command = "gemini"
    install_hint = "Install with: npm install -g @google/gemini-cli"


class ClaudeProvider(CliProvider):
    provider_name = "claude"
    cli_command = "claude"
    install_hint = "Install with: npm install -g @anthropic-ai/claude-code"


class CodexProvider(CliProvider):
    provider_name = "codex"
    cli_command = "codex"
    install_hint = "Install with: npm install -g @openai/codex"
