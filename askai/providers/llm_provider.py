"""Providers backed by an LLM API through LangChain."""

import asyncio
import logging
from typing import Any, Optional

from askai.errors import ExternalToolError
from askai.llmfactory import LLMFactory
from askai.providers.base import Provider
from askai.providers.prompt_template import build_command_prompt
from askai.providers.response_processor import ResponseProcessor

logger = logging.getLogger(__name__)


class LangChainProvider(Provider):
    """
    Generates commands with a LangChain model built by LLMFactory.

    The model client is created lazily on the first call and then reused,
    which is what makes keeping this provider resident in the daemon cheap.
    """

    def __init__(
        self,
        provider_name: str,
        model_name: str,
        api_key: str,
        temperature: float = 0.2,
        timeout: float = 30.0,
        factory: Optional[LLMFactory] = None,
    ):
        self._name = provider_name.lower()
        self.model_name = model_name
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout
        self.factory = factory or LLMFactory()
        self._llm: Any = None

    @property
    def name(self) -> str:
        return self._name

    async def check_installation(self) -> None:
        if not self.api_key:
            raise ExternalToolError(
                f"Missing API key for provider '{self._name}'. "
                "Add it to ~/.config/askai/config.cfg under [API_KEYS]."
            )

    def _get_llm(self) -> Any:
        if self._llm is None:
            try:
                self._llm = self.factory.create_llm(
                    self._name, self.model_name, self.api_key, temperature=self.temperature
                )
            except ValueError as e:
                raise ExternalToolError(str(e)) from e
            except ImportError as e:
                raise ExternalToolError(f"LangChain backend for '{self._name}' is not installed: {e}") from e
        return self._llm

    async def generate_command(self, prompt: str, context: str) -> str:
        await self.check_installation()
        llm = self._get_llm()

        try:
            response = await asyncio.wait_for(
                llm.ainvoke(build_command_prompt(prompt, context)), timeout=self.timeout or None
            )
        except asyncio.TimeoutError:
            raise ExternalToolError(f"{self._name} did not answer within {self.timeout:g} seconds")
        except Exception as e:
            logger.debug(f"{self._name} request failed", exc_info=True)
            raise ExternalToolError(f"{self._name} request failed: {e}") from e

        # Chat models return a message; plain LLMs return a string
        content = getattr(response, "content", response)
        if isinstance(content, list):
            content = "\n".join(str(part) for part in content)

        return ResponseProcessor.process("" if content is None else str(content).strip())
