"""Provider factory: the closed set of supported generation backends."""

from typing import Callable, Dict, List, Optional

from askai.config import Settings
from askai.errors import ConfigurationError
from askai.providers.base import Provider
from askai.providers.cli_provider import ClaudeProvider, CodexProvider, GeminiProvider
from askai.providers.llm_provider import LangChainProvider


def _langchain(provider_name: str) -> Callable[[Settings], Provider]:
    def build(settings: Settings) -> Provider:
        return LangChainProvider(
            provider_name,
            model_name=settings.model_for(provider_name),
            api_key=settings.api_key_for(provider_name),
            temperature=settings.temperature,
            timeout=settings.timeout,
        )

    return build


_BUILDERS: Dict[str, Callable[[Settings], Provider]] = {
    "gemini": lambda settings: GeminiProvider(timeout=settings.timeout),
    "claude": lambda settings: ClaudeProvider(timeout=settings.timeout),
    "codex": lambda settings: CodexProvider(timeout=settings.timeout),
    "mistralai": _langchain("mistralai"),
    "gemini-api": _langchain("gemini-api"),
    "deepinfra": _langchain("deepinfra"),
}


def supported_providers() -> List[str]:
    return list(_BUILDERS)


def is_supported(provider_name: str) -> bool:
    return provider_name.lower() in _BUILDERS


def create_provider(provider_name: str, settings: Optional[Settings] = None) -> Provider:
    """
    Build the provider registered under provider_name (case-insensitive).

    Construction does no I/O; availability is checked on first use.

    Raises:
        ConfigurationError: Unknown provider name
    """
    builder = _BUILDERS.get(provider_name.lower())
    if builder is None:
        raise ConfigurationError(
            f"Unknown AI provider: {provider_name}\n"
            f"Supported providers: {', '.join(supported_providers())}"
        )
    return builder(settings or Settings())
