from typing import Any, Dict, List


class LLMFactory:
    """
    Factory class to create LangChain LLM instances based on provider and model.
    Supports MistralAI, Gemini (Google Generative AI) and DeepInfra.

    Provider SDKs are imported on first use so that CLI-only users never pay
    for the LangChain import.
    """

    def __init__(self):
        """Initialize the factory with available providers and models"""
        self.providers: Dict[str, Dict[str, List[str]]] = {
            "mistralai": {"models": ["codestral-2501", "mistral-small-2503", "mistral-small-latest"]},
            "gemini-api": {"models": ["gemini-2.0-flash", "gemini-2.5-flash"]},
            "deepinfra": {
                "models": [
                    "Qwen/QwQ-32B",
                    "Qwen/Qwen2.5-Coder-32B-Instruct",
                    "mistralai/Mistral-Small-24B-Instruct-2501",
                ]
            },
        }

    def create_llm(self, provider: str, model_name: str, api_key: str, **kwargs) -> Any:
        """
        Create and return an LLM instance based on provider and model

        Args:
            provider: The LLM provider (mistralai, gemini-api, deepinfra)
            model_name: The model name
            api_key: API key for the provider
            **kwargs: Additional arguments for the LLM (temperature, ...)

        Returns:
            A LangChain chat model or LLM

        Raises:
            ValueError: Unknown provider or model
        """
        provider = provider.lower()
        models = self.get_available_models(provider)
        if model_name not in models:
            raise ValueError(
                f"Model {model_name} not available for {provider}. Available models: {', '.join(models)}"
            )

        if provider == "mistralai":
            from langchain_mistralai import ChatMistralAI

            return ChatMistralAI(model=model_name, mistral_api_key=api_key, **kwargs)

        if provider == "gemini-api":
            from langchain_google_genai import ChatGoogleGenerativeAI

            return ChatGoogleGenerativeAI(model=model_name, google_api_key=api_key, **kwargs)

        from langchain_community.llms import DeepInfra

        return DeepInfra(model_id=model_name, deepinfra_api_token=api_key, **kwargs)

    def get_available_providers(self) -> List[str]:
        """Return a list of available LLM providers"""
        return list(self.providers.keys())

    def get_available_models(self, provider: str) -> List[str]:
        """Return a list of available models for a given provider"""
        provider = provider.lower()
        if provider not in self.providers:
            raise ValueError(
                f"Provider {provider} not supported. Available providers: {', '.join(self.providers.keys())}"
            )
        return self.providers[provider]["models"]
