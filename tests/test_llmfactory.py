"""
Tests for llmfactory.py - LangChain model construction.

The LangChain classes are patched so no client is built and no network
access happens.
"""

import inspect
import unittest
from unittest.mock import patch

from askai.llmfactory import LLMFactory


class TestLLMFactory(unittest.TestCase):
    """Test cases for LLMFactory class."""

    def test_create_llm_signature(self):
        params = list(inspect.signature(LLMFactory().create_llm).parameters)
        self.assertEqual(params[:3], ["provider", "model_name", "api_key"])

    def test_available_providers(self):
        self.assertEqual(
            LLMFactory().get_available_providers(), ["mistralai", "gemini-api", "deepinfra"]
        )

    def test_available_models(self):
        models = LLMFactory().get_available_models("MistralAI")
        self.assertIn("codestral-2501", models)

    def test_unknown_provider_raises(self):
        with self.assertRaises(ValueError) as ctx:
            LLMFactory().get_available_models("openai")
        self.assertIn("not supported", str(ctx.exception))

    def test_unknown_model_raises_before_import(self):
        with self.assertRaises(ValueError) as ctx:
            LLMFactory().create_llm("mistralai", "gpt-4", "key")
        self.assertIn("Model gpt-4 not available", str(ctx.exception))

    def test_missing_parameters_raise_type_error(self):
        with self.assertRaises(TypeError):
            LLMFactory().create_llm("deepinfra")

    @patch("langchain_mistralai.ChatMistralAI")
    def test_create_mistral(self, chat_cls):
        llm = LLMFactory().create_llm("mistralai", "codestral-2501", "key", temperature=0.1)

        self.assertIs(llm, chat_cls.return_value)
        chat_cls.assert_called_once_with(
            model="codestral-2501", mistral_api_key="key", temperature=0.1
        )

    @patch("langchain_google_genai.ChatGoogleGenerativeAI")
    def test_create_gemini(self, chat_cls):
        LLMFactory().create_llm("gemini-api", "gemini-2.0-flash", "key")
        chat_cls.assert_called_once_with(model="gemini-2.0-flash", google_api_key="key")

    @patch("langchain_community.llms.DeepInfra")
    def test_create_deepinfra(self, llm_cls):
        LLMFactory().create_llm("deepinfra", "Qwen/QwQ-32B", "token")
        llm_cls.assert_called_once_with(model_id="Qwen/QwQ-32B", deepinfra_api_token="token")


if __name__ == "__main__":
    unittest.main()
