"""
Tests for the provider layer: factory, CLI-backed and LangChain-backed providers.
"""

import asyncio
import os
import shutil
import stat
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from askai.config import Settings
from askai.errors import ConfigurationError, ExternalToolError, GenerationQualityError
from askai.providers.cli_provider import ClaudeProvider, CliProvider, CodexProvider, GeminiProvider
from askai.providers.factory import create_provider, is_supported, supported_providers
from askai.providers.llm_provider import LangChainProvider


class TestProviderFactory(unittest.TestCase):

    def test_supported_providers(self):
        self.assertEqual(
            sorted(supported_providers()),
            ["claude", "codex", "deepinfra", "gemini", "gemini-api", "mistralai"],
        )

    def test_lookup_is_case_insensitive(self):
        self.assertIsInstance(create_provider("GEMINI"), GeminiProvider)
        self.assertIsInstance(create_provider("Claude"), ClaudeProvider)
        self.assertIsInstance(create_provider("codex"), CodexProvider)
        self.assertTrue(is_supported("MistralAI"))

    def test_unknown_provider(self):
        with self.assertRaises(ConfigurationError) as ctx:
            create_provider("openai")
        self.assertIn("Unknown AI provider: openai", str(ctx.exception))
        self.assertIn("Supported providers", str(ctx.exception))
        self.assertFalse(is_supported("openai"))

    def test_langchain_provider_uses_settings(self):
        settings = Settings(
            api_keys={"mistralai": "secret"},
            models={"mistralai": "mistral-small-latest"},
            temperature=0.5,
        )
        provider = create_provider("mistralai", settings)

        self.assertIsInstance(provider, LangChainProvider)
        self.assertEqual(provider.name, "mistralai")
        self.assertEqual(provider.api_key, "secret")
        self.assertEqual(provider.model_name, "mistral-small-latest")
        self.assertEqual(provider.temperature, 0.5)

    def test_timeout_comes_from_settings(self):
        settings = Settings(timeout=12, api_keys={"mistralai": "secret"})
        self.assertEqual(create_provider("claude", settings).timeout, 12)
        self.assertEqual(create_provider("mistralai", settings).timeout, 12)


class TestCliProvider(unittest.IsolatedAsyncioTestCase):
    """Runs small shell scripts standing in for the real AI CLIs."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _provider_for(self, script_body: str, timeout: float = 30.0) -> CliProvider:
        script = Path(self.temp_dir) / "fake-ai"
        script.write_text("#!/bin/sh\n" + script_body)
        script.chmod(script.stat().st_mode | stat.S_IXUSR)

        class ScriptProvider(CliProvider):
            provider_name = "script"
            cli_command = str(script)
            install_hint = "Install with: nothing"

        return ScriptProvider(timeout=timeout)

    async def test_output_is_post_processed(self):
        provider = self._provider_for("printf '```bash\\nls -la\\n```\\n'\n")
        self.assertEqual(await provider.generate_command("list files", "ctx"), "ls -la")

    async def test_prompt_is_a_single_argument(self):
        provider = self._provider_for('echo "$#"\n')
        self.assertEqual(await provider.generate_command("list all files", "ctx"), "1")

    async def test_prompt_contains_request_and_context(self):
        provider = self._provider_for('case "$1" in *"Request: list files"*"Command:") echo ok;; *) echo bad;; esac\n')
        self.assertEqual(await provider.generate_command("list files", "Shell: zsh"), "ok")

    async def test_non_zero_exit_uses_stderr(self):
        provider = self._provider_for("echo 'quota exceeded' >&2\nexit 2\n")
        with self.assertRaises(ExternalToolError) as ctx:
            await provider.generate_command("x", "ctx")
        self.assertEqual(str(ctx.exception), "quota exceeded")

    async def test_slow_cli_times_out(self):
        provider = self._provider_for("exec sleep 5\n", timeout=0.2)
        with self.assertRaises(ExternalToolError) as ctx:
            await provider.generate_command("x", "ctx")
        self.assertIn("did not answer within 0.2 seconds", str(ctx.exception))

    async def test_refusal_is_a_quality_error(self):
        provider = self._provider_for("echo \"I'm sorry, I cannot do that\"\n")
        with self.assertRaises(GenerationQualityError):
            await provider.generate_command("x", "ctx")

    async def test_missing_binary(self):
        with patch("askai.providers.cli_provider.shutil.which", return_value=None):
            with self.assertRaises(ExternalToolError) as ctx:
                await GeminiProvider().check_installation()
        self.assertIn("gemini CLI is not installed", str(ctx.exception))
        self.assertIn("npm install -g @google/gemini-cli", str(ctx.exception))

    def test_names(self):
        self.assertEqual(GeminiProvider().name, "gemini")
        self.assertEqual(ClaudeProvider().name, "claude")
        self.assertEqual(CodexProvider().name, "codex")


class FakeLLM:

    def __init__(self, reply=None, error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts = []

    async def ainvoke(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeFactory:

    def __init__(self, llm=None, error=None):
        self.llm = llm
        self.error = error
        self.created = []

    def create_llm(self, provider, model_name, api_key, **kwargs):
        self.created.append((provider, model_name, api_key, kwargs))
        if self.error is not None:
            raise self.error
        return self.llm


class TestLangChainProvider(unittest.IsolatedAsyncioTestCase):

    def _provider(self, factory, api_key="key"):
        return LangChainProvider("mistralai", "codestral-2501", api_key, factory=factory)

    async def test_chat_message_content_is_processed(self):
        llm = FakeLLM(reply=SimpleNamespace(content="```bash\ngit status\n```"))
        provider = self._provider(FakeFactory(llm))

        self.assertEqual(await provider.generate_command("git state", "ctx"), "git status")
        self.assertIn("Request: git state", llm.prompts[0])

    async def test_plain_string_reply(self):
        provider = self._provider(FakeFactory(FakeLLM(reply="  ls -la\n")))
        self.assertEqual(await provider.generate_command("list", "ctx"), "ls -la")

    async def test_model_is_created_once(self):
        factory = FakeFactory(FakeLLM(reply="date"))
        provider = self._provider(factory)

        await provider.generate_command("a", "ctx")
        await provider.generate_command("b", "ctx")

        self.assertEqual(len(factory.created), 1)
        self.assertEqual(factory.created[0][:3], ("mistralai", "codestral-2501", "key"))
        self.assertEqual(factory.created[0][3], {"temperature": 0.2})

    async def test_missing_api_key(self):
        provider = self._provider(FakeFactory(FakeLLM(reply="date")), api_key="")
        with self.assertRaises(ExternalToolError) as ctx:
            await provider.check_installation()
        self.assertIn("Missing API key", str(ctx.exception))

    async def test_factory_error_is_external_tool_error(self):
        provider = self._provider(FakeFactory(error=ValueError("Model x not available")))
        with self.assertRaises(ExternalToolError):
            await provider.generate_command("a", "ctx")

    async def test_slow_backend_times_out(self):
        llm = FakeLLM(reply="date", delay=5)
        provider = LangChainProvider(
            "mistralai", "codestral-2501", "key", timeout=0.1, factory=FakeFactory(llm)
        )
        with self.assertRaises(ExternalToolError) as ctx:
            await provider.generate_command("a", "ctx")
        self.assertIn("did not answer within 0.1 seconds", str(ctx.exception))

    async def test_backend_error_is_external_tool_error(self):
        provider = self._provider(FakeFactory(FakeLLM(error=RuntimeError("HTTP 429"))))
        with self.assertRaises(ExternalToolError) as ctx:
            await provider.generate_command("a", "ctx")
        self.assertIn("HTTP 429", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
