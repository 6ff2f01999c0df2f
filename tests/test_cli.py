"""
Tests for ui/cli.py using Typer's CliRunner.

ASKAI_CONFIG_DIR points every command at a temporary directory and
ASKAI_NO_DAEMON keeps the commands in local mode. Providers are replaced
with a fake that answers with a fixed command.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from askai.cache.response import ResponseCache
from askai.providers.base import Provider
from askai.ui.cli import app


class FakeProvider(Provider):

    def __init__(self, command):
        self.command = command
        self.prompts = []

    @property
    def name(self):
        return "fake"

    async def check_installation(self):
        return None

    async def generate_command(self, prompt, context):
        self.prompts.append((prompt, context))
        return self.command


class CliTestCase(unittest.TestCase):

    def setUp(self):
        self.config_dir = Path(tempfile.mkdtemp())
        self.cache_file = self.config_dir / "cache.json"
        self.runner = CliRunner()
        self.env = {"ASKAI_CONFIG_DIR": str(self.config_dir), "ASKAI_NO_DAEMON": "1"}

    def tearDown(self):
        shutil.rmtree(self.config_dir, ignore_errors=True)

    def invoke(self, args, **kwargs):
        return self.runner.invoke(app, args, env=self.env, **kwargs)

    def seed_cache(self, prompt, context, command):
        cache = ResponseCache(3600, 1000, cache_file=self.cache_file)
        cache.set(prompt, context, command)
        cache.save()

    def use_provider(self, command, target="askai.daemon.session.create_provider"):
        provider = FakeProvider(command)
        patcher = patch(target, return_value=provider)
        patcher.start()
        self.addCleanup(patcher.stop)
        return provider


@patch("askai.ui.cli.get_context_with_project", return_value="ctx")
class TestRunCommand(CliTestCase):

    def test_dry_run_uses_cache(self, _context):
        self.seed_cache("list files", "ctx", "ls -la")

        result = self.invoke(["run", "--dry-run", "--provider", "fake", "list", "files"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("ls -la", result.output)
        self.assertIn("[cache hit]", result.output)

    def test_generates_executes_and_caches(self, _context):
        provider = self.use_provider("echo hello-from-askai")

        result = self.invoke(["run", "--yes", "-p", "fake", "say", "hello"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("hello-from-askai", result.output)
        self.assertEqual(provider.prompts, [("say hello", "ctx")])
        cache = ResponseCache(3600, 1000, cache_file=self.cache_file)
        self.assertEqual(cache.get("say hello", "ctx"), "echo hello-from-askai")

    def test_no_cache_bypasses_cache(self, _context):
        self.use_provider("echo fresh", target="askai.ui.cli.create_provider")

        result = self.invoke(["run", "--yes", "--no-cache", "-p", "fake", "anything"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("fresh", result.output)
        self.assertFalse(self.cache_file.exists())

    def test_unknown_provider(self, _context):
        result = self.invoke(["run", "--dry-run", "--provider", "nope", "list"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown AI provider: nope", result.output)

    def test_declined_confirmation(self, _context):
        self.use_provider("echo should-not-run")

        result = self.invoke(["run", "-p", "fake", "do", "it"], input="n\n")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cancelled by user.", result.output)
        self.assertNotIn("\nshould-not-run\n", "\n" + result.output)

    def test_forbidden_command_is_refused(self, _context):
        self.use_provider("mkfs.ext4 /dev/sdb1")

        result = self.invoke(["run", "--yes", "-p", "fake", "format", "the", "disk"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Dangerous pattern detected: mkfs", result.output)

    def test_high_risk_command_asks_even_with_yes(self, _context):
        self.use_provider("rm -rf build")

        result = self.invoke(["run", "--yes", "-p", "fake", "clean"], input="n\n")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Risk level: High", result.output)
        self.assertIn("Cancelled by user.", result.output)

    def test_failing_command_exits_non_zero(self, _context):
        self.use_provider("exit 7")

        result = self.invoke(["run", "--yes", "-p", "fake", "fail"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Command exited with status 7", result.output)


class TestRunContext(CliTestCase):

    def setUp(self):
        super().setUp()
        self.project = Path(tempfile.mkdtemp())
        (self.project / "Cargo.toml").write_text('[package]\nname = "engine"\n')
        self.old_cwd = os.getcwd()
        os.chdir(self.project)

    def tearDown(self):
        os.chdir(self.old_cwd)
        shutil.rmtree(self.project, ignore_errors=True)
        super().tearDown()

    def test_project_details_are_sent_with_the_prompt(self):
        provider = self.use_provider("cargo build")

        result = self.invoke(["run", "--dry-run", "-p", "fake", "build", "it"])

        self.assertEqual(result.exit_code, 0, result.output)
        [(prompt, context)] = provider.prompts
        self.assertEqual(prompt, "build it")
        self.assertIn("Current directory:", context)
        self.assertIn("Project Type: rust", context)


class TestBatchCommand(CliTestCase):

    def setUp(self):
        super().setUp()
        self.projects = Path(tempfile.mkdtemp())
        for name, marker in (("alpha", "Cargo.toml"), ("beta", "Cargo.toml"), ("gamma", "package.json")):
            (self.projects / name).mkdir()
            (self.projects / name / marker).write_text("")
        self.old_cwd = os.getcwd()
        os.chdir(self.projects)

    def tearDown(self):
        os.chdir(self.old_cwd)
        shutil.rmtree(self.projects, ignore_errors=True)
        super().tearDown()

    def test_runs_in_every_matching_project(self):
        provider = self.use_provider("pwd")

        result = self.invoke(["batch", "--yes", "-t", "cargo", "run", "tests"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Found 2 projects.", result.output)
        self.assertIn("Total tasks: 2", result.output)
        self.assertIn("Success rate: 100.0%", result.output)
        self.assertEqual(len(provider.prompts), 2)
        self.assertTrue(all(prompt == "run tests" for prompt, _ in provider.prompts))

    def test_dry_run(self):
        self.use_provider("make build")

        result = self.invoke(["batch", "--dry-run", "build"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Total tasks: 3", result.output)
        self.assertIn("Failed: 0", result.output)

    def test_failures_are_summarised(self):
        self.use_provider("echo nope >&2; exit 1")

        result = self.invoke(["batch", "--yes", "-t", "nodejs", "check"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Failed tasks:", result.output)
        self.assertIn("gamma: check: nope", result.output)

    def test_no_matching_projects(self):
        result = self.invoke(["batch", "--yes", "-t", "go", "build"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No projects found.", result.output)

    def test_unknown_project_type(self):
        result = self.invoke(["batch", "--yes", "-t", "cobol", "build"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown project type: cobol", result.output)

    def test_forbidden_command_stops_the_batch(self):
        self.use_provider("dd if=/dev/zero of=/dev/sda")

        result = self.invoke(["batch", "--yes", "wipe"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Refusing to run the batch", result.output)
        self.assertNotIn("Batch execution complete!", result.output)

    def test_scan_filter_matches_batch_targets(self):
        (self.projects / "alpha" / "package.json").write_text("{}")
        self.use_provider("npm test")

        scanned = self.invoke(["scan", "-t", "nodejs", str(self.projects)])
        batched = self.invoke(["batch", "--dry-run", "-t", "nodejs", "test"])

        self.assertEqual(scanned.exit_code, 0, scanned.output)
        self.assertIn("alpha", scanned.output)
        self.assertIn("gamma", scanned.output)
        self.assertNotIn("beta", scanned.output)
        self.assertIn("Found 2 projects.", batched.output)

    def test_scan_lists_projects(self):
        result = self.invoke(["scan", str(self.projects)])

        self.assertEqual(result.exit_code, 0, result.output)
        for name in ("alpha", "beta", "gamma"):
            self.assertIn(name, result.output)


class TestCacheCommands(CliTestCase):

    def test_stats(self):
        self.seed_cache("p", "c", "cmd")

        result = self.invoke(["cache", "stats"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("1 / 1000", result.output)

    def test_clear(self):
        self.seed_cache("p", "c", "cmd")

        result = self.invoke(["cache", "clear"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Cache cleared.", result.output)
        self.assertFalse(self.cache_file.exists())

    def test_prewarm(self):
        first = self.invoke(["cache", "prewarm"])
        second = self.invoke(["cache", "prewarm"])

        self.assertIn("Added 13 commands to cache.", first.output)
        self.assertIn("Added 0 commands to cache.", second.output)


class TestDaemonCommands(CliTestCase):

    def test_status_when_not_running(self):
        result = self.invoke(["daemon", "status"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Daemon server is not running.", result.output)

    def test_stop_when_not_running(self):
        result = self.invoke(["daemon", "stop"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Daemon server is not running.", result.output)

    def test_start_refused_when_disabled(self):
        result = self.invoke(["daemon", "start"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Daemon mode is disabled", result.output)


if __name__ == "__main__":
    unittest.main()
