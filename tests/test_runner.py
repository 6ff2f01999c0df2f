"""Tests for executor/runner.py."""

import os
import shutil
import tempfile
import unittest

from askai.errors import ExecutionError
from askai.executor.runner import CommandRunner


class TestCommandRunner(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    async def test_returns_stdout(self):
        output = await CommandRunner().execute("echo hello")
        self.assertEqual(output, "hello\n")

    async def test_shell_features_are_available(self):
        output = await CommandRunner().execute("printf 'a\\nb\\n' | wc -l")
        self.assertEqual(output.strip(), "2")

    async def test_cwd(self):
        output = await CommandRunner().execute("pwd", cwd=self.temp_dir)
        self.assertEqual(os.path.realpath(output.strip()), os.path.realpath(self.temp_dir))

    async def test_stderr_becomes_error_message(self):
        with self.assertRaises(ExecutionError) as ctx:
            await CommandRunner().execute("echo 'no such thing' >&2; exit 1")
        self.assertEqual(str(ctx.exception), "no such thing")

    async def test_exit_status_when_stderr_is_empty(self):
        with self.assertRaises(ExecutionError) as ctx:
            await CommandRunner().execute("exit 3")
        self.assertEqual(str(ctx.exception), "Command exited with status 3")

    async def test_missing_cwd_is_an_execution_error(self):
        with self.assertRaises(ExecutionError) as ctx:
            await CommandRunner().execute("pwd", cwd=os.path.join(self.temp_dir, "missing"))
        self.assertIn("Failed to launch command", str(ctx.exception))

    async def test_nul_byte_is_an_execution_error(self):
        with self.assertRaises(ExecutionError) as ctx:
            await CommandRunner().execute("echo a\x00b")
        self.assertIn("Failed to launch command", str(ctx.exception))

    async def test_dry_run(self):
        marker = os.path.join(self.temp_dir, "marker")
        runner = CommandRunner().with_dry_run(True)

        output = await runner.execute(f"touch {marker}")

        self.assertEqual(output, f"[DRY-RUN] touch {marker}")
        self.assertFalse(os.path.exists(marker))


if __name__ == "__main__":
    unittest.main()
