"""Lightweight client for daemon communication.

Usage:
    client = DaemonClient()
    if client.is_daemon_running():
        response = asyncio.run(client.generate_command("list files", context, "gemini"))
    else:
        # Fallback to direct mode
        ...
"""

import asyncio
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

from askai.config import get_socket_path
from askai.daemon.protocol import (
    DaemonRequest,
    DaemonResponse,
    GenerateCommand,
    Ping,
    Shutdown,
    deserialize_response,
    serialize_request,
)
from askai.errors import TransportError

MAX_RESPONSE_BYTES = 1024 * 1024


class DaemonClient:
    """
    One request per connection: connect, write a line, read a line, close.
    """

    def __init__(self, socket_path: Optional[Path] = None, timeout: float = 60.0):
        """
        Args:
            socket_path: Path to Unix socket (default: ~/.config/askai/daemon.sock)
            timeout: Seconds to wait for connect and for the response
        """
        self.socket_path = socket_path or get_socket_path()
        self.timeout = timeout

    def is_daemon_running(self) -> bool:
        """
        Cheap liveness heuristic: the socket file exists.

        A crashed daemon can leave a stale socket behind; send_request()
        then fails with TransportError.
        """
        return self.socket_path.exists()

    async def send_request(self, request: DaemonRequest) -> DaemonResponse:
        """
        Send one request and decode the response.

        Raises:
            TransportError: Connect, write or read failure (or timeout)
            SerializationError: The daemon answered with malformed JSON
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(str(self.socket_path), limit=MAX_RESPONSE_BYTES),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to connect to daemon at {self.socket_path}: {e}") from e

        try:
            try:
                writer.write(serialize_request(request))
                await writer.drain()
            except (ConnectionError, OSError) as e:
                raise TransportError(f"Failed to write request: {e}") from e

            try:
                line = await asyncio.wait_for(reader.readline(), timeout=self.timeout)
            except (OSError, ValueError, asyncio.TimeoutError) as e:
                raise TransportError(f"Failed to read response: {e}") from e
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

        if not line:
            raise TransportError("Daemon closed the connection without a response")

        return deserialize_response(line)

    async def generate_command(self, prompt: str, context: str, provider: str) -> DaemonResponse:
        return await self.send_request(
            GenerateCommand(prompt=prompt, context=context, provider=provider)
        )

    async def ping(self) -> DaemonResponse:
        return await self.send_request(Ping())

    async def shutdown(self) -> DaemonResponse:
        return await self.send_request(Shutdown())


def start_daemon_process(
    socket_path: Optional[Path] = None,
    idle_timeout: float = 0.0,
    wait_seconds: float = 5.0,
) -> bool:
    """
    Start the daemon in the background and wait for its socket to appear.

    Returns True if the socket showed up within wait_seconds.
    """
    socket_path = socket_path or get_socket_path()
    args = [sys.executable, "-m", "askai.daemon.server", "--daemonize"]
    if socket_path != get_socket_path():
        args += ["--socket-path", str(socket_path)]
    if idle_timeout > 0:
        args += ["--idle-timeout", str(idle_timeout)]

    subprocess.Popen(
        args,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )

    deadline = time.monotonic() + wait_seconds
    while time.monotonic() < deadline:
        if socket_path.exists():
            return True
        time.sleep(0.1)
    return False


def is_daemon_enabled() -> bool:
    """
    Check if daemon mode is enabled.

    Daemon is DISABLED if:
    - ASKAI_NO_DAEMON=1 environment variable is set
    - Running on Windows (Unix sockets not available)
    """
    if os.environ.get("ASKAI_NO_DAEMON", "").lower() in ("1", "true", "yes"):
        return False

    if sys.platform == "win32":
        return False

    return True
