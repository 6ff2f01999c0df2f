"""Async Unix socket server for the askai daemon.

This module implements the long-running daemon process that:
1. Keeps provider instances resident (no per-request setup)
2. Keeps the response cache in memory (no per-request disk I/O)
3. Answers one JSON request per connection over a Unix socket

Usage:
    python -m askai.daemon.server [--socket-path PATH] [--idle-timeout SECONDS] [--daemonize]

    Or use the CLI:
    askai daemon start
"""

import asyncio
import logging
import os
import signal
import sys
import time
from pathlib import Path
from typing import Iterable, Optional, Set

from askai.config import get_pid_path, get_socket_path
from askai.daemon.protocol import (
    DaemonRequest,
    DaemonResponse,
    Error,
    GenerateCommand,
    Ping,
    Pong,
    Shutdown,
    ShuttingDown,
    Success,
    deserialize_request,
    serialize_response,
)
from askai.daemon.session import SessionPool
from askai.errors import AskAiError, SerializationError, TransportError

logger = logging.getLogger(__name__)

MAX_REQUEST_BYTES = 1024 * 1024
READ_TIMEOUT_SECONDS = 30.0


class DaemonServer:
    """
    Async Unix socket server for the daemon.

    Every accepted connection runs in its own asyncio task, so a slow
    provider call on one connection never delays another.
    """

    def __init__(
        self,
        session_pool: SessionPool,
        socket_path: Optional[Path] = None,
        pid_path: Optional[Path] = None,
        idle_timeout: float = 0.0,
    ):
        """
        Args:
            session_pool: Resident providers and cache
            socket_path: Path to Unix socket (default: ~/.config/askai/daemon.sock)
            pid_path: Path to PID file (default: ~/.config/askai/daemon.pid)
            idle_timeout: Shut down after this many idle seconds (0 = never)
        """
        self.session_pool = session_pool
        self.socket_path = socket_path or get_socket_path()
        self.pid_path = pid_path or get_pid_path()
        self.idle_timeout = idle_timeout

        self.server: Optional[asyncio.AbstractServer] = None
        self.start_time = time.monotonic()
        self.last_request_time = time.monotonic()
        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._handlers: Set[asyncio.Task] = set()
        self._idle_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Clear the running flag; the serve loop exits and stops accepting."""
        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()

    async def bind(self) -> None:
        """
        Remove any stale socket, bind the listener, write the PID file and
        mark the server as running.

        Raises:
            TransportError: If the socket cannot be bound
        """
        self._stop_event = asyncio.Event()
        try:
            self.socket_path.parent.mkdir(parents=True, exist_ok=True)
            if self.socket_path.exists() or self.socket_path.is_symlink():
                self.socket_path.unlink()
            self.server = await asyncio.start_unix_server(
                self._handle_client,
                path=str(self.socket_path),
                limit=MAX_REQUEST_BYTES,
            )
            # Owner only
            os.chmod(self.socket_path, 0o600)
            self.pid_path.write_text(str(os.getpid()))
        except OSError as e:
            raise TransportError(f"Failed to bind socket {self.socket_path}: {e}") from e

        self.start_time = time.monotonic()
        self.last_request_time = time.monotonic()
        self._running = True
        logger.info(f"Daemon listening on {self.socket_path}")

    async def serve_until_stopped(self) -> None:
        """Serve until stop() is called, then wait for open connections and clean up."""
        if self.idle_timeout > 0:
            self._idle_task = asyncio.create_task(self._idle_watcher())

        try:
            while self._running:
                await self._stop_event.wait()
        finally:
            await self._cleanup()

    async def start(self, install_signal_handlers: bool = False) -> None:
        """Bind and serve until shutdown."""
        await self.bind()

        if install_signal_handlers:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self._signal_handler)

        await self.serve_until_stopped()

    async def prewarm_providers(self, provider_names: Iterable[str]) -> int:
        """Load providers ahead of time; failures are logged and skipped."""
        loaded = 0
        for name in provider_names:
            try:
                await self.session_pool.prewarm_provider(name)
            except AskAiError as e:
                logger.warning(f"Provider '{name}' pre-warming failed: {e}")
            else:
                loaded += 1
                logger.info(f"Provider '{name}' pre-warmed")
        return loaded

    async def prewarm_cache(self, context: str) -> int:
        count = await self.session_pool.prewarm_cache(context)
        logger.info(f"Added {count} commands to cache")
        return count

    async def _handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle a single client connection: one request line, one response line."""
        task = asyncio.current_task()
        if task is not None:
            self._handlers.add(task)
        try:
            try:
                line = await asyncio.wait_for(reader.readline(), timeout=READ_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("Client connection timed out")
                return
            except ValueError:
                # Line exceeded the stream limit
                await self._send(writer, Error(message="Request too large"))
                return

            if not line.strip():
                return

            self.last_request_time = time.monotonic()

            try:
                request = deserialize_request(line)
            except SerializationError as e:
                await self._send(writer, Error(message=str(e)))
                return

            response = await self.handle_request(request)
            await self._send(writer, response)

        except TransportError as e:
            logger.warning(f"Connection dropped: {e}")
        except (ConnectionError, OSError) as e:
            logger.warning(f"Connection error: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            if task is not None:
                self._handlers.discard(task)

    async def handle_request(self, request: DaemonRequest) -> DaemonResponse:
        """Dispatch one decoded request to the session pool."""
        if isinstance(request, GenerateCommand):
            try:
                command, from_cache = await self.session_pool.generate_command(
                    request.prompt, request.context, request.provider
                )
            except AskAiError as e:
                return Error(message=str(e))
            except Exception as e:
                logger.exception(f"Error generating command: {e}")
                return Error(message=f"Internal error: {e}")
            return Success(command=command, from_cache=from_cache)

        if isinstance(request, Ping):
            return Pong(
                uptime_seconds=int(time.monotonic() - self.start_time),
                session_count=await self.session_pool.provider_count(),
            )

        if isinstance(request, Shutdown):
            logger.info("Shutdown requested via socket")
            self.stop()
            return ShuttingDown()

        return Error(message=f"Unsupported request: {type(request).__name__}")

    async def _send(self, writer: asyncio.StreamWriter, response: DaemonResponse) -> None:
        try:
            writer.write(serialize_response(response))
            await writer.drain()
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Failed to write response: {e}") from e

    async def _idle_watcher(self) -> None:
        """Stop the daemon once no request has arrived for idle_timeout seconds."""
        interval = min(60.0, self.idle_timeout)
        while self._running:
            await asyncio.sleep(interval)
            idle_time = time.monotonic() - self.last_request_time
            if idle_time > self.idle_timeout:
                logger.info(
                    f"Idle timeout reached ({idle_time:.0f}s > {self.idle_timeout:.0f}s), "
                    "shutting down"
                )
                self.stop()

    def _signal_handler(self) -> None:
        """Handle SIGTERM/SIGINT for graceful shutdown."""
        logger.info("Received shutdown signal")
        self.stop()

    async def _cleanup(self) -> None:
        """Stop accepting, let in-flight handlers finish, persist the cache, remove files."""
        logger.info("Cleaning up...")
        self._running = False

        if self.server is not None:
            self.server.close()

        if self._idle_task is not None and not self._idle_task.done():
            self._idle_task.cancel()
            await asyncio.gather(self._idle_task, return_exceptions=True)

        current = asyncio.current_task()
        pending = [t for t in self._handlers if t is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self.server is not None:
            await self.server.wait_closed()

        await self.session_pool.save_cache()

        for path in (self.socket_path, self.pid_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {e}")

        logger.info("Daemon stopped")


def _daemonize(log_path: Path) -> None:
    """Double-fork into the background and redirect stdio to the log file."""
    if os.fork() > 0:
        sys.exit(0)
    os.setsid()
    if os.fork() > 0:
        sys.exit(0)

    sys.stdin.close()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_file = open(log_path, "a")
    os.dup2(log_file.fileno(), sys.stdout.fileno())
    os.dup2(log_file.fileno(), sys.stderr.fileno())


async def _run(server: DaemonServer, prewarm: Iterable[str], context: str) -> None:
    await server.prewarm_providers(prewarm)
    await server.prewarm_cache(context)
    await server.start(install_signal_handlers=True)


def run_daemon(
    socket_path: Optional[str] = None,
    idle_timeout: float = 0.0,
    daemonize: bool = False,
) -> None:
    """
    Run the daemon server (blocking).

    Args:
        socket_path: Path to Unix socket (default: ~/.config/askai/daemon.sock)
        idle_timeout: Shut down after this many idle seconds (0 = never)
        daemonize: Fork to background (Unix only)
    """
    from askai.cache.response import ResponseCache
    from askai.config import get_log_path, get_settings
    from askai.context import get_context_with_project

    if daemonize:
        _daemonize(get_log_path())

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    settings = get_settings()
    cache = ResponseCache.from_config(settings)
    pool = SessionPool(cache, settings)
    server = DaemonServer(
        pool,
        socket_path=Path(socket_path) if socket_path else None,
        idle_timeout=idle_timeout,
    )

    asyncio.run(_run(server, [settings.default_provider], get_context_with_project()))


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="askai daemon server")
    parser.add_argument("--socket-path", help="Path to Unix socket")
    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=0.0,
        help="Shutdown after this many seconds idle (0 = never)",
    )
    parser.add_argument("--daemonize", action="store_true", help="Fork to background")

    args = parser.parse_args()

    run_daemon(
        socket_path=args.socket_path,
        idle_timeout=args.idle_timeout,
        daemonize=args.daemonize,
    )
