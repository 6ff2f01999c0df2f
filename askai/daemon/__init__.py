"""Daemon architecture for askai.

A long-running background process keeps providers and the response cache
in memory so that each CLI invocation only pays for one socket round trip.

Architecture:
- SessionPool: Resident providers plus the shared response cache
- DaemonServer: Async Unix socket server handling client requests
- DaemonClient: Lightweight client that connects to the daemon via socket
"""

from askai.daemon.client import DaemonClient, is_daemon_enabled
from askai.daemon.protocol import (
    Error,
    GenerateCommand,
    Ping,
    Pong,
    Shutdown,
    ShuttingDown,
    Success,
    deserialize_request,
    deserialize_response,
    serialize_request,
    serialize_response,
)
from askai.daemon.session import SessionPool

__all__ = [
    "DaemonClient",
    "SessionPool",
    "is_daemon_enabled",
    "GenerateCommand",
    "Ping",
    "Shutdown",
    "Success",
    "Pong",
    "Error",
    "ShuttingDown",
    "serialize_request",
    "deserialize_request",
    "serialize_response",
    "deserialize_response",
]
