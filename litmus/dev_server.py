"""
Target application reachability and the (optional) dev server process.

A ``DevServer`` owns at most one spawned server process. ``stop()`` is
idempotent and also clears anything still bound to the target port.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx

from .constants import (
    DEFAULT_SERVER_PORT,
    SERVER_POLL_INTERVAL_S,
    SERVER_PROBE_TIMEOUT_S,
    SERVER_READY_TIMEOUT_S,
)
from .exceptions import ServerUnavailableError

logger = logging.getLogger(__name__)


async def is_server_ready(url: str, timeout_s: float = SERVER_PROBE_TIMEOUT_S) -> bool:
    """Any response below 500 counts as ready."""
    try:
        async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True) as client:
            response = await client.get(url)
    except Exception as e:
        logger.debug(f"Server probe {url} failed: {e}")
        return False
    return response.status_code < 500


def kill_process_on_port(port: int) -> list[int]:
    """Best-effort SIGTERM to every process listening on port. Returns the pids signalled."""
    try:
        result = subprocess.run(
            ["lsof", "-ti", f":{port}"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return []

    killed = []
    for line in result.stdout.split():
        try:
            pid = int(line)
            os.kill(pid, signal.SIGTERM)
            killed.append(pid)
        except (ValueError, ProcessLookupError, PermissionError):
            continue
    if killed:
        logger.info(f"Terminated {len(killed)} process(es) on port {port}")
        time.sleep(1)
    return killed


class DevServer:
    def __init__(
        self,
        cwd: str | Path = ".",
        port: int = DEFAULT_SERVER_PORT,
        ready_timeout_s: float = SERVER_READY_TIMEOUT_S,
        poll_interval_s: float = SERVER_POLL_INTERVAL_S,
        probe: Callable[[str], Awaitable[bool]] = is_server_ready,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cwd = Path(cwd)
        self.port = port
        self.ready_timeout_s = ready_timeout_s
        self.poll_interval_s = poll_interval_s
        self._probe = probe
        self._sleep = sleep
        self._time_fn = time_fn
        self._process: subprocess.Popen | None = None

    @property
    def process(self) -> subprocess.Popen | None:
        return self._process

    async def wait_until_ready(self, url: str) -> bool:
        deadline = self._time_fn() + self.ready_timeout_s
        while self._time_fn() < deadline:
            if await self._probe(url):
                return True
            await self._sleep(self.poll_interval_s)
        return False

    def start(self, command: str) -> subprocess.Popen:
        kill_process_on_port(self.port)
        env = {**os.environ, "PORT": str(self.port)}
        logger.info(f"Starting dev server: {command} (PORT={self.port})")
        self._process = subprocess.Popen(
            command,
            shell=True,
            cwd=str(self.cwd),
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        return self._process

    def stop(self) -> None:
        process, self._process = self._process, None
        if process is not None and process.poll() is None:
            self._terminate(process)
        kill_process_on_port(self.port)

    def _terminate(self, process: subprocess.Popen) -> None:
        try:
            os.killpg(process.pid, signal.SIGTERM)
            process.wait(timeout=5)
            return
        except subprocess.TimeoutExpired:
            logger.debug(f"Dev server (pid {process.pid}) ignored SIGTERM, sending SIGKILL")
        except OSError as e:
            logger.debug(f"Dev server already gone: {e}")
            process.poll()
            return

        try:
            os.killpg(process.pid, signal.SIGKILL)
        except OSError as e:
            logger.debug(f"Dev server exited before SIGKILL: {e}")
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            logger.warning(f"Dev server (pid {process.pid}) did not exit after SIGKILL")

    async def ensure(self, base_url: str, command: str | None = None) -> None:
        """
        Make sure something answers at base_url, starting command if needed.

        Process management blocks (port cleanup, waiting on exit), so it runs
        in the default executor.

        Raises:
            ServerUnavailableError: nothing is running and it could not be started
        """
        if await self._probe(base_url):
            return

        if not command:
            raise ServerUnavailableError(
                f"No server running at {base_url} and no dev_command configured. "
                "Either start your dev server manually or add dev_command to litmus.toml"
            )

        loop = asyncio.get_running_loop()
        # a previous server may be hung on the port
        await loop.run_in_executor(None, self.stop)
        await loop.run_in_executor(None, self.start, command)
        if not await self.wait_until_ready(base_url):
            await loop.run_in_executor(None, self.stop)
            raise ServerUnavailableError(
                f"Dev server failed to start within {self.ready_timeout_s:.0f} seconds. "
                f"Command: {command}"
            )
