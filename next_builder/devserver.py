"""Development server management for interactive builds.

The first interactive request for an entry point spawns ``next dev`` in the
project directory; later requests reuse the running server. Readiness is the
server printing its own URL on stdout.

Lifecycle per entry point: not started -> starting -> running at URL. The
registry serializes starts per entry point, so concurrent first requests never
spawn two servers.
"""

from __future__ import annotations

import os
import socket
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from next_builder.config import get_settings
from next_builder.errors import DevServerError
from next_builder.logging import get_logger

log = get_logger(__name__)

CommandBuilder = Callable[[Path, int], list[str]]


def next_dev_command(entry_dir: Path, port: int) -> list[str]:
    return ["npx", "next", "dev", str(entry_dir), "--port", str(port)]


def _port_is_free(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind(("127.0.0.1", port))
        except OSError:
            return False
    return True


def find_free_port(preferred: Sequence[int] = (5000, 4000)) -> int:
    """Return the first free port from *preferred*, else any free port."""
    for port in preferred:
        if _port_is_free(port):
            return port
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@dataclass
class DevServer:
    url: str
    process: subprocess.Popen = field(repr=False)

    def stop(self) -> None:
        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()


def _watch_output(stream: IO[str], url: str, ready: threading.Event) -> None:
    # Keeps draining stdout after readiness so the child never blocks on a full pipe.
    for line in stream:
        log.debug(line.rstrip(), extra={"url": url})
        if not ready.is_set() and url in line:
            ready.set()
    stream.close()


def start_dev_server(
    entry_dir: Path,
    *,
    ports: Sequence[int] = (5000, 4000),
    timeout: float | None = None,
    command: CommandBuilder = next_dev_command,
) -> DevServer:
    """Spawn the dev server and block until it reports readiness.

    ``timeout`` of ``None`` or ``0`` waits forever. On timeout the process is
    terminated and DevServerError is raised.
    """
    port = find_free_port(ports)
    url = f"http://localhost:{port}"
    cmd = command(Path(entry_dir), port)
    log.info(f"Running `{' '.join(cmd)}`", extra={"cwd": str(entry_dir)})

    env = {**os.environ, "__NEXT_BUILDER_EXPERIMENTAL_DEBUG": "true"}
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=entry_dir,
            env=env,
            stdout=subprocess.PIPE,
            text=True,
            bufsize=1,
        )
    except FileNotFoundError as exc:
        raise DevServerError(f"Command not found: {cmd[0]}") from exc

    ready = threading.Event()
    watcher = threading.Thread(target=_watch_output, args=(proc.stdout, url, ready), daemon=True)
    watcher.start()

    server = DevServer(url=url, process=proc)
    deadline = timeout or None
    waited = 0.0
    step = 0.1
    while not ready.wait(step):
        if proc.poll() is not None:
            # The exit may race with the last line being read.
            watcher.join(timeout=1)
            if ready.is_set():
                break
            raise DevServerError(f"Development server exited early with code {proc.returncode}")
        waited += step
        if deadline is not None and waited >= deadline:
            server.stop()
            raise DevServerError(f"Development server did not report {url} within {timeout} seconds")
    return server


class DevServerRegistry:
    """Entry point -> running dev server, one start per entry point."""

    def __init__(self, starter: Callable[..., DevServer] = start_dev_server) -> None:
        self._starter = starter
        self._servers: dict[str, DevServer] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, entrypoint: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(entrypoint, threading.Lock())

    def get(self, entrypoint: str) -> str | None:
        server = self._servers.get(entrypoint)
        return server.url if server else None

    def get_or_start(self, entrypoint: str, entry_dir: Path) -> str:
        with self._lock_for(entrypoint):
            server = self._servers.get(entrypoint)
            if server is None:
                settings = get_settings()
                server = self._starter(
                    entry_dir,
                    ports=settings.dev_ports,
                    timeout=settings.dev_ready_timeout,
                )
                self._servers[entrypoint] = server
                log.info(
                    f"Development server for {entry_dir} running at {server.url}",
                    extra={"entrypoint": entrypoint},
                )
            return server.url

    def stop_all(self) -> None:
        with self._guard:
            servers = list(self._servers.values())
            self._servers.clear()
        for server in servers:
            server.stop()


DEV_SERVERS = DevServerRegistry()
