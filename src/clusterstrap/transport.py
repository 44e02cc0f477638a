"""Run a bundle on a host and report its exit status."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import asyncssh

# Type alias for output callback
LineCallback = Callable[[str], None]  # (line) -> None


class Outcome(Enum):
    """Result of one bundle execution."""

    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def from_status(cls, status: int | None) -> Outcome:
        return cls.SUCCESS if status == 0 else cls.FAILURE


@dataclass(frozen=True)
class HostTarget:
    """Where and as whom to open a session."""

    host: str
    login: str | None = None
    identity: Path | None = None

    @property
    def destination(self) -> str:
        return f"{self.login}@{self.host}" if self.login else self.host


class Transport(ABC):
    """Executes a payload with a shell and returns the shell's exit status."""

    def __init__(self, elevate: bool = False):
        self.elevate = elevate

    @property
    def shell(self) -> list[str]:
        return ["sudo", "bash"] if self.elevate else ["bash"]

    @abstractmethod
    async def run(
        self,
        target: HostTarget,
        payload: str,
        on_output: LineCallback | None = None,
    ) -> int | None:
        """Run ``payload`` on ``target``; ``None`` means no status was reported."""


async def _pump(stream: Any, on_output: LineCallback | None, prefix: str = "") -> None:
    """Forward lines from a stream until EOF."""
    while True:
        line = await stream.readline()
        if not line:
            break
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        if on_output:
            on_output(prefix + line.rstrip("\n\r"))


class SSHTransport(Transport):
    """Pipes the payload into a shell on a remote host over SSH.

    Host keys are not verified.
    """

    async def run(
        self,
        target: HostTarget,
        payload: str,
        on_output: LineCallback | None = None,
    ) -> int | None:
        options: dict[str, Any] = {"known_hosts": None}
        if target.login:
            options["username"] = target.login
        if target.identity:
            options["client_keys"] = [str(target.identity)]

        async with asyncssh.connect(target.host, **options) as conn:
            async with conn.create_process(
                " ".join(self.shell), encoding="utf-8", errors="replace"
            ) as proc:
                proc.stdin.write(payload)
                proc.stdin.write_eof()

                await asyncio.gather(
                    _pump(proc.stdout, on_output),
                    _pump(proc.stderr, on_output, prefix="STDERR: "),
                )

                await proc.wait()
                return proc.exit_status


class LocalTransport(Transport):
    """Pipes the payload into a shell on this machine; the target is ignored."""

    async def run(
        self,
        target: HostTarget,
        payload: str,
        on_output: LineCallback | None = None,
    ) -> int | None:
        proc = await asyncio.create_subprocess_exec(
            *self.shell,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        async def feed() -> None:
            proc.stdin.write(payload.encode("utf-8"))
            try:
                await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                pass  # the shell exited before reading everything
            proc.stdin.close()

        await asyncio.gather(
            feed(),
            _pump(proc.stdout, on_output),
            _pump(proc.stderr, on_output, prefix="STDERR: "),
        )
        return await proc.wait()
