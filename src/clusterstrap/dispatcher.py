"""Provision every host of a topology through a transport."""

from __future__ import annotations

import asyncio
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable

import asyncssh

from .bundle import build_bundle
from .config import Config
from .options import TransportOptions
from .roles import ROLES, Role
from .topology import Topology
from .transport import HostTarget, Outcome, Transport


class HostStatus(Enum):
    """Status of a host's provisioning."""

    PENDING = "pending"
    CONNECTING = "connecting"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Assignment:
    """One role to run on one host."""

    index: int
    host: str
    role: Role
    args: tuple[str, ...] = ()
    internal: str | None = None

    @property
    def label(self) -> str:
        if self.internal:
            return f"{self.host} ({self.internal})"
        return self.host


@dataclass
class HostState:
    """Runtime state for an assignment."""

    assignment: Assignment
    status: HostStatus = HostStatus.PENDING
    output_lines: list[str] = field(default_factory=list)
    exit_status: int | None = None
    error_message: str = ""
    log_file: Path | None = None


@dataclass(frozen=True)
class HostResult:
    """What happened on one host."""

    host: str
    role: str
    outcome: Outcome
    exit_status: int | None = None
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCESS


# Type alias for output callback
OutputCallback = Callable[[str, str], None]  # (label, line) -> None
StatusCallback = Callable[[str, HostStatus], None]  # (label, status) -> None

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


class Dispatcher:
    """Runs the slave role on every slave, then the master role on every master."""

    def __init__(
        self,
        topology: Topology,
        options: TransportOptions,
        config: Config,
        transport: Transport,
        on_output: OutputCallback | None = None,
        on_status: StatusCallback | None = None,
        enable_logging: bool = True,
    ):
        self.topology = topology
        self.options = options
        self.config = config
        self.transport = transport
        self.on_output = on_output
        self.on_status = on_status
        self.enable_logging = enable_logging and not config.no_logs
        self.states: list[HostState] = []
        self._log_dir: Path | None = None

    def plan(self) -> list[Assignment]:
        """Return assignments in dispatch order: slaves, then masters, each in input order."""
        assignments: list[Assignment] = []

        for host in self.topology.slaves:
            assignments.append(Assignment(len(assignments), host, ROLES["slave"]))

        # Every master gets the whole list of internal addresses
        internals = tuple(self.topology.master_internals)
        if self.topology.masters:
            ROLES["master"].check(internals)
        for master in self.topology.masters:
            assignments.append(
                Assignment(
                    len(assignments),
                    master.external,
                    ROLES["master"],
                    args=internals,
                    internal=master.internal,
                )
            )

        return assignments

    def target_for(self, host: str) -> HostTarget:
        """Build the transport parameters for a host."""
        return HostTarget(host=host, login=self.options.login, identity=self.options.identity)

    def _setup_logging(self) -> None:
        """Set up log directory with timestamp."""
        if not self.enable_logging:
            return
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._log_dir = self.config.log_dir / timestamp
        self._log_dir.mkdir(parents=True, exist_ok=True)

        # Keep the inputs of the run next to its output
        if self.config.source_path and self.config.source_path.exists():
            shutil.copy(self.config.source_path, self._log_dir / "clusterstrap.yaml")
        (self._log_dir / "topology.txt").write_text(self.topology.render())

    def _log_file_for(self, assignment: Assignment) -> Path | None:
        if not self._log_dir:
            return None
        host = _UNSAFE_FILENAME.sub("_", assignment.host)
        return self._log_dir / f"{assignment.index:03d}_{assignment.role.name}_{host}.log"

    def _emit_output(self, state: HostState, line: str) -> None:
        """Emit output line for a host."""
        state.output_lines.append(line)

        if state.log_file:
            with open(state.log_file, "a") as f:
                f.write(line + "\n")

        if self.on_output:
            self.on_output(state.assignment.label, line)

    def _emit_status(self, state: HostState, status: HostStatus) -> None:
        """Emit status change for a host."""
        state.status = status
        if self.on_status:
            self.on_status(state.assignment.label, status)

    async def run_all(self) -> list[HostResult]:
        """Provision every host and return one result per assignment, in plan order.

        A failing host never stops the run.
        """
        plan = self.plan()
        self._setup_logging()

        self.states = [HostState(assignment=a, log_file=self._log_file_for(a)) for a in plan]

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def guarded(state: HostState) -> HostResult:
            async with semaphore:
                return await self._run_host(state)

        return list(await asyncio.gather(*(guarded(s) for s in self.states)))

    async def _run_host(self, state: HostState) -> HostResult:
        """Bundle the role for one host and drive the transport."""
        assignment = state.assignment
        target = self.target_for(assignment.host)
        payload = build_bundle(assignment.role.name, assignment.args, self.config.release).render()

        self._emit_status(state, HostStatus.CONNECTING)
        self._emit_output(state, f"Connecting to {target.destination} for '{assignment.role.name}'...")

        def on_line(line: str) -> None:
            if state.status is HostStatus.CONNECTING:
                self._emit_status(state, HostStatus.RUNNING)
            self._emit_output(state, line)

        try:
            status = await self.transport.run(target, payload, on_output=on_line)
        except asyncssh.Error as e:
            state.error_message = f"SSH error: {e}"
        except OSError as e:
            state.error_message = f"Connection error: {e}"
        except ValueError as e:
            # Unreadable keys and undecodable output
            state.error_message = f"Session error: {e}"
        except Exception as e:
            state.error_message = f"Unexpected error: {e!r}"
        else:
            state.exit_status = status
            if status != 0:
                state.error_message = f"'{assignment.role.name}' exited with status {status}"

        outcome = Outcome.from_status(state.exit_status)
        if outcome is Outcome.SUCCESS:
            self._emit_output(state, f"'{assignment.role.name}' completed")
            self._emit_status(state, HostStatus.SUCCESS)
        else:
            self._emit_output(state, f"ERROR: {state.error_message}")
            self._emit_status(state, HostStatus.FAILED)

        return HostResult(
            host=assignment.host,
            role=assignment.role.name,
            outcome=outcome,
            exit_status=state.exit_status,
            error=state.error_message,
        )
