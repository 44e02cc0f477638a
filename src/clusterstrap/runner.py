#!/usr/bin/env python3
"""Main entry point for clusterstrap."""

from __future__ import annotations

import asyncio
import sys
from typing import TextIO

from .bundle import build_bundle
from .config import Config, find_config
from .dispatcher import Dispatcher, HostStatus
from .errors import ClusterstrapError
from .options import resolve_options
from .roles import Command, get_role, resolve_command
from .topology import parse_topology
from .transport import HostTarget, LocalTransport, SSHTransport

USAGE = """\
Install Aurora on a Mesos cluster. Only a single Aurora scheduler master is
fully supported.

USAGE: clusterstrap [--ssh-key <path>] [--ssh-user <name>] < <cluster_config>
       clusterstrap master <internal-master-ip>...
       clusterstrap slave
       clusterstrap build

Cluster config example:

  # Mesos Master IP (external)   Mesos Master IP (internal)
  54.168.1.10                    192.168.1.10

  # Master and slave sections are separated by a blank line.
  # Leading and trailing blank lines are fine.
  # Lines starting with '#' are comments.
  # Mesos Slave IPs (external)
  54.168.1.11
  54.168.1.12
  54.168.1.13

Settings are read from $CLUSTERSTRAP_CONFIG or ./clusterstrap.yaml.
"""

# ANSI colors cycled across hosts
COLORS = tuple(f"\033[{code}m" for code in (36, 33, 35, 32, 34, 91, 96, 93))
RESET = "\033[0m"

STATUS_MARKERS = {
    HostStatus.CONNECTING: "--",
    HostStatus.SUCCESS: "++",
    HostStatus.FAILED: "!!",
}


def main(argv: list[str] | None = None, stdin: TextIO | None = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    stdin = sys.stdin if stdin is None else stdin

    command, rest = resolve_command(argv)
    if command is Command.HELP:
        print(USAGE, end="")
        return 0

    try:
        config = find_config()
        if command is Command.CLUSTER:
            return _run_cluster(config, rest, stdin)
        return _run_role(config, command, rest)
    except (FileNotFoundError, ClusterstrapError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _run_cluster(config: Config, argv: list[str], stdin: TextIO) -> int:
    """Provision every host read from stdin over SSH."""
    # Flags are checked before anything is read or dispatched
    options = resolve_options(argv)
    topology = parse_topology(stdin)

    if not topology.masters and not topology.slaves:
        print("No hosts in cluster config; nothing to do.", file=sys.stderr)
        return 0

    labels: dict[str, str] = {}

    def color_for(label: str) -> str:
        if label not in labels:
            labels[label] = COLORS[len(labels) % len(COLORS)]
        return labels[label]

    def on_output(label: str, line: str) -> None:
        print(f"{color_for(label)}[{label}]{RESET} {line}")

    def on_status(label: str, status: HostStatus) -> None:
        marker = STATUS_MARKERS.get(status)
        if marker:
            print(f"{color_for(label)}{marker} {label}{RESET}", file=sys.stderr)

    dispatcher = Dispatcher(
        topology,
        options,
        config,
        transport=SSHTransport(elevate=config.sudo),
        on_output=on_output,
        on_status=on_status,
    )

    results = asyncio.run(dispatcher.run_all())

    # Per-host failures are reported, not turned into a failing exit status
    failed_hosts = [r.host for r in results if not r.succeeded]
    if failed_hosts:
        print(f"\nFailed hosts: {', '.join(failed_hosts)}", file=sys.stderr)

    return 0


def _run_role(config: Config, command: Command, args: list[str]) -> int:
    """Run one role handler on this machine."""
    role = get_role(command.value)
    payload = build_bundle(role.name, role.check(args), config.release).render()

    def on_output(line: str) -> None:
        print(line, flush=True)

    transport = LocalTransport(elevate=config.sudo)
    status = asyncio.run(transport.run(HostTarget("localhost"), payload, on_output=on_output))
    if status is None:
        return 1
    # Signals show up as negative statuses
    return status if status >= 0 else 128 - status


if __name__ == "__main__":
    sys.exit(main())
