"""Cluster topology parser.

The input is a small line format: one master per line (external address,
then internal address), a blank line, then one slave per line::

    # Mesos Master IP (external)   Mesos Master IP (internal)
    54.168.1.10                    192.168.1.10

    # Mesos Slave IPs (external)
    54.168.1.11
    54.168.1.12

Lines starting with ``#`` are comments. Trailing ``#`` text on a data line is
not a comment; it stays in the line's fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .errors import ParseError


class ParseMode(Enum):
    """Which section the parser is currently filling."""

    COLLECTING_MASTERS = "masters"
    COLLECTING_SLAVES = "slaves"


@dataclass(frozen=True)
class MasterEntry:
    """A master host and the address other cluster members reach it on."""

    external: str
    internal: str | None = None


@dataclass
class Topology:
    """Parsed cluster members, in input order."""

    masters: list[MasterEntry] = field(default_factory=list)
    slaves: list[str] = field(default_factory=list)

    @property
    def master_internals(self) -> list[str]:
        """Internal master addresses in input order, skipping absent ones."""
        return [m.internal for m in self.masters if m.internal is not None]

    def render(self) -> str:
        """Render back to the input format."""
        lines = [
            f"{m.external} {m.internal}" if m.internal is not None else m.external
            for m in self.masters
        ]
        lines.append("")
        lines.extend(self.slaves)
        return "\n".join(lines) + "\n"


def parse_topology(lines: Iterable[str]) -> Topology:
    """Parse a topology from an iterable of lines (e.g. ``sys.stdin``)."""
    topology = Topology()
    mode = ParseMode.COLLECTING_MASTERS

    for line in lines:
        stripped = line.strip()

        if stripped.startswith("#"):
            continue

        if not stripped:
            # The separator only counts once a master has been seen
            if topology.masters:
                mode = ParseMode.COLLECTING_SLAVES
            continue

        parts = stripped.split()
        if mode is ParseMode.COLLECTING_MASTERS:
            internal = parts[1] if len(parts) > 1 else None
            topology.masters.append(MasterEntry(external=parts[0], internal=internal))
        elif mode is ParseMode.COLLECTING_SLAVES:
            topology.slaves.append(parts[0])
        else:
            raise ParseError(f"Invalid parsing mode: {mode!r}. This is a bug.")

    return topology
