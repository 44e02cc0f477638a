"""The closed set of commands clusterstrap understands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import RoleError


@dataclass(frozen=True)
class Role:
    """A provisioning handler from the shell library, with its argument contract."""

    name: str
    remote: bool
    summary: str
    min_args: int = 0
    max_args: int | None = None

    def check(self, args: list[str] | tuple[str, ...]) -> tuple[str, ...]:
        """Validate the argument count and return the args as a tuple."""
        if len(args) < self.min_args:
            raise RoleError(
                f"'{self.name}' needs at least {self.min_args} argument(s), got {len(args)}"
            )
        if self.max_args is not None and len(args) > self.max_args:
            raise RoleError(
                f"'{self.name}' takes at most {self.max_args} argument(s), got {len(args)}"
            )
        return tuple(args)


ROLES: dict[str, Role] = {
    "master": Role(
        "master",
        remote=True,
        summary="Install the Aurora scheduler; args are the master internal IPs",
        min_args=1,
    ),
    "slave": Role(
        "slave",
        remote=True,
        summary="Install the Aurora executors and observer",
        max_args=0,
    ),
    "build": Role(
        "build",
        remote=False,
        summary="Build Aurora and package the release tarball locally",
        max_args=0,
    ),
}


class Command(Enum):
    """What a single invocation of clusterstrap does."""

    CLUSTER = "cluster"
    MASTER = "master"
    SLAVE = "slave"
    BUILD = "build"
    HELP = "help"

    @property
    def role(self) -> Role | None:
        return ROLES.get(self.value)


_HELP_TOKENS = {"-h", "--help", "help"}


def get_role(name: str) -> Role:
    """Look up a role by name."""
    try:
        return ROLES[name]
    except KeyError:
        raise RoleError(f"No such role: {name}") from None


def resolve_command(argv: list[str]) -> tuple[Command, list[str]]:
    """Pick the command from the first argument.

    Anything that is not a known command name selects cluster mode, and the
    whole argument vector is handed on as its options.
    """
    if not argv:
        return Command.CLUSTER, []

    head, rest = argv[0], list(argv[1:])
    if head in _HELP_TOKENS:
        return Command.HELP, rest
    if head == Command.CLUSTER.value:
        return Command.CLUSTER, rest
    if head in ROLES:
        return Command(head), rest
    return Command.CLUSTER, list(argv)
