"""Package a role invocation into a self-contained shell script.

The script carries the whole handler library, so helpers called by a role
are always present on the target. Nothing beyond ``bash`` is assumed there.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources

from .config import ReleaseSettings

BUNDLE_VERSION = 1
STRICT_MODE = "set -o errexit -o nounset -o pipefail"
LIBRARY_RESOURCE = "lib/handlers.sh"


@lru_cache(maxsize=None)
def handler_library() -> str:
    """Return the source of the packaged handler library."""
    return resources.files("clusterstrap").joinpath(LIBRARY_RESOURCE).read_text(encoding="utf-8")


@dataclass(frozen=True)
class Bundle:
    """One role invocation ready to be piped into a remote shell."""

    library: str
    assignments: tuple[str, ...]
    command: str
    args: tuple[str, ...] = ()
    strict_directive: str = STRICT_MODE

    def render(self) -> str:
        """Render the script text."""
        globals_call = " ".join(["globals", *(shlex.quote(a) for a in self.assignments)])
        return "\n".join(
            [
                f"# clusterstrap bundle v{BUNDLE_VERSION}",
                self.library.rstrip("\n"),
                self.strict_directive,
                globals_call,
                shlex.join([self.command, *self.args]),
                "",
            ]
        )


def build_bundle(
    command: str,
    args: list[str] | tuple[str, ...],
    release: ReleaseSettings,
    library: str | None = None,
) -> Bundle:
    """Bundle ``command args`` together with the library and release settings."""
    return Bundle(
        library=handler_library() if library is None else library,
        assignments=tuple(release.to_assignments()),
        command=command,
        args=tuple(args),
    )
