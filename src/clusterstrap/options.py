"""Resolve SSH options from the trailing command-line arguments."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import OptionsError


@dataclass(frozen=True)
class TransportOptions:
    """How to reach cluster hosts."""

    identity: Path | None = None
    login: str | None = None


_FLAGS = {
    "--ssh-key": "identity",
    "--ssh-user": "login",
}


def resolve_options(argv: list[str]) -> TransportOptions:
    """Parse ``--ssh-key`` and ``--ssh-user``; other positional tokens are ignored."""
    values: dict[str, str] = {}

    i = 0
    while i < len(argv):
        token = argv[i]
        i += 1
        if not token.startswith("--"):
            continue

        flag, sep, inline_value = token.partition("=")
        if flag not in _FLAGS:
            raise OptionsError(f"No such option: {token}")

        if sep:
            if not inline_value:
                raise OptionsError(f"Missing value for flag {flag}")
            value = inline_value
        elif i < len(argv):
            value = argv[i]
            i += 1
        else:
            raise OptionsError(f"Missing value for flag {flag}")

        values[_FLAGS[flag]] = value

    identity = values.get("identity")
    return TransportOptions(
        identity=Path(identity).expanduser() if identity else None,
        login=values.get("login") or None,
    )
