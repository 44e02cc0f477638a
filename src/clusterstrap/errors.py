"""Exceptions raised by clusterstrap."""

from __future__ import annotations


class ClusterstrapError(ValueError):
    """Base class for errors that abort a run before any host is touched."""


class ConfigError(ClusterstrapError):
    """The settings file is malformed."""


class ParseError(ClusterstrapError):
    """The topology parser reached a state it cannot handle."""


class OptionsError(ClusterstrapError):
    """A command-line flag is unknown or incomplete."""


class RoleError(ClusterstrapError):
    """A role was invoked with the wrong arguments."""
