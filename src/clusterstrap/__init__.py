"""clusterstrap: Bootstrap an Aurora/Mesos cluster over SSH from one control host."""

from .bundle import Bundle, build_bundle
from .config import Config, ReleaseSettings, find_config, load_config
from .dispatcher import Dispatcher, HostResult, HostStatus
from .options import TransportOptions, resolve_options
from .roles import ROLES, Command, Role, resolve_command
from .topology import MasterEntry, ParseMode, Topology, parse_topology
from .transport import HostTarget, LocalTransport, Outcome, SSHTransport, Transport

__all__ = [
    "Bundle",
    "build_bundle",
    "Config",
    "ReleaseSettings",
    "find_config",
    "load_config",
    "Dispatcher",
    "HostResult",
    "HostStatus",
    "TransportOptions",
    "resolve_options",
    "ROLES",
    "Command",
    "Role",
    "resolve_command",
    "MasterEntry",
    "ParseMode",
    "Topology",
    "parse_topology",
    "HostTarget",
    "LocalTransport",
    "Outcome",
    "SSHTransport",
    "Transport",
]
