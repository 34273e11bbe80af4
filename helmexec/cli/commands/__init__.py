"""
Click command implementations for the helmexec CLI.

Each module corresponds to a helmexec command (e.g., diff.py implements
'helmexec diff'). Commands are registered with the main group by
register_commands() in helmexec.cli.
"""

from .decrypt import decrypt
from .diff import diff
from .list import list_releases
from .status import status
from .template import template
from .version import version

COMMANDS = [
    decrypt,
    diff,
    list_releases,
    status,
    template,
    version,
]

__all__ = [
    "COMMANDS",
    "decrypt",
    "diff",
    "list_releases",
    "status",
    "template",
    "version",
]
