"""
Process execution: the shell runner and its capture primitives.
"""

from .cancellation import ExecutionContext, background
from .capture import capture_output, live_output, new_execution_id
from .runner import ShellRunner, env_to_map, merge_env

__all__ = [
    "ExecutionContext",
    "ShellRunner",
    "background",
    "capture_output",
    "env_to_map",
    "live_output",
    "merge_env",
    "new_execution_id",
]
