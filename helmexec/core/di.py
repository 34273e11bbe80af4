"""
Dependency injection helpers for helmexec.

Components accept their collaborators explicitly and fall back to the
container only when none was given.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


def resolve_or_default(
    interface: type[T],
    default_factory: Callable[[], T],
) -> T:
    """Resolve a service from the container or create a default.

    Args:
        interface: The interface/protocol type to resolve
        default_factory: Callable that creates the default implementation

    Returns:
        Resolved service instance or default

    Example:
        >>> from helmexec.core.interfaces.logger import ILogger
        >>> from helmexec.services.logging import NullLogger
        >>> logger = resolve_or_default(ILogger, NullLogger)
    """
    from .container import get_container

    instance = get_container().try_resolve(interface)
    if instance is not None:
        return instance
    return default_factory()
