"""
Service container for helmexec.

Holds the process-wide logger and runner that bootstrap() registers, so
facades built without explicit collaborators share one output log pump.
"""

from collections.abc import Callable
from typing import Optional, TypeVar

from dependency_injector import providers

T = TypeVar("T")


class ServiceContainer:
    """
    Interface-to-provider registry backed by dependency-injector.

    Only singletons are registered: a runner owns a log consumer thread,
    and a second runner per resolve would start a second one.
    """

    _instance: Optional["ServiceContainer"] = None

    def __init__(self) -> None:
        self._providers: dict[type, providers.Provider] = {}

    @classmethod
    def get_instance(cls) -> "ServiceContainer":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget every registration (tests call this between cases)."""
        cls._instance = None

    def register_singleton(
        self,
        interface: type[T],
        implementation: T | None = None,
        factory: Callable[[], T] | None = None,
    ) -> None:
        """
        Register ``interface`` as a ready instance or a lazily built one.

        Raises:
            ValueError: If neither ``implementation`` nor ``factory`` is given
        """
        if implementation is not None:
            self._providers[interface] = providers.Object(implementation)
        elif factory is not None:
            self._providers[interface] = providers.Singleton(factory)
        else:
            raise ValueError(f"no implementation or factory given for {interface.__name__}")

    def resolve(self, interface: type[T]) -> T:
        """
        Raises:
            KeyError: If ``interface`` was never registered
        """
        provider = self._providers.get(interface)
        if provider is None:
            raise KeyError(f"{interface.__name__} is not registered; call bootstrap() first")
        return provider()

    def try_resolve(self, interface: type[T]) -> T | None:
        provider = self._providers.get(interface)
        return provider() if provider is not None else None


def get_container() -> ServiceContainer:
    return ServiceContainer.get_instance()
