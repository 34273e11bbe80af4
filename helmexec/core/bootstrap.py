"""
Application bootstrap for helmexec.

Registers the logger and the shell runner in the DI container. Library
users who wire their own collaborators never need to call this.
"""

from __future__ import annotations

from .container import ServiceContainer, get_container
from .interfaces.logger import ILogger
from .interfaces.runner import IRunner
from .settings import HelmexecSettings, load_settings

_initialized = False


def bootstrap(settings: HelmexecSettings | None = None) -> ServiceContainer:
    """
    Bootstrap helmexec.

    Args:
        settings: Pre-loaded settings (loaded from the environment if omitted)

    Returns:
        Initialized ServiceContainer
    """
    global _initialized

    container = get_container()

    if _initialized:
        return container

    if settings is None:
        settings = load_settings()

    _register_core_services(container, settings)

    _initialized = True
    return container


def _register_core_services(container: ServiceContainer, settings: HelmexecSettings) -> None:
    """Register core application services."""
    from ..services.execution.runner import ShellRunner
    from ..services.logging import HelmexecLogger

    def create_logger() -> ILogger:
        return HelmexecLogger(
            level=settings.logging.level,
            console_enabled=settings.logging.console,
            log_file=settings.logging.file,
        )

    container.register_singleton(ILogger, factory=create_logger)  # type: ignore[type-abstract]

    def create_runner() -> IRunner:
        return ShellRunner(
            dir=settings.runner.working_dir,
            strip_args_values_on_exit_error=settings.runner.strip_args_values_on_exit_error,
            logger=container.resolve(ILogger),  # type: ignore[type-abstract]
            disable_unique_ids=settings.disable_runner_unique_id,
        )

    container.register_singleton(IRunner, factory=create_runner)  # type: ignore[type-abstract]


def reset() -> None:
    """
    Reset the application state.

    Useful for testing to ensure clean state between tests.
    """
    global _initialized
    ServiceContainer.reset()
    _initialized = False


def is_initialized() -> bool:
    """Check if the application has been bootstrapped."""
    return _initialized
