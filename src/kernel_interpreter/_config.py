"""Settings from the environment and wiring of the default collaborators."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final

from platformdirs import user_data_path
from python_discovery import DiskCache

from ._dependencies import DEFAULT_MODULES, SubprocessDependencyService
from ._discovery import ConfiguredInterpreterSelector, DiscoveryInterpreterService
from ._service import KernelInterpreterService
from ._state import DiskStateStorage, LegacyPathCache, SelectionStateStore

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._contracts import InterpreterSelector, TelemetryReporter
    from ._dependencies import Prompt
    from ._state import StateStorage

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)

ENV_STATE_DIR: Final[str] = "KERNEL_INTERPRETER_STATE_DIR"
ENV_PYTHON: Final[str] = "KERNEL_INTERPRETER_PYTHON"
ENV_MODULES: Final[str] = "KERNEL_INTERPRETER_MODULES"


def default_state_dir() -> Path:
    return user_data_path("kernel-interpreter")


@dataclass(frozen=True)
class Settings:
    """Where state lives, which interpreter is active and what the kernel backend must import."""

    state_dir: Path = field(default_factory=default_state_dir)
    active: str | None = None
    modules: tuple[str, ...] = DEFAULT_MODULES

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        state_dir = Path(env[ENV_STATE_DIR]).expanduser() if env.get(ENV_STATE_DIR) else default_state_dir()
        modules = tuple(m for raw in env.get(ENV_MODULES, "").split(",") if (m := raw.strip())) or DEFAULT_MODULES
        settings = cls(state_dir=state_dir, active=env.get(ENV_PYTHON) or None, modules=modules)
        _LOGGER.debug("settings %r", settings)
        return settings


def build_service(
    settings: Settings,
    *,
    selector: InterpreterSelector | None = None,
    python: str | None = None,
    prompt: Prompt | None = None,
    telemetry: TelemetryReporter | None = None,
    storage: StateStorage | None = None,
    env: Mapping[str, str] | None = None,
) -> KernelInterpreterService:
    """
    Wire a :class:`KernelInterpreterService` from the built-in collaborators.

    Unless a *selector* is given, selection picks the interpreter named by *python* (a path or spec), falling back
    to the active one.
    """
    storage = DiskStateStorage(settings.state_dir) if storage is None else storage
    interpreters = DiscoveryInterpreterService(settings.active, DiskCache(settings.state_dir / "discovery"), env)
    if selector is None:
        selector = ConfiguredInterpreterSelector(interpreters, python or settings.active or "python3")
    return KernelInterpreterService(
        legacy_cache=LegacyPathCache(storage.legacy()),
        selection_state=SelectionStateStore(storage.selection()),
        selector=selector,
        dependencies=SubprocessDependencyService(settings.modules, prompt=prompt, env=env),
        interpreters=interpreters,
        telemetry=telemetry,
    )


__all__ = [
    "ENV_MODULES",
    "ENV_PYTHON",
    "ENV_STATE_DIR",
    "Settings",
    "build_service",
    "default_state_dir",
]
