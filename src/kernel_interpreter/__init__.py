"""Select and validate the Python interpreter that runs a notebook kernel backend."""

from __future__ import annotations

from importlib.metadata import version

from ._cancellation import race_cancellation
from ._config import Settings, build_service
from ._contracts import (
    DependencyResponse,
    DependencyService,
    InterpreterSelector,
    InterpreterService,
    TelemetryReporter,
)
from ._dependencies import SubprocessDependencyService
from ._discovery import ConfiguredInterpreterSelector, DiscoveryInterpreterService
from ._events import Disposable, Event, EventEmitter
from ._service import KernelInterpreterService
from ._state import (
    ContentStore,
    DiskStateStorage,
    LegacyPathCache,
    MemoryStateStorage,
    SelectionStateStore,
    StateStorage,
)
from ._telemetry import LoggingTelemetry, NoOpTelemetry

__version__ = version("kernel-interpreter")

__all__ = [
    "ConfiguredInterpreterSelector",
    "ContentStore",
    "DependencyResponse",
    "DependencyService",
    "DiscoveryInterpreterService",
    "DiskStateStorage",
    "Disposable",
    "Event",
    "EventEmitter",
    "InterpreterSelector",
    "InterpreterService",
    "KernelInterpreterService",
    "LegacyPathCache",
    "LoggingTelemetry",
    "MemoryStateStorage",
    "NoOpTelemetry",
    "SelectionStateStore",
    "Settings",
    "StateStorage",
    "SubprocessDependencyService",
    "TelemetryReporter",
    "__version__",
    "build_service",
    "race_cancellation",
]
