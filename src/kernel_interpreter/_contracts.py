"""Protocols for the collaborators the selection service orchestrates."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping

    from python_discovery import PythonInfo


class DependencyResponse(Enum):
    """Outcome of making sure an interpreter can run the kernel backend."""

    OK = "ok"
    SELECT_ANOTHER_INTERPRETER = "select_another_interpreter"
    CANCEL = "cancel"


@runtime_checkable
class InterpreterService(Protocol):
    """Looks up interpreters installed on the machine."""

    async def get_active_interpreter(self) -> PythonInfo | None: ...

    async def get_interpreter_details(self, path: str) -> PythonInfo | None: ...


@runtime_checkable
class DependencyService(Protocol):
    """Checks for, and installs, the packages the kernel backend needs."""

    async def are_dependencies_installed(self, interpreter: PythonInfo) -> bool: ...

    async def install_missing_dependencies(
        self,
        interpreter: PythonInfo,
        cancel: asyncio.Event | None = None,
    ) -> DependencyResponse: ...


@runtime_checkable
class InterpreterSelector(Protocol):
    """Lets the user pick an interpreter."""

    async def select_interpreter(self) -> PythonInfo | None: ...


@runtime_checkable
class TelemetryReporter(Protocol):
    def send_event(self, name: str, properties: Mapping[str, str]) -> None: ...


__all__ = [
    "DependencyResponse",
    "DependencyService",
    "InterpreterSelector",
    "InterpreterService",
    "TelemetryReporter",
]
