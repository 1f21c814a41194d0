"""Select, validate and remember the interpreter that runs the notebook kernel backend."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Final

from ._cancellation import race_cancellation
from ._contracts import DependencyResponse
from ._events import Event, EventEmitter
from ._telemetry import (
    RESULT_INSTALLATION_CANCELLED,
    RESULT_NOT_SELECTED,
    RESULT_SELECTED,
    SELECT_KERNEL_INTERPRETER,
    LoggingTelemetry,
)

if TYPE_CHECKING:
    from python_discovery import PythonInfo

    from ._contracts import DependencyService, InterpreterSelector, InterpreterService, TelemetryReporter
    from ._state import LegacyPathCache, SelectionStateStore

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)


class KernelInterpreterService:
    """
    Tracks the interpreter configured to run the kernel backend.

    The selection is looked up lazily: first from the path an older release cached, then from the persisted
    selection, and finally from the active interpreter when it already has every dependency installed.
    """

    def __init__(  # noqa: PLR0913
        self,
        legacy_cache: LegacyPathCache,
        selection_state: SelectionStateStore,
        selector: InterpreterSelector,
        dependencies: DependencyService,
        interpreters: InterpreterService,
        telemetry: TelemetryReporter | None = None,
    ) -> None:
        self._legacy_cache = legacy_cache
        self._selection_state = selection_state
        self._selector = selector
        self._dependencies = dependencies
        self._interpreters = interpreters
        self._telemetry = LoggingTelemetry() if telemetry is None else telemetry
        self._selected_interpreter: PythonInfo | None = None
        self._selected_interpreter_path: str | None = None
        self._on_did_change_interpreter: EventEmitter[PythonInfo] = EventEmitter()

    @property
    def on_did_change_interpreter(self) -> Event[PythonInfo]:
        return self._on_did_change_interpreter.event

    async def get_selected_interpreter(self, cancel: asyncio.Event | None = None) -> PythonInfo | None:
        """Get the interpreter configured to run the kernel backend, ``None`` if there is none or *cancel* fired."""
        if self._selected_interpreter is not None:
            return self._selected_interpreter

        interpreter = await race_cancellation(self._interpreter_from_legacy_cache(), cancel)
        if interpreter is not None:
            return interpreter

        python_path = self._selected_interpreter_path or await asyncio.to_thread(self._persisted_python_path)
        if not python_path:
            interpreter = await self._interpreters.get_active_interpreter()
            if interpreter is None:
                _LOGGER.debug("no active interpreter")
                return None
            if await self._dependencies.are_dependencies_installed(interpreter):
                await self._set_as_selected(interpreter)
                return interpreter
            _LOGGER.info("active interpreter %s lacks kernel dependencies", interpreter.executable)
            return None

        details = await race_cancellation(self._interpreters.get_interpreter_details(python_path), cancel)
        if details is not None:
            self._selected_interpreter = details
        return details

    async def select_interpreter(self, cancel: asyncio.Event | None = None) -> PythonInfo | None:
        """
        Pick an interpreter and make sure it can run the kernel backend.

        Once the dependencies are in place the interpreter is persisted; when the user asks for a different one the
        picker is shown again.
        """
        while True:
            interpreter = await race_cancellation(self._selector.select_interpreter(), cancel)
            if interpreter is None:
                self._send_selection_event(RESULT_NOT_SELECTED)
                return None

            result = await self._dependencies.install_missing_dependencies(interpreter, cancel)
            if result is DependencyResponse.OK:
                await self._set_as_selected(interpreter)
                return interpreter
            if result is DependencyResponse.CANCEL:
                self._send_selection_event(RESULT_INSTALLATION_CANCELLED)
                return None
            _LOGGER.info("%s rejected, select another interpreter", interpreter.executable)

    async def clear_selection(self) -> None:
        """Forget the selection, in memory and persisted."""
        self._selected_interpreter = None
        self._selected_interpreter_path = None
        await asyncio.to_thread(self._selection_state.clear)

    def dispose(self) -> None:
        self._on_did_change_interpreter.dispose()

    async def _interpreter_from_legacy_cache(self) -> PythonInfo | None:
        python_path = await asyncio.to_thread(self._legacy_cache.cached_interpreter_path)
        if not python_path:
            return None
        try:
            interpreter = await self._interpreters.get_interpreter_details(python_path)
            if interpreter is None:
                return None
            if await self._dependencies.are_dependencies_installed(interpreter):
                await self._set_as_selected(interpreter)
                return interpreter
            _LOGGER.info("ignore interpreter %s cached by an older release", python_path)
            return None
        finally:
            await asyncio.to_thread(self._legacy_cache.clear)

    def _persisted_python_path(self) -> str | None:
        return self._selection_state.selected_python_path

    async def _set_as_selected(self, interpreter: PythonInfo) -> None:
        self._selected_interpreter = interpreter
        self._on_did_change_interpreter.fire(interpreter)
        self._selected_interpreter_path = str(interpreter.executable)
        await asyncio.to_thread(self._selection_state.update_selected_python_path, self._selected_interpreter_path)
        _LOGGER.info("selected %s to run the kernel backend", self._selected_interpreter_path)
        self._send_selection_event(RESULT_SELECTED)

    def _send_selection_event(self, result: str) -> None:
        self._telemetry.send_event(SELECT_KERNEL_INTERPRETER, {"result": result})


__all__ = [
    "KernelInterpreterService",
]
