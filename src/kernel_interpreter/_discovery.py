"""Interpreter lookup backed by ``python-discovery``."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Final

from python_discovery import PythonInfo, get_interpreter

from ._contracts import InterpreterSelector, InterpreterService

if TYPE_CHECKING:
    from collections.abc import Mapping

    from python_discovery import PyInfoCache

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
_SEPARATORS: Final[tuple[str, ...]] = tuple(sep for sep in (os.sep, os.altsep) if sep)


class DiscoveryInterpreterService(InterpreterService):
    """
    Resolve interpreters through ``python-discovery``.

    :param active: spec of the interpreter the workspace is configured with (a path, ``python3.12``, ``>=3.10``...);
        when absent the interpreter hosting this process is the active one
    :param cache: where interrogation results are cached between runs
    :param env: environment used for discovery and interrogation
    """

    def __init__(
        self,
        active: str | None = None,
        cache: PyInfoCache | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.active = active
        self._cache = cache
        self._env = os.environ if env is None else env

    async def get_active_interpreter(self) -> PythonInfo | None:
        return await asyncio.to_thread(self._active_interpreter)

    def _active_interpreter(self) -> PythonInfo | None:
        if self.active is None:
            return PythonInfo.current(self._cache)
        return self._find(self.active)

    async def find_interpreter(self, spec: str) -> PythonInfo | None:
        """Find the first interpreter satisfying *spec*, ``None`` when nothing does."""
        return await asyncio.to_thread(self._find, spec)

    def _find(self, spec: str) -> PythonInfo | None:
        result = get_interpreter(spec, cache=self._cache, env=self._env)
        if result is None:
            _LOGGER.info("no interpreter matches %r", spec)
        return result

    async def get_interpreter_details(self, path: str) -> PythonInfo | None:
        return await asyncio.to_thread(self._interpreter_details, path)

    def _interpreter_details(self, path: str) -> PythonInfo | None:
        if not Path(path).exists():
            _LOGGER.info("interpreter %s does not exist", path)
            return None
        return PythonInfo.from_exe(
            path,
            self._cache,
            raise_on_error=False,
            resolve_to_host=False,
            env=self._env,
        )


class ConfiguredInterpreterSelector(InterpreterSelector):
    """Non-interactive picker returning the interpreter named by a path or spec."""

    def __init__(self, interpreters: DiscoveryInterpreterService, python: str) -> None:
        self._interpreters = interpreters
        self._python = python

    async def select_interpreter(self) -> PythonInfo | None:
        if Path(self._python).is_absolute() or any(sep in self._python for sep in _SEPARATORS):
            return await self._interpreters.get_interpreter_details(str(Path(self._python).absolute()))
        return await self._interpreters.find_interpreter(self._python)


__all__ = [
    "ConfiguredInterpreterSelector",
    "DiscoveryInterpreterService",
]
