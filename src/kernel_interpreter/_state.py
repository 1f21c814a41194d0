"""Persisted interpreter selection state and the stores backing it."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from python_discovery import ContentStore, DiskCache

if TYPE_CHECKING:
    from collections.abc import Generator

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)


@runtime_checkable
class StateStorage(Protocol):
    """Where the selection state and the legacy cached path live."""

    def selection(self) -> ContentStore: ...

    def legacy(self) -> ContentStore: ...


class StateContentStore(ContentStore):
    """
    Wraps a content store so that only JSON objects come back from :meth:`read`.

    The disk store drops files that do not parse; a document that parses to anything but an object is dropped here.
    """

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    def exists(self) -> bool:
        return self._store.exists()

    def read(self) -> dict | None:
        data = self._store.read()
        if data is None or isinstance(data, dict):
            return data
        _LOGGER.debug("discard malformed state %r", data)
        self._store.remove()
        return None

    def write(self, content: dict) -> None:
        self._store.write(content)

    def remove(self) -> None:
        self._store.remove()

    @contextmanager
    def locked(self) -> Generator[None]:
        with self._store.locked():
            yield


class DiskStateStorage:
    """File-system based state, kept in a :class:`python_discovery.DiskCache` rooted at ``<root>/state``."""

    def __init__(self, root: Path) -> None:
        self._cache = DiskCache(root / "state")

    def _store(self, key: str) -> StateContentStore:
        return StateContentStore(self._cache.py_info(Path(key)))

    def selection(self) -> StateContentStore:
        return self._store("selection")

    def legacy(self) -> StateContentStore:
        return self._store("legacy")


class MemoryContentStore(ContentStore):
    """Content store kept in process memory -- implements ContentStore protocol."""

    def __init__(self, content: dict | None = None) -> None:
        self._content = None if content is None else dict(content)

    def exists(self) -> bool:
        return self._content is not None

    def read(self) -> dict | None:
        return None if self._content is None else dict(self._content)

    def write(self, content: dict) -> None:
        self._content = dict(content)

    def remove(self) -> None:
        self._content = None

    @contextmanager
    def locked(self) -> Generator[None]:  # noqa: PLR6301
        yield


class MemoryStateStorage(StateStorage):
    """State storage that lives as long as the process -- implements StateStorage protocol."""

    def __init__(self) -> None:
        self._selection = MemoryContentStore()
        self._legacy = MemoryContentStore()

    def selection(self) -> MemoryContentStore:
        return self._selection

    def legacy(self) -> MemoryContentStore:
        return self._legacy


class SelectionStateStore:
    """The interpreter path chosen to run the kernel backend, persisted across sessions."""

    _PATH_KEY: Final[str] = "selected_python_path"
    _SET_KEY: Final[str] = "interpreter_set_at_least_once"

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    def _content(self) -> dict:
        if not self._store.exists():
            return {}
        return self._store.read() or {}

    @property
    def selected_python_path(self) -> str | None:
        value = self._content().get(self._PATH_KEY)
        return value if isinstance(value, str) and value else None

    @property
    def interpreter_set_at_least_once(self) -> bool:
        return bool(self._content().get(self._SET_KEY))

    def update_selected_python_path(self, path: str) -> None:
        with self._store.locked():
            self._store.write({self._PATH_KEY: path, self._SET_KEY: True})
        _LOGGER.debug("persisted selected interpreter %s", path)

    def clear(self) -> None:
        with self._store.locked():
            self._store.remove()


class LegacyPathCache:
    """Interpreter path left behind by an older release; read once, then dropped."""

    _PATH_KEY: Final[str] = "python_path"

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    def cached_interpreter_path(self) -> str | None:
        if not self._store.exists():
            return None
        value = (self._store.read() or {}).get(self._PATH_KEY)
        return value if isinstance(value, str) and value else None

    def store(self, path: str) -> None:
        with self._store.locked():
            self._store.write({self._PATH_KEY: path})

    def clear(self) -> None:
        try:
            with self._store.locked():
                self._store.remove()
        except Exception:  # noqa: BLE001
            _LOGGER.debug("failed to clear legacy interpreter cache", exc_info=True)


__all__ = [
    "ContentStore",
    "DiskStateStorage",
    "LegacyPathCache",
    "MemoryContentStore",
    "MemoryStateStorage",
    "SelectionStateStore",
    "StateContentStore",
    "StateStorage",
]
