from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from python_discovery import PythonInfo

from kernel_interpreter import (
    DependencyResponse,
    KernelInterpreterService,
    LegacyPathCache,
    MemoryStateStorage,
    SelectionStateStore,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


@pytest.fixture(scope="session")
def current_info() -> PythonInfo:
    return PythonInfo()


@pytest.fixture
def make_info(current_info: PythonInfo) -> Callable[[str], PythonInfo]:
    def _make(executable: str) -> PythonInfo:
        info = PythonInfo.from_dict(current_info.to_dict())
        info.executable = executable
        return info

    return _make


class FakeInterpreters:
    def __init__(self) -> None:
        self.active: PythonInfo | None = None
        self.details: dict[str, PythonInfo] = {}
        self.calls: list[tuple[str, str | None]] = []
        self.block = asyncio.Event()
        self.blocking = False

    async def get_active_interpreter(self) -> PythonInfo | None:
        self.calls.append(("active", None))
        return self.active

    async def get_interpreter_details(self, path: str) -> PythonInfo | None:
        self.calls.append(("details", path))
        if self.blocking:
            await self.block.wait()
        return self.details.get(path)


class FakeDependencies:
    def __init__(self) -> None:
        self.installed: set[str] = set()
        self.responses: list[DependencyResponse] = []
        self.checked: list[str] = []

    async def are_dependencies_installed(self, interpreter: PythonInfo) -> bool:
        self.checked.append(interpreter.executable)
        return interpreter.executable in self.installed

    async def install_missing_dependencies(
        self,
        interpreter: PythonInfo,  # noqa: ARG002
        cancel: asyncio.Event | None = None,  # noqa: ARG002
    ) -> DependencyResponse:
        return self.responses.pop(0)


class FakeSelector:
    def __init__(self) -> None:
        self.choices: list[PythonInfo | None] = []
        self.block = asyncio.Event()
        self.blocking = False

    async def select_interpreter(self) -> PythonInfo | None:
        if self.blocking:
            await self.block.wait()
        return self.choices.pop(0)


class RecordingTelemetry:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, str]]] = []

    def send_event(self, name: str, properties: Mapping[str, str]) -> None:
        self.events.append((name, dict(properties)))

    @property
    def results(self) -> list[str]:
        return [props["result"] for _, props in self.events]


@pytest.fixture
def interpreters() -> FakeInterpreters:
    return FakeInterpreters()


@pytest.fixture
def dependencies() -> FakeDependencies:
    return FakeDependencies()


@pytest.fixture
def selector() -> FakeSelector:
    return FakeSelector()


@pytest.fixture
def telemetry() -> RecordingTelemetry:
    return RecordingTelemetry()


@pytest.fixture
def storage() -> MemoryStateStorage:
    return MemoryStateStorage()


@pytest.fixture
def service(
    storage: MemoryStateStorage,
    selector: FakeSelector,
    dependencies: FakeDependencies,
    interpreters: FakeInterpreters,
    telemetry: RecordingTelemetry,
) -> KernelInterpreterService:
    return KernelInterpreterService(
        legacy_cache=LegacyPathCache(storage.legacy()),
        selection_state=SelectionStateStore(storage.selection()),
        selector=selector,
        dependencies=dependencies,
        interpreters=interpreters,
        telemetry=telemetry,
    )
