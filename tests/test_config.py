from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from kernel_interpreter import ConfiguredInterpreterSelector, KernelInterpreterService, MemoryStateStorage, Settings
from kernel_interpreter import _config as config_module
from kernel_interpreter._config import build_service, default_state_dir

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def test_settings_defaults() -> None:
    settings = Settings.from_env({})
    assert settings.state_dir == default_state_dir()
    assert settings.active is None
    assert settings.modules == ("jupyter", "notebook")


def test_settings_from_env(tmp_path: Path) -> None:
    settings = Settings.from_env({
        "KERNEL_INTERPRETER_STATE_DIR": str(tmp_path),
        "KERNEL_INTERPRETER_PYTHON": "python3.12",
        "KERNEL_INTERPRETER_MODULES": " jupyter_client, ,ipykernel ",
    })
    assert settings.state_dir == tmp_path
    assert settings.active == "python3.12"
    assert settings.modules == ("jupyter_client", "ipykernel")


def test_settings_state_dir_expands_user(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    settings = Settings.from_env({"KERNEL_INTERPRETER_STATE_DIR": "~/state"})
    assert settings.state_dir == tmp_path / "state"


def test_settings_are_frozen() -> None:
    with pytest.raises(AttributeError):
        Settings().active = "python"  # type: ignore[misc]


def test_build_service_wires_defaults(tmp_path: Path, mocker: MockerFixture) -> None:
    selector_cls = mocker.patch.object(
        config_module, "ConfiguredInterpreterSelector", wraps=ConfiguredInterpreterSelector
    )
    service = build_service(Settings(state_dir=tmp_path, active="python3.11"))

    assert isinstance(service, KernelInterpreterService)
    assert selector_cls.call_args[0][1] == "python3.11"


def test_build_service_python_overrides_active(tmp_path: Path, mocker: MockerFixture) -> None:
    selector_cls = mocker.patch.object(
        config_module, "ConfiguredInterpreterSelector", wraps=ConfiguredInterpreterSelector
    )
    build_service(Settings(state_dir=tmp_path, active="python3.11"), python="/opt/bin/python")
    assert selector_cls.call_args[0][1] == "/opt/bin/python"


@pytest.mark.asyncio
async def test_build_service_with_memory_storage(tmp_path: Path) -> None:
    storage = MemoryStateStorage()
    service = build_service(Settings(state_dir=tmp_path), storage=storage, selector=_NoChoice())

    assert await service.select_interpreter() is None
    assert not storage.selection().exists()
    assert not (tmp_path / "state").exists()


class _NoChoice:
    async def select_interpreter(self) -> None:
        return None
