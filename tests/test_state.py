from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from python_discovery import DiskCache

from kernel_interpreter import DiskStateStorage, LegacyPathCache, MemoryStateStorage, SelectionStateStore
from kernel_interpreter._state import ContentStore, MemoryContentStore, StateContentStore

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _disk_store(root: Path) -> tuple[StateContentStore, Path]:
    store = StateContentStore(DiskCache(root).py_info(Path("test")))
    store.write({})
    (file,) = root.rglob("*.json")
    return store, file


def test_state_content_store_read_valid_json(tmp_path: Path) -> None:
    store, _ = _disk_store(tmp_path)
    data = {"key": "value"}
    store.write(data)
    assert store.read() == data


def test_state_content_store_read_invalid_json(tmp_path: Path) -> None:
    store, file = _disk_store(tmp_path)
    file.write_text("not json", encoding="utf-8")
    assert store.read() is None
    assert not file.exists()


def test_state_content_store_read_non_object_json(tmp_path: Path) -> None:
    store, file = _disk_store(tmp_path)
    file.write_text("[1, 2]", encoding="utf-8")
    assert store.read() is None
    assert not store.exists()


def test_state_content_store_read_missing_file(tmp_path: Path) -> None:
    store, file = _disk_store(tmp_path)
    file.unlink()
    assert store.read() is None


def test_state_content_store_remove(tmp_path: Path) -> None:
    store, _ = _disk_store(tmp_path)
    store.write({"key": "value"})
    store.remove()
    assert not store.exists()
    store.remove()


def test_state_content_store_locked(tmp_path: Path) -> None:
    store, file = _disk_store(tmp_path)
    with store.locked():
        store.write({"key": "value"})
    assert file.with_suffix(".lock").exists()
    assert store.read() == {"key": "value"}


def test_state_content_store_is_content_store() -> None:
    assert isinstance(StateContentStore(MemoryContentStore()), ContentStore)


def test_memory_content_store_copies() -> None:
    content = {"key": "value"}
    store = MemoryContentStore(content)
    content["key"] = "changed"
    assert store.exists()
    assert store.read() == {"key": "value"}
    store.remove()
    assert store.read() is None
    with store.locked():
        store.write({"a": 1})
    assert store.read() == {"a": 1}


def test_storage_layout_on_disk(tmp_path: Path) -> None:
    storage = DiskStateStorage(tmp_path)
    SelectionStateStore(storage.selection()).update_selected_python_path("/bin/python3")
    LegacyPathCache(storage.legacy()).store("/old/python")
    assert len(list((tmp_path / "state").rglob("*.json"))) == 2


def test_memory_storage_keeps_stores() -> None:
    storage = MemoryStateStorage()
    assert isinstance(storage.selection(), ContentStore)
    assert storage.selection() is storage.selection()
    assert storage.legacy() is not storage.selection()


def test_selection_state_defaults(tmp_path: Path) -> None:
    state = SelectionStateStore(DiskStateStorage(tmp_path).selection())
    assert state.selected_python_path is None
    assert state.interpreter_set_at_least_once is False


def test_selection_state_survives_new_instance(tmp_path: Path) -> None:
    SelectionStateStore(DiskStateStorage(tmp_path).selection()).update_selected_python_path("/bin/python3")

    state = SelectionStateStore(DiskStateStorage(tmp_path).selection())

    assert state.selected_python_path == "/bin/python3"
    assert state.interpreter_set_at_least_once is True


def test_selection_state_ignores_bad_value() -> None:
    state = SelectionStateStore(MemoryContentStore({"selected_python_path": 3}))
    assert state.selected_python_path is None


def test_selection_state_clear() -> None:
    state = SelectionStateStore(MemoryContentStore())
    state.update_selected_python_path("/bin/python3")
    state.clear()
    assert state.selected_python_path is None
    assert state.interpreter_set_at_least_once is False


def test_legacy_cache_round_trip(tmp_path: Path) -> None:
    cache = LegacyPathCache(DiskStateStorage(tmp_path).legacy())
    assert cache.cached_interpreter_path() is None
    cache.store("/old/python")
    assert cache.cached_interpreter_path() == "/old/python"
    cache.clear()
    assert cache.cached_interpreter_path() is None


def test_legacy_cache_clear_never_raises(mocker: MockerFixture) -> None:
    store = MemoryContentStore({"python_path": "/old/python"})
    mocker.patch.object(store, "remove", side_effect=PermissionError)
    LegacyPathCache(store).clear()
