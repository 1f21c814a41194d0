"""Check and install the kernel backend dependencies of an interpreter via subprocess interrogation."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import pkgutil
import secrets
import subprocess  # noqa: S404
import sys
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from shlex import quote
from subprocess import Popen  # noqa: S404
from typing import TYPE_CHECKING, Final

from ._cancellation import race_cancellation
from ._contracts import DependencyResponse, DependencyService

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Generator, Iterable, Mapping, Sequence

    from python_discovery import PythonInfo

    Prompt = Callable[[PythonInfo, list[str]], Awaitable[DependencyResponse]]

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)

DEFAULT_MODULES: Final[tuple[str, ...]] = ("jupyter", "notebook")
COOKIE_LENGTH: Final[int] = 32
TERMINATE_TIMEOUT: Final[float] = 5
_DISTRIBUTIONS: Final[dict[str, str]] = {
    "jupyter": "jupyter",
    "notebook": "notebook",
    "jupyter_client": "jupyter-client",
    "jupyter_server": "jupyter-server",
    "nbformat": "nbformat",
    "ipykernel": "ipykernel",
}


def gen_cookie() -> str:
    return secrets.token_hex(COOKIE_LENGTH // 2)


def distribution_name(module: str) -> str:
    """The package index name to install for an importable top-level *module*."""
    return _DISTRIBUTIONS.get(module, module.replace("_", "-"))


def pip_install_command(exe: str, modules: Iterable[str]) -> list[str]:
    return [exe, "-m", "pip", "install", *(distribution_name(name) for name in modules)]


@contextmanager
def _resolve_interrogate_script() -> Generator[Path]:
    script = Path(Path(__file__).resolve()).parent / "_interrogate.py"
    if script.is_file():
        yield script
    else:
        data = pkgutil.get_data(__package__ or __name__, "_interrogate.py")
        if data is None:
            msg = "cannot locate _interrogate.py for subprocess interrogation"
            raise FileNotFoundError(msg)
        fd, tmp = tempfile.mkstemp(suffix=".py")
        try:
            os.write(fd, data)
            os.close(fd)
            yield Path(tmp)
        finally:
            Path(tmp).unlink()


def _extract_between_cookies(out: str, start_cookie: str, end_cookie: str) -> str:
    """Extract payload between reversed cookie markers, forwarding any surrounding output to stdout."""
    out_starts = out.find(start_cookie[::-1])
    if out_starts > -1:
        if pre_cookie := out[:out_starts]:
            sys.stdout.write(pre_cookie)
        out = out[out_starts + COOKIE_LENGTH :]
    out_ends = out.find(end_cookie[::-1])
    if out_ends > -1:
        if post_cookie := out[out_ends + COOKIE_LENGTH :]:
            sys.stdout.write(post_cookie)
        out = out[:out_ends]
    return out


def _subprocess_env(env: Mapping[str, str]) -> dict[str, str]:
    result = dict(env)
    result.pop("__PYVENV_LAUNCHER__", None)
    result["PYTHONUTF8"] = "1"
    return result


def _run(cmd: list[str], env: Mapping[str, str]) -> tuple[int, str, str]:
    env = _subprocess_env(env)
    _LOGGER.debug("run %s", LogCmd(cmd))
    try:
        process = Popen(  # noqa: S603
            cmd,
            universal_newlines=True,
            stdin=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdout=subprocess.PIPE,
            env=env,
            encoding="utf-8",
            errors="backslashreplace",
        )
        out, err = process.communicate()
        code = process.returncode
    except OSError as os_error:
        out, err, code = "", os_error.strerror, os_error.errno
    return code, out, err


async def _run_async(cmd: list[str], env: Mapping[str, str]) -> tuple[int, str, str]:
    """Like :func:`_run`, but the child is terminated when the awaiting task gets cancelled."""
    _LOGGER.debug("run %s", LogCmd(cmd))
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_subprocess_env(env),
        )
    except OSError as os_error:
        return os_error.errno, "", os_error.strerror
    try:
        out, err = await process.communicate()
    except asyncio.CancelledError:
        await _stop(process, cmd)
        raise
    return process.returncode, out.decode("utf-8", "backslashreplace"), err.decode("utf-8", "backslashreplace")


async def _stop(process: asyncio.subprocess.Process, cmd: list[str]) -> None:
    _LOGGER.debug("terminate %s", LogCmd(cmd))
    with suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), TERMINATE_TIMEOUT)
    except asyncio.TimeoutError:
        _LOGGER.debug("kill %s", LogCmd(cmd))
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()


def interrogate_modules(exe: str, modules: Sequence[str], env: Mapping[str, str]) -> dict[str, bool]:
    """Ask the interpreter at *exe* which of *modules* it can import."""
    start_cookie = gen_cookie()
    end_cookie = gen_cookie()
    with _resolve_interrogate_script() as script:
        code, out, err = _run([exe, str(script), start_cookie, end_cookie, *modules], env)
    if code != 0:
        msg = f"{exe} with code {code}{f' out: {out!r}' if out else ''}{f' err: {err!r}' if err else ''}"
        raise RuntimeError(f"failed to interrogate {msg}")
    out = _extract_between_cookies(out, start_cookie, end_cookie)
    try:
        result = json.loads(out)
    except json.JSONDecodeError as exc:
        msg = f"{exe} returned invalid JSON (exit code {code}){f', stderr: {err!r}' if err else ''}"
        raise RuntimeError(msg) from exc
    return {name: bool(result.get(name)) for name in modules}


class LogCmd:
    def __init__(self, cmd: list[str]) -> None:
        self.cmd = cmd

    def __repr__(self) -> str:
        return " ".join(quote(str(c)) for c in self.cmd)


class SubprocessDependencyService(DependencyService):
    """
    Dependency service that interrogates the interpreter in a subprocess and installs with ``pip``.

    :param modules: top-level modules the kernel backend must be able to import
    :param prompt: coroutine asked for consent before installing; answering anything but
        :attr:`DependencyResponse.OK` is handed back to the caller unchanged. Without a prompt nothing gets installed
        and the user is asked to pick another interpreter.
    :param env: environment for the subprocesses
    """

    def __init__(
        self,
        modules: Iterable[str] = DEFAULT_MODULES,
        prompt: Prompt | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.modules = tuple(modules)
        self._prompt = prompt
        self._env = os.environ if env is None else env
        self._satisfied: set[str] = set()

    async def missing_dependencies(self, interpreter: PythonInfo) -> list[str]:
        found = await asyncio.to_thread(interrogate_modules, str(interpreter.executable), self.modules, self._env)
        return [name for name in self.modules if not found[name]]

    async def are_dependencies_installed(self, interpreter: PythonInfo) -> bool:
        exe = str(interpreter.executable)
        if exe in self._satisfied:
            return True
        try:
            missing = await self.missing_dependencies(interpreter)
        except RuntimeError as exception:
            _LOGGER.info("cannot check dependencies of %s: %s", exe, exception)
            return False
        if missing:
            _LOGGER.info("%s is missing %s", exe, ", ".join(missing))
            return False
        self._satisfied.add(exe)
        return True

    async def install_missing_dependencies(
        self,
        interpreter: PythonInfo,
        cancel: asyncio.Event | None = None,
    ) -> DependencyResponse:
        exe = str(interpreter.executable)
        if exe in self._satisfied:
            return DependencyResponse.OK
        try:
            missing = await race_cancellation(self.missing_dependencies(interpreter), cancel)
        except RuntimeError as exception:
            _LOGGER.info("cannot check dependencies of %s: %s", exe, exception)
            return DependencyResponse.SELECT_ANOTHER_INTERPRETER
        if missing is None:
            return DependencyResponse.CANCEL
        if not missing:
            self._satisfied.add(exe)
            return DependencyResponse.OK
        if self._prompt is None:
            _LOGGER.info("%s is missing %s and no installer prompt is set", exe, ", ".join(missing))
            return DependencyResponse.SELECT_ANOTHER_INTERPRETER
        answer = await race_cancellation(self._prompt(interpreter, missing), cancel, DependencyResponse.CANCEL)
        if answer is not DependencyResponse.OK:
            return answer
        return await race_cancellation(self._install(interpreter, missing), cancel, DependencyResponse.CANCEL)

    async def _install(self, interpreter: PythonInfo, missing: list[str]) -> DependencyResponse:
        exe = str(interpreter.executable)
        cmd = pip_install_command(exe, missing)
        _LOGGER.info("install %s into %s", ", ".join(missing), exe)
        code, out, err = await _run_async(cmd, self._env)
        if code != 0:
            _LOGGER.warning("installing into %s failed with code %s: %s", exe, code, err or out)
            return DependencyResponse.CANCEL
        if await self.are_dependencies_installed(interpreter):
            return DependencyResponse.OK
        _LOGGER.warning("%s still misses dependencies after install", exe)
        return DependencyResponse.CANCEL


__all__ = [
    "DEFAULT_MODULES",
    "LogCmd",
    "SubprocessDependencyService",
    "distribution_name",
    "interrogate_modules",
    "pip_install_command",
]
