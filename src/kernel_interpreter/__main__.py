"""Command line access to the kernel interpreter selection."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Final

from ._config import Settings, build_service
from ._contracts import DependencyResponse

if TYPE_CHECKING:
    from collections.abc import Sequence

    from python_discovery import PythonInfo

    from ._dependencies import Prompt

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
_ANSWERS: Final[dict[str, DependencyResponse]] = {
    "y": DependencyResponse.OK,
    "yes": DependencyResponse.OK,
    "s": DependencyResponse.SELECT_ANOTHER_INTERPRETER,
    "select": DependencyResponse.SELECT_ANOTHER_INTERPRETER,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kernel-interpreter", description=__doc__)
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase log verbosity")
    parser.add_argument("-q", "--quiet", action="store_true", help="only log errors")
    parser.add_argument("--state-dir", type=Path, default=None, help="where the selection is persisted")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show", help="print the interpreter used to run the kernel backend")
    select = sub.add_parser("select", help="select the interpreter used to run the kernel backend")
    select.add_argument("python", help="interpreter path or spec, e.g. python3.12")
    select.add_argument("--yes", action="store_true", help="install missing dependencies without asking")
    sub.add_parser("reset", help="forget the selected interpreter")
    return parser


def _setup_logging(verbose: int, *, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    else:
        level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


async def _ask(interpreter: PythonInfo, missing: list[str]) -> DependencyResponse:
    question = f"{interpreter.executable} is missing {', '.join(missing)}; install? [y]es/[s]elect another/[N]o: "
    try:
        answer = (await asyncio.to_thread(input, question)).strip().lower()
    except EOFError:
        _LOGGER.info("no answer on stdin, do not install")
        return DependencyResponse.CANCEL
    return _ANSWERS.get(answer, DependencyResponse.CANCEL)


async def _always_install(interpreter: PythonInfo, missing: list[str]) -> DependencyResponse:  # noqa: ARG001
    return DependencyResponse.OK


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "select":
        prompt: Prompt = _always_install if args.yes else _ask
        service = build_service(settings, python=args.python, prompt=prompt)
        interpreter = await service.select_interpreter()
    elif args.command == "reset":
        await build_service(settings).clear_selection()
        return 0
    else:
        interpreter = await build_service(settings).get_selected_interpreter()
    if interpreter is None:
        print("no interpreter selected", file=sys.stderr)  # noqa: T201
        return 1
    print(interpreter.executable)  # noqa: T201
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose, quiet=args.quiet)
    settings = Settings.from_env()
    if args.state_dir is not None:
        settings = replace(settings, state_dir=args.state_dir)
    _LOGGER.debug("run %s with state at %s", args.command, settings.state_dir)
    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
