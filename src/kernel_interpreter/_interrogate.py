"""Report which modules an interpreter can import, run as a subprocess interrogation script (stdlib only)."""

from __future__ import annotations

import importlib.util
import json
import sys


def find_modules(modules: list[str]) -> dict[str, bool]:
    result = {}
    for name in modules:
        try:
            result[name] = importlib.util.find_spec(name) is not None
        except (ImportError, ValueError):
            result[name] = False
    return result


def _main() -> None:  # pragma: no cover
    argv = sys.argv[1:]

    if len(argv) >= 1:
        start_cookie = argv[0]
        argv = argv[1:]
    else:
        start_cookie = ""

    if len(argv) >= 1:
        end_cookie = argv[0]
        argv = argv[1:]
    else:
        end_cookie = ""

    result = json.dumps(find_modules(argv))
    sys.stdout.write("".join((start_cookie[::-1], result, end_cookie[::-1])))
    sys.stdout.flush()


if __name__ == "__main__":
    _main()
