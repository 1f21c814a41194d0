"""Telemetry event names and the built-in reporters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from ._contracts import TelemetryReporter

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER: Final[logging.Logger] = logging.getLogger("kernel_interpreter.telemetry")

SELECT_KERNEL_INTERPRETER: Final[str] = "select_kernel_interpreter"

RESULT_SELECTED: Final[str] = "selected"
RESULT_NOT_SELECTED: Final[str] = "not_selected"
RESULT_INSTALLATION_CANCELLED: Final[str] = "installation_cancelled"


class LoggingTelemetry(TelemetryReporter):
    """Reporter writing events to the ``kernel_interpreter.telemetry`` logger."""

    def send_event(self, name: str, properties: Mapping[str, str]) -> None:  # noqa: PLR6301
        _LOGGER.info("telemetry %s %s", name, dict(properties))


class NoOpTelemetry(TelemetryReporter):
    """Reporter that drops every event."""

    def send_event(self, name: str, properties: Mapping[str, str]) -> None:
        pass


__all__ = [
    "RESULT_INSTALLATION_CANCELLED",
    "RESULT_NOT_SELECTED",
    "RESULT_SELECTED",
    "SELECT_KERNEL_INTERPRETER",
    "LoggingTelemetry",
    "NoOpTelemetry",
]
