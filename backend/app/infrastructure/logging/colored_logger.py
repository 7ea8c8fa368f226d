"""Stage logger for the spreadsheet import pipeline.

Each line carries an ANSI-colored stage tag so a long import can be followed
in the console:

    READ      yellow   workbook parsing
    VALIDATE  blue     rejected rows
    PERSIST   green    rows written through the store
    RELOAD    magenta  store refresh after the import
    COMPLETE  green    final summary
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str


class PipelineStage:
    READ = Stage("READ", "\033[93m")
    VALIDATE = Stage("VALIDATE", "\033[94m")
    PERSIST = Stage("PERSIST", "\033[92m")
    RELOAD = Stage("RELOAD", "\033[95m")
    ERROR = Stage("ERROR", "\033[91m")
    COMPLETE = Stage("COMPLETE", "\033[92m")


def _context(values: dict[str, Any], style: str = _GRAY) -> str:
    if not values:
        return ""
    joined = ", ".join(f"{key}={value}" for key, value in values.items())
    return f" {style}[{joined}]{_RESET}"


class PipelineLogger:
    """Writes stage-tagged lines to the logger named after the component.

    Usage:
        log = PipelineLogger("RecordImportService")
        with log.timed_step(PipelineStage.READ, "Reading archivos.xlsx"):
            rows = read_import_rows(content)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def _tag(self, stage: Stage) -> str:
        return f"{stage.color}{_BOLD}[{stage.label:<8}]{_RESET}"

    def step_start(self, stage: Stage, message: str, **context: Any) -> None:
        self._logger.info("%s %s...%s", self._tag(stage), message, _context(context))

    def step_complete(self, stage: Stage, message: str, **context: Any) -> None:
        self._logger.info("%s %s (done)%s", self._tag(stage), message, _context(context))

    def step_error(self, stage: Stage, message: str, error: Exception | None = None) -> None:
        reason = f" {_DIM}{type(error).__name__}: {error}{_RESET}" if error else ""
        self._logger.error("%s %s%s", self._tag(PipelineStage.ERROR), f"{stage.label.lower()}: {message}", reason)

    def detail(self, message: str, **context: Any) -> None:
        self._logger.info("    %s%s%s%s", _GRAY, message, _RESET, _context(context, _DIM))

    def stats(self, **counts: Any) -> None:
        self._logger.info("    %stotals%s%s", _GRAY, _RESET, _context(counts))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **context: Any):
        """Start/complete lines around a block; a failure is logged and re-raised."""
        self.step_start(stage, message, **context)
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - started:.2f}s", error=exc)
            raise
        self.step_complete(stage, f"{message} in {time.perf_counter() - started:.2f}s")
