from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from .lib.env import PATHS
from .pipeline import Step, StepStatus

DEFAULT_LOG_PATH = PATHS.log_default

STATUS_LABELS = {
    StepStatus.PENDING: "PENDING",
    StepStatus.RUNNING: "WAIT",
    StepStatus.SKIPPED: "SKIP",
    StepStatus.DONE: "OK",
    StepStatus.FAILED: "FAIL",
}


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    console_level: Optional[int] = logging.WARNING,
) -> str:
    """Configure logging.

    Everything goes to the log file; the console only gets warnings and up,
    since per-step status lines are printed separately.

    If the requested path is not writable, falls back to a file in the current
    working directory. Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_sdk_provisioner_configured", False):
        return getattr(logger, "_sdk_provisioner_log_path", log_path)

    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        chosen_path = log_path
    except OSError:
        fallback = str(Path.cwd() / "sdk-provisioner.log")
        file_handler = logging.FileHandler(fallback)
        chosen_path = fallback
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if console_level is not None:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter("  %(levelname)s: %(message)s"))
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_sdk_provisioner_configured", True)
    setattr(logger, "_sdk_provisioner_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path


class StatusPrinter:
    """Prints one aligned status line per step transition."""

    def __init__(self, stream: Optional[TextIO] = None, width: int = 70) -> None:
        self.stream = stream or sys.stdout
        self.width = width

    def __call__(self, step: Step, status: StepStatus) -> None:
        text = f"  {step.title} ({step.step_id})"
        self.stream.write(f"{text:<{self.width}}[{STATUS_LABELS[status]}]\n")
        self.stream.flush()
