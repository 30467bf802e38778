from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        super().__init__(f"Command failed ({returncode}): {fmt_argv(argv)}\n{stderr}".rstrip())
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    replace_env: bool = False,
    cwd: str | None = None,
    input_text: str | None = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command (never the stdin payload, which may hold a password).
    - Captures stdout/stderr; both are logged at DEBUG.
    - replace_env=True runs with exactly ``env`` instead of layering it on os.environ.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    if replace_env:
        run_env = dict(env or {})
    else:
        run_env = dict(os.environ, **(env or {}))

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=run_env,
        )
    except FileNotFoundError as e:
        # Missing executable is reported like any other failing command.
        raise CommandError(argv_list, 127, str(e)) from e

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise CommandError(argv_list, p.returncode, p.stderr)

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def best_effort(label: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
    """Call ``fn`` and tolerate its failure.

    Only for sub-operations whose failure must not abort the step. Every call site
    names what it tolerates via ``label``.
    """

    try:
        return fn(*args, **kwargs)
    except (CommandError, OSError) as e:
        logger.warning("Non-fatal: %s failed: %s", label, e)
        return None
