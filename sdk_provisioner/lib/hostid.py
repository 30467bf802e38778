from __future__ import annotations

import logging
import re
from typing import Optional

from .command import best_effort
from .env import PATHS
from .privilege import ExecutionContext

logger = logging.getLogger(__name__)

_CMD_RE = re.compile(r"cmd", re.IGNORECASE)


def parse_windows_user(raw: str) -> Optional[str]:
    """Extract the user name from ``cmd.exe /C echo %USERNAME%`` output.

    cmd.exe launched from a Linux working directory prints a UNC warning and
    a fallback-path notice before the answer; those lines are dropped.
    """

    lines = []
    for line in raw.replace("\r", "").splitlines():
        if "\\" in line or _CMD_RE.search(line) or not line.strip():
            continue
        lines.append(line)
    if not lines:
        return None
    user = " ".join(lines[-1].split())
    return user or None


def detect_windows_user(ctx: ExecutionContext) -> Optional[str]:
    """Best-effort query of the Windows account running this WSL instance."""

    r = best_effort("Windows user query", ctx.run, [PATHS.windows_cmd, "/C", "echo %USERNAME%"], check=False)
    if r is None:
        return None
    if r.returncode != 0:
        logger.warning("cmd.exe exited with %s", r.returncode)
    return parse_windows_user(r.stdout)


def windows_home(user: str) -> str:
    return f"{PATHS.windows_users}/{user}"
