from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .command import best_effort
from .privilege import ExecutionContext

logger = logging.getLogger(__name__)


def is_clone(dest: str) -> bool:
    return (Path(dest) / ".git").is_dir()


def clone_or_update(ctx: ExecutionContext, url: str, dest: str, *, depth: Optional[int] = 1) -> str:
    """Clone ``url`` into ``dest``, or fast-forward an existing clone.

    The fast-forward is best-effort: a diverged or offline checkout is kept as is.
    Returns "cloned" or "updated".
    """

    if is_clone(dest):
        logger.info("Existing clone at %s", dest)
        best_effort(f"git pull in {dest}", ctx.run, ["git", "pull", "--ff-only"], cwd=dest)
        return "updated"

    argv = ["git", "clone"]
    if depth:
        argv.append(f"--depth={depth}")
    ctx.run([*argv, url, dest])
    return "cloned"
