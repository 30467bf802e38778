from __future__ import annotations

import logging
from typing import Sequence

from .privilege import ExecutionContext

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def apt_update(ctx: ExecutionContext) -> None:
    ctx.run(["apt-get", "update", "-y"], env=APT_ENV)


def apt_install(
    ctx: ExecutionContext,
    packages: Sequence[str],
    *,
    with_recommends: bool = False,
) -> None:
    """Install packages; already-installed ones are a no-op for apt."""

    if not packages:
        return
    argv = [
        "apt-get",
        "install",
        "-y",
    ]
    if not with_recommends:
        argv.append("--no-install-recommends")
    ctx.run([*argv, *packages], env=APT_ENV)
    logger.info("Installed %d package(s)", len(packages))
