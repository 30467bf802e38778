from __future__ import annotations

import logging

from ..lib.env import PATHS
from ..lib.privilege import ADMIN, ExecutionContext
from ..lib.wsl import render_wsl_conf, write_wsl_conf

logger = logging.getLogger(__name__)


class ConfigureWslStep:
    step_id = "wslconf"
    title = f"Configure {PATHS.wsl_conf}"
    identity = ADMIN
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        cfg = ctx.config
        write_wsl_conf(PATHS.wsl_conf, render_wsl_conf(uid=cfg.uid, gid=cfg.gid))
        # Only picked up by a fresh WSL VM.
        logger.warning("wsl.conf changes apply after a WSL restart: wsl --shutdown && wsl")
