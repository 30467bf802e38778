from __future__ import annotations

import logging
import os

from ..lib.privilege import USER, ExecutionContext
from ..lib.vcs import clone_or_update

logger = logging.getLogger(__name__)


class CloneSdkStep:
    step_id = "luckfoxpico"
    title = "Fetch the Luckfox Pico SDK"
    identity = USER
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        dest = os.path.join(ctx.home, ctx.config.sdk_dirname)
        outcome = clone_or_update(ctx, ctx.config.sdk_repo, dest)
        logger.info("SDK %s at %s", outcome, dest)
