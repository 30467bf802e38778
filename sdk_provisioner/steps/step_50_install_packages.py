from __future__ import annotations

import logging

from ..lib.pkg import apt_install, apt_update
from ..lib.privilege import ADMIN, ExecutionContext

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    step_id = "packages"
    title = "Install build dependencies"
    identity = ADMIN
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        apt_update(ctx)
        apt_install(ctx, ctx.config.base_packages)
