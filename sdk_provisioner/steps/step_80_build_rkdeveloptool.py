from __future__ import annotations

import logging
import os

from ..lib.command import best_effort
from ..lib.env import PATHS
from ..lib.pkg import apt_install
from ..lib.privilege import USER, ExecutionContext

logger = logging.getLogger(__name__)


class BuildRkdeveloptoolStep:
    step_id = "rkdev"
    title = "Build rkdeveloptool"
    identity = USER
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        admin = ctx.as_admin()
        apt_install(admin, ctx.config.rkdev_packages)

        # A skewed WSL clock breaks make's timestamp checks; syncing is optional.
        best_effort("hardware clock sync", admin.run, ["hwclock", "--hctosys"])
        admin.run(["date", "-u", "+%Y-%m-%d %H:%M:%S"])

        build_dir = PATHS.build_tmp
        # Always start from scratch; a previous failed attempt may have left a partial tree.
        admin.run(["rm", "-rf", build_dir])
        ctx.run(["mkdir", "-p", build_dir])
        ctx.run(["git", "clone", ctx.config.rkdev_repo, "."], cwd=build_dir)
        ctx.shell("find . -type f -exec touch {} + >/dev/null 2>&1", cwd=build_dir)

        if os.access(os.path.join(build_dir, "autogen.sh"), os.X_OK):
            ctx.run(["./autogen.sh"], cwd=build_dir)
        else:
            ctx.run(["autoreconf", "-i"], cwd=build_dir)
        ctx.run(["./configure"], cwd=build_dir)
        ctx.run(["make", f"-j{os.cpu_count() or 1}"], cwd=build_dir)

        target = os.path.join(PATHS.install_bin, "rkdeveloptool")
        admin.run(
            ["install", "-m", "0755", "-o", "root", "-g", "root", os.path.join(build_dir, "rkdeveloptool"), target]
        )
        admin.run(["rm", "-rf", build_dir])
        logger.info("Installed %s", target)
