from __future__ import annotations

import logging
import os
import shlex

from ..lib.command import best_effort
from ..lib.privilege import USER, ExecutionContext

logger = logging.getLogger(__name__)

ENV_SCRIPT = "env_install_toolchain.sh"


class ConfigureToolchainStep:
    step_id = "toolchain"
    title = "Configure cross-compile toolchain"
    identity = USER
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        cfg = ctx.config
        toolchain_dir = os.path.join(ctx.home, cfg.sdk_dirname, cfg.toolchain_dir)
        env_script = os.path.join(toolchain_dir, ENV_SCRIPT)

        if not os.path.isfile(env_script):
            # The SDK layout varies between releases; a missing script is reported, not fatal.
            logger.warning("%s not found in %s", ENV_SCRIPT, toolchain_dir)
            return

        ctx.run(["touch", os.path.join(ctx.home, ".bash_profile")])
        best_effort(
            "sourcing the toolchain environment",
            ctx.shell,
            f"source {shlex.quote(env_script)}",
            cwd=toolchain_dir,
        )

        # Persist with $HOME so the line survives a renamed home directory.
        rel = os.path.relpath(env_script, ctx.home)
        line = f"source $HOME/{rel}"
        if ctx.ensure_line(os.path.join(ctx.home, ".bashrc"), line):
            logger.info("Added toolchain environment to ~/.bashrc")
