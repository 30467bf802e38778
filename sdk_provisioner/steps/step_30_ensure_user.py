from __future__ import annotations

import logging

from ..lib.accounts import ensure_user_exists, fix_home_ownership
from ..lib.privilege import ADMIN, ExecutionContext

logger = logging.getLogger(__name__)


class EnsureUserStep:
    step_id = "user"
    title = "Create SDK user"
    identity = ADMIN
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        cfg = ctx.config
        # An account created outside this tool is adopted, not recreated.
        created = ensure_user_exists(ctx, cfg.username, cfg.password)
        fix_home_ownership(ctx, cfg.username)
        logger.info("User %s %s", cfg.username, "created" if created else "already present")
