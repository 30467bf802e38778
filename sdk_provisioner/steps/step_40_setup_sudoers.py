from __future__ import annotations

import logging

from ..lib.accounts import grant_passwordless_admin
from ..lib.privilege import ADMIN, ExecutionContext

logger = logging.getLogger(__name__)


class SetupSudoersStep:
    step_id = "sudoers"
    title = "Grant passwordless sudo"
    identity = ADMIN
    produces = ()

    def run(self, ctx: ExecutionContext) -> None:
        grant_passwordless_admin(ctx, ctx.config.username)
