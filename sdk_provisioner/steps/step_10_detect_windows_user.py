from __future__ import annotations

import logging
from typing import Dict

from ..errors import PreflightError
from ..lib.hostid import detect_windows_user, windows_home
from ..lib.privilege import ADMIN, ExecutionContext

logger = logging.getLogger(__name__)

WIN_USER = "WIN_USER"


class DetectWindowsUserStep:
    step_id = "detectwin"
    title = "Detect Windows user"
    identity = ADMIN
    produces = (WIN_USER,)

    def run(self, ctx: ExecutionContext) -> Dict[str, str]:
        user = detect_windows_user(ctx)
        if not user:
            raise PreflightError("Unable to detect the Windows user (is this a WSL host?)")

        logger.info("Windows user detected: %s (home %s)", user, windows_home(user))
        return {WIN_USER: user}
