from __future__ import annotations

import logging
import os
import pwd
from pathlib import Path

from .command import CommandError, best_effort
from .env import PATHS
from .privilege import ExecutionContext

logger = logging.getLogger(__name__)


def user_exists(name: str) -> bool:
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True


def ensure_user_exists(ctx: ExecutionContext, name: str, password: str) -> bool:
    """Create ``name`` with a bash login shell and set its password.

    Returns False when the account already existed (nothing is changed then).
    """

    if user_exists(name):
        logger.info("User %s already exists", name)
        return False

    ctx.run(["useradd", "-m", "-s", "/bin/bash", name])
    ctx.run(["chpasswd"], input_text=f"{name}:{password}\n")
    logger.info("Created user %s", name)
    return True


def fix_home_ownership(ctx: ExecutionContext, name: str) -> None:
    home = pwd.getpwnam(name).pw_dir
    best_effort(f"chown of {home}", ctx.run, ["chown", "-R", f"{name}:{name}", home])


def sudoers_path(name: str) -> Path:
    return Path(PATHS.sudoers_dir) / f"90-{name}-nopasswd"


def grant_passwordless_admin(ctx: ExecutionContext, name: str) -> Path:
    """Install a NOPASSWD sudoers drop-in for ``name``; rewriting it is harmless."""

    p = sudoers_path(name)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(f".{p.name}.tmp")
    tmp.write_text(f"{name} ALL=(ALL:ALL) NOPASSWD:ALL\n", encoding="utf-8")
    os.chmod(tmp, 0o440)
    try:
        ctx.run(["visudo", "-cf", str(tmp)])
    except CommandError:
        tmp.unlink()
        raise
    os.replace(tmp, p)
    logger.info("Installed %s", p)

    best_effort("adding user to the sudo group", ctx.run, ["usermod", "-aG", "sudo", name])
    return p
