from __future__ import annotations

import logging
import os
import pwd
import shlex
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Sequence, TypeVar

from ..config import ProvisionConfig
from ..errors import IdentityError
from .command import CmdResult, CommandError, run_cmd

logger = logging.getLogger(__name__)

T = TypeVar("T")

ADMIN = "admin"
USER = "user"

DEFAULT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


@dataclass(frozen=True)
class Identity:
    kind: str
    name: str

    @classmethod
    def admin(cls) -> "Identity":
        return cls(kind=ADMIN, name="root")

    @classmethod
    def user(cls, name: str) -> "Identity":
        return cls(kind=USER, name=name)

    @property
    def is_admin(self) -> bool:
        return self.kind == ADMIN

    def __str__(self) -> str:
        return "admin" if self.is_admin else f"user:{self.name}"


@dataclass(frozen=True)
class Account:
    name: str
    uid: int
    gid: int
    home: str
    shell: str


@dataclass(frozen=True)
class ExecutionContext:
    """What an action sees while it runs: who it is, where it is, and its env.

    Commands started through ``run``/``shell`` execute as ``account``, with the
    account's HOME and login files, whatever identity the orchestrator has.
    """

    identity: Identity
    account: Account
    cwd: str
    env: Mapping[str, str]
    config: ProvisionConfig
    aux: Mapping[str, str] = field(default_factory=dict)

    @property
    def home(self) -> str:
        return self.account.home

    @property
    def username(self) -> str:
        return self.account.name

    def _needs_switch(self) -> bool:
        return os.geteuid() != self.account.uid

    def check_switch(self) -> None:
        """Fail with IdentityError if commands cannot be started as this identity."""
        if self._needs_switch() and shutil.which("sudo", path=self.env.get("PATH")) is None:
            raise IdentityError(f"Cannot switch to {self.identity}: sudo is not installed")

    def _wrap(self, argv: Sequence[str]) -> list[str]:
        if not self._needs_switch():
            return list(argv)
        if self.identity.is_admin:
            return ["sudo", "-n", "--", *argv]
        return ["sudo", "-n", "-u", self.account.name, "-H", "--", *argv]

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        cwd: Optional[str] = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
    ) -> CmdResult:
        run_env: Dict[str, str] = dict(self.env)
        run_env.update(env or {})
        wrapped = self._wrap(argv)
        try:
            return run_cmd(
                wrapped,
                check=check,
                env=run_env,
                replace_env=True,
                cwd=cwd or self.cwd,
                input_text=input_text,
            )
        except CommandError as e:
            if wrapped[0] == "sudo" and list(argv[:1]) != ["sudo"] and _is_sudo_failure(e):
                raise IdentityError(f"Cannot switch to {self.identity}: {e.stderr.strip() or e}") from e
            raise

    def shell(self, script: str, *, check: bool = True, cwd: Optional[str] = None) -> CmdResult:
        """Run a bash script as a login shell of this identity."""
        return self.run(["bash", "-lc", "set -euo pipefail\n" + script], check=check, cwd=cwd)

    def ensure_line(self, path: str, line: str) -> bool:
        """Append ``line`` to ``path`` unless already present. Returns True if appended."""
        quoted_path = shlex.quote(path)
        quoted_line = shlex.quote(line)
        r = self.run(["grep", "-qxF", "--", line, path], check=False)
        if r.returncode == 0:
            return False
        self.shell(f"touch {quoted_path}\nprintf '%s\\n' {quoted_line} >> {quoted_path}")
        return True

    def as_admin(self) -> "ExecutionContext":
        """Context for a narrow administrative sub-operation inside this action."""
        if self.identity.is_admin:
            return self
        root = _lookup("root")
        return ExecutionContext(
            identity=Identity.admin(),
            account=root,
            cwd=self.cwd,
            env=_identity_env(root),
            config=self.config,
            aux=self.aux,
        )


def _is_sudo_failure(e: CommandError) -> bool:
    # sudo could not be started, or sudo itself refused (its own "sudo:" messages).
    if isinstance(e.__cause__, FileNotFoundError):
        return True
    stderr = e.stderr.lstrip()
    return e.returncode == 1 and stderr.startswith("sudo:") and "command not found" not in stderr


def _identity_env(account: Account) -> Dict[str, str]:
    env = {
        "HOME": account.home,
        "USER": account.name,
        "LOGNAME": account.name,
        "SHELL": account.shell,
        "PATH": os.environ.get("PATH") or DEFAULT_PATH,
        "DEBIAN_FRONTEND": "noninteractive",
    }
    for keep in ("LANG", "LC_ALL", "TERM"):
        if os.environ.get(keep):
            env[keep] = os.environ[keep]
    return env


class PrivilegeContext:
    """Runs step actions under the identity they declare."""

    def __init__(self, cfg: ProvisionConfig) -> None:
        self.cfg = cfg

    def identity_for(self, kind: str) -> Identity:
        if kind == ADMIN:
            return Identity.admin()
        if kind == USER:
            return Identity.user(self.cfg.username)
        raise IdentityError(f"Unknown identity kind: {kind!r}")

    def resolve(self, identity: Identity) -> Account:
        return _lookup(identity.name)

    def run_as(
        self,
        identity: Identity,
        working_dir: Optional[str],
        action: Callable[[ExecutionContext], T],
        *,
        aux: Optional[Mapping[str, str]] = None,
    ) -> T:
        account = self.resolve(identity)
        cwd = working_dir or account.home
        if not Path(cwd).is_dir():
            raise IdentityError(f"Working directory {cwd} for {identity} does not exist")

        ctx = ExecutionContext(
            identity=identity,
            account=account,
            cwd=cwd,
            env=_identity_env(account),
            config=self.cfg,
            aux=dict(aux or {}),
        )
        ctx.check_switch()
        logger.debug("Running as %s in %s", identity, cwd)
        return action(ctx)
