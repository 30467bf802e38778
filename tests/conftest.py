from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import pytest

from sdk_provisioner.errors import IdentityError
from sdk_provisioner.lib.privilege import ADMIN, Identity
from sdk_provisioner.state_store import StateStore


class FakeStep:
    """Step whose action records its invocation and optionally fails."""

    def __init__(
        self,
        step_id: str,
        calls: List[str],
        *,
        fail: bool = False,
        produces: Tuple[str, ...] = (),
        values: Optional[Dict[str, str]] = None,
        identity: str = ADMIN,
        action: Optional[Callable[[object], None]] = None,
    ) -> None:
        self.step_id = step_id
        self.title = f"Fake {step_id}"
        self.identity = identity
        self.produces = produces
        self.calls = calls
        self.fail = fail
        self.values = values
        self.action = action
        self.seen_aux: Optional[Mapping[str, str]] = None

    def run(self, ctx):
        self.calls.append(self.step_id)
        self.seen_aux = dict(ctx.aux)
        if self.action is not None:
            self.action(ctx)
        if self.fail:
            raise RuntimeError(f"{self.step_id} exploded")
        return self.values


class FakePrivileges:
    def __init__(self, *, missing: Tuple[str, ...] = ()) -> None:
        self.missing = missing
        self.identities: List[Identity] = []

    def identity_for(self, kind: str) -> Identity:
        return Identity.admin() if kind == ADMIN else Identity.user("sdkuser")

    def run_as(self, identity, working_dir, action, *, aux=None):
        if identity.name in self.missing:
            raise IdentityError(f"Account {identity.name!r} does not exist")
        self.identities.append(identity)
        return action(SimpleNamespace(identity=identity, cwd=working_dir, aux=dict(aux or {})))


@pytest.fixture
def store(tmp_path) -> StateStore:
    return StateStore(str(tmp_path / "state"))


@pytest.fixture
def calls() -> List[str]:
    return []


@pytest.fixture
def privileges() -> FakePrivileges:
    return FakePrivileges()
