from __future__ import annotations

import errno

import pytest

from sdk_provisioner import main as main_mod
from sdk_provisioner.config import ProvisionConfig
from sdk_provisioner.pipeline import RunStatus
from sdk_provisioner.state_store import StateStore

from .conftest import FakePrivileges, FakeStep


@pytest.fixture
def harness(tmp_path, monkeypatch):
    calls = []
    registry = {"fail_at": None}

    def build_steps():
        return [
            FakeStep("detectwin", calls, produces=("WIN_USER",), values={"WIN_USER": "alice"}),
            FakeStep("user", calls, fail=registry["fail_at"] == "user"),
            FakeStep("packages", calls),
        ]

    monkeypatch.setattr(main_mod, "build_steps", build_steps)
    monkeypatch.setattr(main_mod, "PrivilegeContext", lambda cfg: FakePrivileges())
    monkeypatch.setattr(main_mod, "configure_logging", lambda log_path: log_path)
    monkeypatch.setattr(main_mod.os, "geteuid", lambda: 0)

    state_dir = tmp_path / "state"
    argv = ["--state-dir", str(state_dir), "--log", str(tmp_path / "p.log"), "--no-shell"]
    return calls, registry, state_dir, argv


def test_non_root_is_rejected_before_any_step(harness, monkeypatch, capsys):
    calls, _, state_dir, argv = harness
    monkeypatch.setattr(main_mod.os, "geteuid", lambda: 1000)

    assert main_mod.main(argv) == 1
    assert calls == []
    assert not state_dir.exists()
    assert "root" in capsys.readouterr().err


def test_success_then_rerun_skips(harness, capsys):
    calls, _, state_dir, argv = harness

    assert main_mod.main(argv) == 0
    out = capsys.readouterr().out
    assert calls == ["detectwin", "user", "packages"]
    assert "[OK]" in out
    assert "Windows user: alice" in out

    calls.clear()
    assert main_mod.main(argv) == 0
    out = capsys.readouterr().out
    assert calls == []
    assert out.count("[SKIP]") == 3
    assert "Windows user: alice" in out


def test_step_failure_exits_nonzero_and_names_step(harness, capsys):
    calls, registry, state_dir, argv = harness
    registry["fail_at"] = "user"

    assert main_mod.main(argv) == 1
    err = capsys.readouterr().err
    assert "step 'user'" in err
    assert calls == ["detectwin", "user"]
    assert StateStore(str(state_dir)).completed_steps() == ["detectwin"]


def test_consistency_error_exits_nonzero(harness, capsys):
    calls, _, state_dir, argv = harness
    StateStore(str(state_dir)).mark_complete("detectwin")

    assert main_mod.main(argv) == 1
    assert calls == []
    assert "Remove" in capsys.readouterr().err


def test_concurrent_run_is_rejected(harness, capsys):
    calls, _, state_dir, argv = harness

    with StateStore(str(state_dir)).lock():
        assert main_mod.main(argv) == 1
    assert calls == []
    assert "Another provisioner run" in capsys.readouterr().err


def test_bad_config_exits_nonzero(harness, tmp_path, capsys):
    _, _, _, argv = harness
    assert main_mod.main(["--config", str(tmp_path / "missing.yaml"), *argv]) == 1
    assert "not found" in capsys.readouterr().err


def test_run_returns_completed_result(tmp_path):
    calls = []
    cfg = ProvisionConfig({"paths": {"state_dir": str(tmp_path / "st")}})

    result = main_mod.run(cfg, steps=[FakeStep("a", calls)], privileges=FakePrivileges())

    assert result.status is RunStatus.COMPLETED
    assert calls == ["a"]


def test_handoff_execs_login_shell_as_user():
    seen = []
    cfg = ProvisionConfig({"user": {"name": "dev"}, "paths": {"sdk_dir": "my sdk"}})

    main_mod.handoff(cfg, exec_fn=lambda file, argv: seen.append((file, argv)))

    file, argv = seen[0]
    assert file == "sudo"
    assert argv[:5] == ["sudo", "-u", "dev", "-H", "bash"]
    assert argv[-1] == "cd ~/'my sdk'; exec \"$SHELL\" -l"


def test_registry_is_fixed_and_unique():
    ids = [s.step_id for s in main_mod.build_steps()]
    assert ids == ["detectwin", "wslconf", "user", "sudoers", "packages", "luckfoxpico", "toolchain", "rkdev"]


def test_unwritable_checkpoint_exits_with_diagnostic(harness, monkeypatch, capsys):
    calls, _, state_dir, argv = harness

    def read_only(*args, **kwargs):
        raise OSError(errno.EROFS, "Read-only file system")

    monkeypatch.setattr("sdk_provisioner.state_store.tempfile.mkstemp", read_only)

    assert main_mod.main(argv) == 1
    captured = capsys.readouterr()
    assert "[FAIL]" in captured.out
    assert "[FAIL]" in captured.err
    assert "Read-only file system" in captured.err
    assert calls == ["detectwin"]
    assert StateStore(str(state_dir)).completed_steps() == []


def test_skipped_handoff_is_announced(harness, capsys):
    _, _, _, argv = harness

    assert main_mod.main(argv) == 0
    out = capsys.readouterr().out
    assert "Shell hand-off skipped (disabled)" in out
    assert "sudo -u luckfox -H bash -lc" in out
