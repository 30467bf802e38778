from __future__ import annotations

import logging

import pytest

from sdk_provisioner.lib.command import CommandError, best_effort, run_cmd


def test_captures_output():
    r = run_cmd(["sh", "-c", "echo out; echo err >&2"])
    assert r.returncode == 0
    assert r.stdout == "out\n"
    assert r.stderr == "err\n"


def test_nonzero_exit_raises_with_details():
    with pytest.raises(CommandError) as ei:
        run_cmd(["sh", "-c", "echo nope >&2; exit 3"])
    assert ei.value.returncode == 3
    assert "nope" in ei.value.stderr


def test_unchecked_failure_is_returned():
    assert run_cmd(["sh", "-c", "exit 4"], check=False).returncode == 4


def test_missing_executable_is_command_error():
    with pytest.raises(CommandError) as ei:
        run_cmd(["definitely-not-a-real-binary-9a7"])
    assert ei.value.returncode == 127


def test_replace_env_drops_parent_environment(monkeypatch):
    monkeypatch.setenv("LEAKY", "1")
    r = run_cmd(["/bin/sh", "-c", 'printf "%s" "${LEAKY:-unset}"'], env={"PATH": "/bin:/usr/bin"}, replace_env=True)
    assert r.stdout == "unset"


def test_stdin_is_not_logged(caplog):
    caplog.set_level(logging.INFO, logger="sdk_provisioner.lib.command")
    run_cmd(["cat"], input_text="user:secret\n")
    assert "CMD cat" in caplog.text
    assert "secret" not in caplog.text


def test_best_effort_tolerates_command_failure(caplog):
    caplog.set_level(logging.WARNING)
    assert best_effort("time sync", run_cmd, ["sh", "-c", "exit 1"]) is None
    assert "Non-fatal: time sync failed" in caplog.text


def test_best_effort_returns_value_on_success():
    assert best_effort("echo", run_cmd, ["true"]).returncode == 0


def test_best_effort_does_not_hide_programming_errors():
    def bad():
        raise KeyError("x")

    with pytest.raises(KeyError):
        best_effort("bad", bad)
