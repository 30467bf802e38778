from __future__ import annotations

import argparse
import logging
import os
import shlex
import sys
from typing import Callable, List, Optional, Sequence, TextIO

from .config import ProvisionConfig, load_config
from .errors import PreflightError, ProvisionError, StepFailed
from .lib.privilege import PrivilegeContext
from .lib.wsl import unc_path
from .logging_utils import StatusPrinter, configure_logging
from .pipeline import PipelineResult, Privileges, Reporter, Step, run_pipeline
from .state_store import StateStore
from .steps import (
    BuildRkdeveloptoolStep,
    CloneSdkStep,
    ConfigureToolchainStep,
    ConfigureWslStep,
    DetectWindowsUserStep,
    EnsureUserStep,
    InstallPackagesStep,
    SetupSudoersStep,
)
from .steps.step_10_detect_windows_user import WIN_USER

logger = logging.getLogger(__name__)


def build_steps() -> List[Step]:
    return [
        DetectWindowsUserStep(),
        ConfigureWslStep(),
        EnsureUserStep(),
        SetupSudoersStep(),
        InstallPackagesStep(),
        CloneSdkStep(),
        ConfigureToolchainStep(),
        BuildRkdeveloptoolStep(),
    ]


def require_root() -> None:
    if os.geteuid() != 0:
        raise PreflightError("This provisioner must be run as root (try: sudo sdk-provisioner)")


def run(
    cfg: ProvisionConfig,
    *,
    steps: Optional[Sequence[Step]] = None,
    privileges: Optional[Privileges] = None,
    reporter: Optional[Reporter] = None,
) -> PipelineResult:
    """Run the provisioning pipeline against the checkpoint directory in ``cfg``."""

    store = StateStore(cfg.state_dir)
    with store.lock():
        logger.info("Checkpoints in %s: %s", store.root, store.completed_steps() or "none")
        return run_pipeline(
            store=store,
            steps=list(steps) if steps is not None else build_steps(),
            privileges=privileges or PrivilegeContext(cfg),
            reporter=reporter,
        )


def print_summary(cfg: ProvisionConfig, result: PipelineResult, stream: TextIO) -> None:
    home = f"/home/{cfg.username}"
    lines = [
        "",
        "=" * 52,
        " Provisioning complete.",
        f" - User: {cfg.username} (passwordless sudo)",
        f" - Home: {home}",
        f" - SDK: ~/{cfg.sdk_dirname}",
        " - Toolchain: sourced from ~/.bashrc",
        " - rkdeveloptool: /usr/local/bin/rkdeveloptool",
    ]
    if result.aux.get(WIN_USER):
        lines.append(f" - Windows user: {result.aux[WIN_USER]}")
    lines += [
        "=" * 52,
        "",
        " Windows access:",
        f"    {unc_path(cfg.distro_name, cfg.username, cfg.sdk_dirname)}",
        "",
        " * Restart WSL now: wsl --shutdown",
        f" * Build: cd ~/{cfg.sdk_dirname} && ./build",
        " * Flash with SocToolKit on Windows (loader: download.bin, full image: update.img)",
        "",
    ]
    stream.write("\n".join(lines) + "\n")
    stream.flush()


def handoff_argv(cfg: ProvisionConfig) -> List[str]:
    script = f'cd ~/{shlex.quote(cfg.sdk_dirname)}; exec "$SHELL" -l'
    return ["sudo", "-u", cfg.username, "-H", "bash", "-lc", script]


def handoff(cfg: ProvisionConfig, *, exec_fn: Callable[[str, List[str]], object] = os.execvp) -> None:
    """Replace this process with a login shell of the SDK user.

    Runs on every successful invocation; it is not checkpointed.
    """

    argv = handoff_argv(cfg)
    logger.info("Handing off: %s", " ".join(argv))
    sys.stdout.flush()
    sys.stderr.flush()
    exec_fn(argv[0], argv)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="sdk-provisioner", description="Resumable Luckfox Pico SDK host setup")
    p.add_argument("--config", default=None, help="YAML config overriding the built-in defaults")
    p.add_argument("--state-dir", default=None, help="Checkpoint directory (delete it to start over)")
    p.add_argument("--log", default=None, help="Path to provisioner log")
    p.add_argument("--no-shell", action="store_true", help="Do not open a shell as the SDK user at the end")

    args = p.parse_args(argv)

    try:
        cfg = load_config(args.config).with_overrides(
            state_dir=args.state_dir,
            log_path=args.log,
            interactive_handoff=False if args.no_shell else None,
        )
    except ProvisionError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1

    actual_log_path = configure_logging(log_path=cfg.log_path)

    try:
        require_root()
        result = run(cfg, reporter=StatusPrinter())
    except StepFailed as e:
        logger.error("Provisioning failed at step %s", e.step_id, exc_info=e.cause)
        sys.stderr.write(f"\n[FAIL] step '{e.step_id}': {e.cause}\n       see {actual_log_path}\n")
        return 1
    except ProvisionError as e:
        logger.error("Provisioning aborted: %s", e)
        sys.stderr.write(f"\n[FAIL] {e}\n")
        return 1

    print_summary(cfg, result, sys.stdout)
    if cfg.interactive_handoff and sys.stdin.isatty():
        handoff(cfg)
    else:
        reason = "disabled" if not cfg.interactive_handoff else "stdin is not a terminal"
        logger.info("Shell hand-off skipped (%s)", reason)
        sys.stdout.write(f" Shell hand-off skipped ({reason}); start it with: {shlex.join(handoff_argv(cfg))}\n")
    return 0
