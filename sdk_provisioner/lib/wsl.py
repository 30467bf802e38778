from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def render_wsl_conf(*, uid: int, gid: int) -> str:
    # Keep Windows directories out of PATH; mount drives with Linux metadata.
    return "\n".join(
        [
            "[interop]",
            "appendWindowsPath = false",
            "",
            "[automount]",
            "enabled = true",
            f'options = "metadata,uid={uid},gid={gid},umask=22,fmask=11"',
            "",
        ]
    )


def write_wsl_conf(path: str, contents: str) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(contents, encoding="utf-8")
    logger.info("Wrote %s", p)


def unc_path(distro: str, username: str, sdk_dirname: str) -> str:
    """Windows Explorer path of a directory in the user's WSL home."""
    return f"\\\\wsl.localhost\\{distro}\\home\\{username}\\{sdk_dirname}"
