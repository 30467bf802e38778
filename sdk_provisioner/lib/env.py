from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    state_default: str = "/var/tmp/luckfox-setup"
    log_default: str = "/var/log/sdk-provisioner.log"
    wsl_conf: str = "/etc/wsl.conf"
    sudoers_dir: str = "/etc/sudoers.d"
    windows_cmd: str = "/mnt/c/Windows/System32/cmd.exe"
    windows_users: str = "/mnt/c/Users"
    install_bin: str = "/usr/local/bin"
    build_tmp: str = "/tmp/rkdev"


PATHS = Paths()
