from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigError
from .lib.env import PATHS

BASE_PACKAGES = [
    "git", "ssh", "make", "gcc", "gcc-multilib", "g++-multilib", "module-assistant",
    "expect", "g++", "gawk", "texinfo", "libssl-dev", "bison", "flex", "fakeroot",
    "cmake", "unzip", "gperf", "autoconf", "device-tree-compiler", "libncurses5-dev",
    "pkg-config", "bc", "python-is-python3", "passwd", "openssl", "openssh-server",
    "openssh-client", "vim", "file", "cpio", "rsync", "htop",
]

RKDEV_PACKAGES = ["libudev-dev", "libusb-1.0-0-dev", "dh-autoreconf"]

DEFAULT_TOOLCHAIN_DIR = "tools/linux/toolchain/arm-rockchip830-linux-uclibcgnueabihf"


@dataclass(frozen=True)
class ProvisionConfig:
    """Immutable run configuration.

    Wraps the raw YAML mapping; every property falls back to the stock Luckfox
    Pico setup so an empty config provisions the usual host.
    """

    raw: Mapping[str, Any] = field(default_factory=dict)

    def _section(self, name: str) -> Mapping[str, Any]:
        sec = self.raw.get(name) or {}
        if not isinstance(sec, Mapping):
            raise ConfigError(f"config.{name} must be a mapping")
        return sec

    @property
    def username(self) -> str:
        return str(self._section("user").get("name") or "luckfox")

    @property
    def password(self) -> str:
        return str(self._section("user").get("password") or "luckfox")

    @property
    def uid(self) -> int:
        return int(self._section("user").get("uid") or 1000)

    @property
    def gid(self) -> int:
        return int(self._section("user").get("gid") or 1000)

    @property
    def base_packages(self) -> List[str]:
        return _str_list(self._section("packages").get("base"), BASE_PACKAGES, "packages.base")

    @property
    def rkdev_packages(self) -> List[str]:
        return _str_list(self._section("packages").get("rkdeveloptool"), RKDEV_PACKAGES, "packages.rkdeveloptool")

    @property
    def sdk_repo(self) -> str:
        return str(self._section("repos").get("sdk") or "https://github.com/LDG-Tech/luckfox-pico-14.git")

    @property
    def rkdev_repo(self) -> str:
        return str(
            self._section("repos").get("rkdeveloptool") or "https://github.com/rockchip-linux/rkdeveloptool.git"
        )

    @property
    def sdk_dirname(self) -> str:
        """SDK checkout location, relative to the user's home."""
        return str(self._section("paths").get("sdk_dir") or "luckfox-pico")

    @property
    def toolchain_dir(self) -> str:
        """Toolchain location, relative to the SDK checkout."""
        return str(self._section("paths").get("toolchain_dir") or DEFAULT_TOOLCHAIN_DIR)

    @property
    def state_dir(self) -> str:
        return str(self._section("paths").get("state_dir") or PATHS.state_default)

    @property
    def log_path(self) -> str:
        return str(self._section("paths").get("log") or PATHS.log_default)

    @property
    def distro_name(self) -> str:
        return str(self._section("wsl").get("distro_name") or "Ubuntu-22.04")

    @property
    def interactive_handoff(self) -> bool:
        return bool(self._section("handoff").get("interactive", True))

    def with_overrides(
        self,
        *,
        state_dir: Optional[str] = None,
        log_path: Optional[str] = None,
        interactive_handoff: Optional[bool] = None,
    ) -> "ProvisionConfig":
        raw: Dict[str, Any] = {k: dict(v) if isinstance(v, Mapping) else v for k, v in self.raw.items()}
        if state_dir is not None:
            raw.setdefault("paths", {})["state_dir"] = state_dir
        if log_path is not None:
            raw.setdefault("paths", {})["log"] = log_path
        if interactive_handoff is not None:
            raw.setdefault("handoff", {})["interactive"] = interactive_handoff
        return ProvisionConfig(raw=raw)


def _str_list(value: Any, default: List[str], name: str) -> List[str]:
    if value is None:
        return list(default)
    if not isinstance(value, list):
        raise ConfigError(f"config.{name} must be a list of strings")
    return [str(v) for v in value]


def load_config(path: Optional[str]) -> ProvisionConfig:
    if path is None:
        return ProvisionConfig()

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("provisioner config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise ConfigError("PyYAML is required to read the provisioner config") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping/object")

    return ProvisionConfig(raw=raw)
