from .step_10_detect_windows_user import DetectWindowsUserStep
from .step_20_configure_wsl import ConfigureWslStep
from .step_30_ensure_user import EnsureUserStep
from .step_40_setup_sudoers import SetupSudoersStep
from .step_50_install_packages import InstallPackagesStep
from .step_60_clone_sdk import CloneSdkStep
from .step_70_configure_toolchain import ConfigureToolchainStep
from .step_80_build_rkdeveloptool import BuildRkdeveloptoolStep

__all__ = [
    "DetectWindowsUserStep",
    "ConfigureWslStep",
    "EnsureUserStep",
    "SetupSudoersStep",
    "InstallPackagesStep",
    "CloneSdkStep",
    "ConfigureToolchainStep",
    "BuildRkdeveloptoolStep",
]
