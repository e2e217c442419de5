# valet/managers/package_managers.py

import shutil
import logging
from typing import Callable, List, Optional, Tuple

from ..core.errors import InstallError, ValetError
from ..core.system_utils import run_command

logger = logging.getLogger(__name__)

Runner = Callable[[List[str]], Tuple[int, str, str]]


class PackageManager:
    """Queries and installs distribution packages."""

    binary: str = ""

    def __init__(self, runner: Runner = run_command):
        self.runner = runner

    def _query_command(self, package: str) -> List[str]:
        raise NotImplementedError

    def _install_command(self, package: str) -> List[str]:
        raise NotImplementedError

    def installed(self, package: str) -> bool:
        code, _, _ = self.runner(self._query_command(package))
        return code == 0

    def ensure_installed(self, package: str) -> None:
        if self.installed(package):
            logger.debug(f"PACKAGE_MANAGER: {package} already installed.")
            return
        logger.info(f"PACKAGE_MANAGER: Installing {package}...")
        code, stdout, stderr = self.runner(self._install_command(package))
        if code != 0:
            raise InstallError(package, stderr or stdout)

    @classmethod
    def is_available(cls) -> bool:
        return shutil.which(cls.binary) is not None


class Apt(PackageManager):
    binary = "apt-get"

    def _query_command(self, package):
        return ["dpkg", "-s", package]

    def _install_command(self, package):
        return ["apt-get", "install", "-y", package]


class Dnf(PackageManager):
    binary = "dnf"

    def _query_command(self, package):
        return ["rpm", "-q", package]

    def _install_command(self, package):
        return ["dnf", "install", "-y", package]


class Pacman(PackageManager):
    binary = "pacman"

    def _query_command(self, package):
        return ["pacman", "-Qi", package]

    def _install_command(self, package):
        return ["pacman", "-S", "--noconfirm", "--needed", package]


PACKAGE_MANAGERS = (Apt, Dnf, Pacman)


def detect_package_manager(runner: Runner = run_command) -> PackageManager:
    """First supported package manager found on PATH."""
    manager_cls: Optional[type] = next((cls for cls in PACKAGE_MANAGERS if cls.is_available()), None)
    if manager_cls is None:
        names = ", ".join(cls.binary for cls in PACKAGE_MANAGERS)
        raise ValetError(f"No supported package manager found (looked for: {names}).")
    logger.debug(f"PACKAGE_MANAGER: Using {manager_cls.__name__}.")
    return manager_cls(runner)
