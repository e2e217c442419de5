# valet/managers/service_managers.py

import logging
from pathlib import Path
from typing import Callable, List, Tuple

from ..core import config
from ..core.errors import ServiceCommandError
from ..core.system_utils import run_command

logger = logging.getLogger(__name__)

Runner = Callable[[List[str]], Tuple[int, str, str]]


class ServiceManager:
    """Controls system services by unit name.

    Subclasses provide the command lines; this base runs them and decides which
    failures matter. Stopping and disabling are best effort (the unit may
    already be down or gone), starting, restarting and enabling are not.
    """

    def __init__(self, runner: Runner = run_command):
        self.runner = runner

    # --- Command lines, provided by subclasses ---
    def _status_command(self, service: str) -> List[str]:
        raise NotImplementedError

    def _action_command(self, action: str, service: str) -> List[str]:
        raise NotImplementedError

    def is_disabled(self, service: str) -> bool:
        raise NotImplementedError

    # --- Public API ---
    def status(self, service: str) -> str:
        """Raw status text, stdout and stderr joined (wording differs per distro)."""
        _, stdout, stderr = self.runner(self._status_command(service))
        return "\n".join(part for part in (stdout, stderr) if part)

    def print_status(self, service: str) -> None:
        print(self.status(service))

    def start(self, service: str) -> None:
        self._run_action("start", service)

    def restart(self, service: str) -> None:
        self._run_action("restart", service)

    def enable(self, service: str) -> None:
        self._run_action("enable", service)

    def stop(self, service: str) -> None:
        self._run_action("stop", service, quiet=True)

    def disable(self, service: str) -> None:
        self._run_action("disable", service, quiet=True)

    def _run_action(self, action: str, service: str, quiet: bool = False) -> None:
        logger.info(f"SERVICE_MANAGER: {action.capitalize()} {service}...")
        code, _, stderr = self.runner(self._action_command(action, service))
        if code == 0:
            return
        if quiet:
            logger.debug(f"SERVICE_MANAGER: Ignoring failed '{action}' for {service} (code {code}).")
            return
        raise ServiceCommandError(action, service, code, stderr)


class Systemd(ServiceManager):
    """systemctl based service manager."""

    def __init__(self, runner: Runner = run_command, systemctl_path: str = config.SYSTEMCTL_PATH):
        super().__init__(runner)
        self.systemctl_path = systemctl_path

    def _status_command(self, service):
        return [self.systemctl_path, "status", "--no-pager", service]

    def _action_command(self, action, service):
        return [self.systemctl_path, action, service]

    def is_disabled(self, service):
        # `is-enabled` prints the unit file state; exit code alone can't tell masked from missing
        _, stdout, _ = self.runner([self.systemctl_path, "is-enabled", service])
        return stdout.strip() == "disabled"


class LinuxService(ServiceManager):
    """SysV init scripts driven through `service` and `update-rc.d`."""

    def __init__(self, runner: Runner = run_command,
                 service_path: str = config.SERVICE_PATH,
                 update_rc_d_path: str = config.UPDATE_RC_D_PATH,
                 rc_dirs=config.SYSV_RC_DIRS):
        super().__init__(runner)
        self.service_path = service_path
        self.update_rc_d_path = update_rc_d_path
        self.rc_dirs = tuple(Path(d) for d in rc_dirs)

    def _status_command(self, service):
        return [self.service_path, service, "status"]

    def _action_command(self, action, service):
        if action == "enable":
            return [self.update_rc_d_path, service, "defaults"]
        if action == "disable":
            return [self.update_rc_d_path, service, "disable"]
        return [self.service_path, service, action]

    def is_disabled(self, service):
        # An enabled init script has a start link (S??name) in some runlevel directory
        for rc_dir in self.rc_dirs:
            if rc_dir.is_dir() and any(rc_dir.glob(f"S??{service}")):
                return False
        return True


def detect_service_manager(runner: Runner = run_command) -> ServiceManager:
    """Systemd when systemd is PID 1, SysV init scripts otherwise."""
    if config.SYSTEMD_RUNTIME_DIR.is_dir():
        logger.debug("SERVICE_MANAGER: systemd detected.")
        return Systemd(runner)
    logger.debug("SERVICE_MANAGER: systemd not running, falling back to `service`.")
    return LinuxService(runner)
