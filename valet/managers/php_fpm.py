# valet/managers/php_fpm.py

import re
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from ..core import config
from ..core.errors import (
    ConfigPathNotFound,
    ServiceNotFoundError,
    SwitchFailed,
    ValetError,
    VersionParseError,
)
from ..core.filesystem import Filesystem
from ..core.system_utils import invoking_group, invoking_user
from .package_managers import PackageManager, detect_package_manager
from .service_managers import ServiceManager, Systemd, detect_service_manager

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


@dataclass(frozen=True)
class FpmState:
    """The PHP version the manager operates on."""
    version: str


# --- Helpers ---
def parse_php_version(link_target: str) -> str:
    """
    Extracts the version from a PHP binary path such as '/usr/bin/php8.1'.

    The basename must be 'php' followed directly by a dotted version number;
    anything else (a bare 'php', 'php-cgi8.1', 'phpphp8') raises VersionParseError.
    """
    name = Path(link_target).name
    _, marker, version = name.partition("php")
    if not marker or not _VERSION_RE.match(version):
        raise VersionParseError(link_target)
    return version


def render_stub(contents: str, replacements: Dict[str, str]) -> str:
    for placeholder, value in replacements.items():
        contents = contents.replace(placeholder, value)
    return contents


class PhpFpm:
    """
    Manages the system PHP-FPM service Valet proxies to.

    The version in use comes from the pin marker when present, otherwise from
    the /usr/bin/php symlink. Service unit names and pool directories differ per
    distribution and are probed on every call rather than cached.
    """

    def __init__(self, pm: PackageManager, sm: ServiceManager, files: Filesystem,
                 state: Optional[FpmState] = None):
        self.pm = pm
        self.sm = sm
        self.files = files
        self._state = state

    @classmethod
    def from_system(cls) -> "PhpFpm":
        return cls(detect_package_manager(), detect_service_manager(), Filesystem())

    # --- State ---
    @property
    def state(self) -> FpmState:
        if self._state is None:
            self._state = FpmState(self.get_version())
        return self._state

    @state.setter
    def state(self, value: FpmState):
        self._state = value

    @property
    def version(self) -> str:
        return self.state.version

    def _resolve(self, version: Optional[str]) -> str:
        return version if version is not None else self.version

    # --- Version Resolution ---
    def get_version(self, force_real: bool = False) -> str:
        """
        Returns the PHP version Valet should use.

        Args:
            force_real: Ignore the pin marker and read the system default from
                the /usr/bin/php symlink.
        """
        if not force_real and self.files.exists(config.PIN_MARKER_FILE):
            pinned = self.files.get(config.PIN_MARKER_FILE).strip()
            if pinned:
                return pinned
            logger.warning(f"PHP_FPM: Pin marker {config.PIN_MARKER_FILE} is empty, ignoring it.")

        link_target = self.files.read_link(config.SYSTEM_PHP_BINARY)
        return parse_php_version(link_target)

    # --- Service Name Resolution ---
    def _probe_service(self, service: str) -> Optional[str]:
        status = self.sm.status(service)
        if any(marker in status for marker in config.SERVICE_NOT_FOUND_MARKERS):
            logger.debug(f"PHP_FPM: Service '{service}' not known to the service manager.")
            return None
        return service

    def fpm_service_name(self, version: Optional[str] = None, candidate: Optional[str] = None) -> str:
        """
        Finds the service unit for a PHP version.

        Tries `candidate` (default 'php<version>-fpm') and then 'php-fpm<version>',
        stopping at the first name the service manager recognises.
        """
        version = self._resolve(version)
        first_template, fallback_template = config.FPM_SERVICE_NAME_TEMPLATES
        candidates = (
            candidate or first_template.format(version=version),
            fallback_template.format(version=version),
        )
        probes = (self._probe_service(name) for name in candidates)
        service = next((name for name in probes if name), None)
        if service is None:
            raise ServiceNotFoundError(version, candidates)
        return service

    # --- Config Path Resolution ---
    def fpm_config_path(self, version: Optional[str] = None) -> Path:
        version = self._resolve(version)
        candidates = (Path(template.format(version=version)) for template in config.FPM_CONFIG_PATH_CANDIDATES)
        path = next((candidate for candidate in candidates if self.files.is_dir(candidate)), None)
        if path is None:
            raise ConfigPathNotFound(version)
        return path

    # --- Configuration ---
    def _stub_replacements(self) -> Dict[str, str]:
        return {
            'VALET_USER': invoking_user(),
            'VALET_GROUP': invoking_group(),
            'VALET_HOME_PATH': str(config.VALET_HOME_PATH),
        }

    def install_configuration(self, version: Optional[str] = None) -> None:
        """Writes the Valet FPM pool (and the systemd drop-in) for a version."""
        version = self._resolve(version)
        pool_file = self.fpm_config_path(version) / config.FPM_POOL_FILENAME
        contents = render_stub(self.files.get(config.FPM_POOL_STUB), self._stub_replacements())
        self.files.put_as_user(pool_file, contents)
        logger.debug(f"PHP_FPM: Wrote pool configuration {pool_file}")

        if isinstance(self.sm, Systemd):
            self.systemd_dropin_override()

    def systemd_dropin_override(self) -> None:
        self.files.ensure_dir_exists(config.SYSTEMD_DROPIN_DIR)
        contents = render_stub(self.files.get(config.FPM_DROPIN_STUB), self._stub_replacements())
        self.files.put_as_user(config.SYSTEMD_DROPIN_FILE, contents)
        logger.debug(f"PHP_FPM: Wrote systemd drop-in {config.SYSTEMD_DROPIN_FILE}")

    # --- Lifecycle ---
    def install(self, version: Optional[str] = None) -> None:
        """Installs php-fpm if missing, writes the Valet pool and restarts the service."""
        version = self._resolve(version)
        package = config.FPM_PACKAGE_TEMPLATE.format(version=version)
        logger.info(f"PHP_FPM: Installing and configuring {package}...")

        if not self.pm.installed(package):
            self.pm.ensure_installed(package)
            self.sm.enable(self.fpm_service_name(version))

        self.files.ensure_dir_exists(config.SYSTEM_LOG_DIR, invoking_user())
        self.files.ensure_dir_exists(config.LOG_DIR, invoking_user())
        self.install_configuration(version)
        self.restart(version)

    def uninstall(self) -> None:
        if self.files.exists(config.SYSTEMD_DROPIN_FILE):
            self.files.delete_if_exists(config.SYSTEMD_DROPIN_FILE)

        pool_file = self.fpm_config_path() / config.FPM_POOL_FILENAME
        if self.files.exists(pool_file):
            self.files.delete_if_exists(pool_file)
            self.stop()

    def restart(self, version: Optional[str] = None) -> None:
        self.sm.restart(self.fpm_service_name(version))

    def stop(self, version: Optional[str] = None) -> None:
        self.sm.stop(self.fpm_service_name(version))

    def status(self, version: Optional[str] = None) -> None:
        self.sm.print_status(self.fpm_service_name(version))

    # --- Version Switching ---
    def _target_version(self, version: Optional[str]) -> str:
        if version is None or str(version).lower() == config.DEFAULT_PHP_ALIAS:
            return self.get_version(force_real=True)
        return str(version)

    def _persist_pin(self, version: str) -> None:
        try:
            default_version = self.get_version(force_real=True)
        except VersionParseError as e:
            logger.warning(f"PHP_FPM: System PHP version unknown ({e}); pinning PHP {version}.")
            default_version = None

        if version != default_version:
            self.files.put_as_user(config.PIN_MARKER_FILE, version)
            logger.debug(f"PHP_FPM: Pinned PHP {version} in {config.PIN_MARKER_FILE}")
        else:
            self.files.delete_if_exists(config.PIN_MARKER_FILE)
            logger.debug(f"PHP_FPM: PHP {version} is the system default, pin removed.")

    def change_version(self, version: Optional[str] = None) -> str:
        """
        Switches php-fpm to another version, rolling back when the install fails.

        Args:
            version: The version to switch to. None or "default" selects the
                version /usr/bin/php points at and drops any pin.

        Returns:
            The version in use afterwards.

        Raises:
            SwitchFailed: installing the new version failed. It is raised only
                after the previous version is enabled and running again and the
                pin marker matches it; the original error is chained as __cause__.

        Callers must not run two switches at once; the pin marker and the
        service state are not locked.
        """
        previous = self.state
        old_service = self.fpm_service_name(previous.version)

        logger.info(f"PHP_FPM: Stopping {old_service}...")
        self.sm.stop(old_service)
        logger.info(f"PHP_FPM: Disabling php{previous.version}-fpm...")
        self.sm.disable(old_service)

        requested = version if version is not None else config.DEFAULT_PHP_ALIAS
        failure = None
        try:
            state = FpmState(self._target_version(version))
            requested = state.version
            self.install(state.version)
        except (ValetError, OSError) as e:
            logger.error(f"PHP_FPM: Installing PHP {requested} failed: {e}")
            failure = e
            state = previous
        self.state = state

        service_error = None
        try:
            self._reactivate(state.version, restart=failure is not None)
        except ValetError as e:
            logger.error(f"PHP_FPM: Could not bring PHP {state.version} back up: {e}")
            service_error = e

        self._persist_pin(state.version)

        if failure is not None:
            logger.error(f"PHP_FPM: Changing version failed, PHP {state.version} restored.")
            raise SwitchFailed(requested, rolled_back_to=state.version) from failure
        if service_error is not None:
            raise service_error

        logger.info(f"PHP_FPM: Now using PHP {state.version}.")
        return state.version

    def _reactivate(self, version: str, restart: bool) -> None:
        service = self.fpm_service_name(version)
        if self.sm.is_disabled(service):
            logger.info(f"PHP_FPM: Enabling php{version}-fpm...")
            self.sm.enable(service)
        if restart:
            logger.info(f"PHP_FPM: Restarting {service}...")
            self.sm.restart(service)
