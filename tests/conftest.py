"""Shared fixtures: in-memory doubles for the filesystem, service and package managers."""

import logging
from pathlib import Path

import pytest

from valet.core import config
from valet.core.errors import InstallError
from valet.managers import php_fpm as php_fpm_module
from valet.managers.package_managers import PackageManager
from valet.managers.php_fpm import PhpFpm
from valet.managers.service_managers import ServiceManager, Systemd

SUPPORTED_VERSIONS = ("7.4", "8.0", "8.1", "8.2")


class FakeFilesystem:
    def __init__(self):
        self.files = {}
        self.dirs = set()
        self.links = {}
        self.writes = []

    def exists(self, path):
        return str(path) in self.files or str(path) in self.dirs

    def is_dir(self, path):
        return str(path) in self.dirs

    def read_link(self, path):
        return self.links.get(str(path), str(path))

    def get(self, path):
        try:
            return self.files[str(path)]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def put(self, path, contents):
        self.files[str(path)] = contents
        self.writes.append(str(path))

    def put_as_user(self, path, contents):
        self.put(path, contents)

    def delete_if_exists(self, path):
        self.files.pop(str(path), None)

    def ensure_dir_exists(self, path, owner=None):
        self.dirs.add(str(path))


class RecordingServiceManager(ServiceManager):
    """Knows a fixed set of units and records every call made to it."""

    def __init__(self, known=(), disabled=(), not_found_text="Unit {name}.service could not be found."):
        self.known = set(known)
        self.disabled = set(disabled)
        self.running = set()
        self.not_found_text = not_found_text
        self.calls = []

    def status(self, service):
        self.calls.append(("status", service))
        if service in self.known:
            return f"● {service}.service - The PHP FastCGI Process Manager\n   Loaded: loaded"
        return self.not_found_text.format(name=service)

    def print_status(self, service):
        self.calls.append(("print_status", service))

    def start(self, service):
        self.calls.append(("start", service))
        self.running.add(service)

    def restart(self, service):
        self.calls.append(("restart", service))
        self.running.add(service)

    def stop(self, service):
        self.calls.append(("stop", service))
        self.running.discard(service)

    def enable(self, service):
        self.calls.append(("enable", service))
        self.disabled.discard(service)

    def disable(self, service):
        self.calls.append(("disable", service))
        self.disabled.add(service)

    def is_disabled(self, service):
        return service in self.disabled

    def actions(self):
        return [call for call in self.calls if call[0] != "status"]

    def probes(self):
        return [name for action, name in self.calls if action == "status"]


class RecordingSystemd(RecordingServiceManager, Systemd):
    pass


class FakePackageManager(PackageManager):
    def __init__(self, installed=(), broken=()):
        self.packages = set(installed)
        self.broken = set(broken)
        self.install_calls = []

    def installed(self, package):
        return package in self.packages

    def ensure_installed(self, package):
        self.install_calls.append(package)
        if package in self.broken:
            raise InstallError(package, "E: Unable to locate package")
        self.packages.add(package)


@pytest.fixture(autouse=True)
def fixed_user(monkeypatch):
    monkeypatch.setattr(php_fpm_module, "invoking_user", lambda: "alice")
    monkeypatch.setattr(php_fpm_module, "invoking_group", lambda: "staff")


@pytest.fixture
def files():
    fs = FakeFilesystem()
    fs.links[str(config.SYSTEM_PHP_BINARY)] = "/usr/bin/php8.1"
    for version in SUPPORTED_VERSIONS:
        fs.dirs.add(f"/etc/php/{version}/fpm/pool.d")
    fs.files[str(config.FPM_POOL_STUB)] = Path(config.FPM_POOL_STUB).read_text(encoding="utf-8")
    fs.files[str(config.FPM_DROPIN_STUB)] = Path(config.FPM_DROPIN_STUB).read_text(encoding="utf-8")
    return fs


@pytest.fixture
def sm():
    return RecordingServiceManager(known=[f"php{version}-fpm" for version in SUPPORTED_VERSIONS])


@pytest.fixture
def pm():
    return FakePackageManager(installed=["php8.1-fpm"])


@pytest.fixture
def fpm(pm, sm, files):
    return PhpFpm(pm, sm, files)


def pool_file(version):
    return f"/etc/php/{version}/fpm/pool.d/{config.FPM_POOL_FILENAME}"


@pytest.fixture(autouse=True)
def reset_valet_logger():
    yield
    package_logger = logging.getLogger("valet")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
