"""
Exceptions raised by the PHP-FPM runtime manager.

Every error the manager knows how to report derives from ValetError, so the CLI
(and the version switcher's rollback) can catch the whole family at once.
"""


class ValetError(Exception):
    """Base class for errors the tool understands and reports to the user."""
    pass


class VersionParseError(ValetError):
    """The system PHP binary does not point at a versioned php executable."""

    def __init__(self, link_target):
        self.link_target = str(link_target)
        super().__init__(
            f"Unable to determine the PHP version from '{self.link_target}'. "
            f"Expected a binary named like 'php8.1'."
        )


class ConfigPathNotFound(ValetError):
    """None of the known PHP-FPM pool directories exist for a version."""

    def __init__(self, version):
        self.version = version
        super().__init__(f"Unable to determine PHP-FPM configuration folder for PHP {version}.")


class ServiceNotFoundError(ValetError):
    """Neither service naming convention is known to the service manager."""

    def __init__(self, version, candidates=()):
        self.version = version
        self.candidates = tuple(candidates)
        tried = ", ".join(self.candidates) or "none"
        super().__init__(f"Unable to determine PHP service name for PHP {version} (tried: {tried}).")


class InstallError(ValetError):
    """The package manager failed to install a package."""

    def __init__(self, package, details=""):
        self.package = package
        self.details = details
        message = f"Failed to install package '{package}'."
        if details:
            message += f" {details}"
        super().__init__(message)


class ServiceCommandError(ValetError):
    """A service manager command exited with a non-zero status."""

    def __init__(self, action, service, returncode, stderr=""):
        self.action = action
        self.service = service
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Failed to {action} service '{service}' (exit code {returncode}): {stderr or 'no output'}"
        )


class SwitchFailed(ValetError):
    """A version switch failed and the previous version was restored."""

    def __init__(self, target, rolled_back_to):
        self.target = target
        self.rolled_back_to = rolled_back_to
        super().__init__(
            f"Changing version to PHP {target} failed; rolled back to PHP {rolled_back_to}."
        )
