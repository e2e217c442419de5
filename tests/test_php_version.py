"""Tests for resolving the PHP version from the pin marker and /usr/bin/php."""

import pytest

from valet.core import config
from valet.core.errors import VersionParseError
from valet.managers.php_fpm import parse_php_version


@pytest.mark.parametrize("target, expected", [
    ("/usr/bin/php8.1", "8.1"),
    ("/usr/bin/php7.4", "7.4"),
    ("/usr/bin/php8", "8"),
    ("php8.3", "8.3"),
])
def test_parse_php_version(target, expected):
    assert parse_php_version(target) == expected


@pytest.mark.parametrize("target", [
    "/usr/bin/php",
    "/etc/alternatives/php",
    "/usr/bin/php-cgi8.1",
    "/usr/bin/phpphp8.1",
    "/usr/bin/python3",
    "/opt/php8.1/bin/php",
])
def test_parse_php_version_rejects_unexpected_names(target):
    with pytest.raises(VersionParseError) as excinfo:
        parse_php_version(target)
    assert excinfo.value.link_target == target


def test_version_comes_from_symlink_without_pin(fpm):
    assert fpm.get_version() == "8.1"
    assert fpm.version == "8.1"


def test_pin_takes_precedence_over_symlink(fpm, files):
    files.files[str(config.PIN_MARKER_FILE)] = "7.4"

    assert fpm.get_version() == "7.4"
    assert fpm.get_version(force_real=True) == "8.1"


def test_pin_whitespace_is_stripped(fpm, files):
    files.files[str(config.PIN_MARKER_FILE)] = "8.0\n"

    assert fpm.get_version() == "8.0"


def test_empty_pin_is_ignored(fpm, files):
    files.files[str(config.PIN_MARKER_FILE)] = ""

    assert fpm.get_version() == "8.1"


def test_unparseable_symlink_raises(fpm, files):
    files.links[str(config.SYSTEM_PHP_BINARY)] = "/usr/bin/php"

    with pytest.raises(VersionParseError):
        fpm.get_version()


def test_resolution_has_no_side_effects(fpm, files):
    files.files[str(config.PIN_MARKER_FILE)] = "7.4"

    fpm.get_version()
    fpm.get_version(force_real=True)

    assert files.writes == []
