import os
import pwd
from pathlib import Path

from .system_utils import invoking_user


# --- Base Directories ---
def default_home_path() -> Path:
    """~/.valet of the invoking user, so sudo runs share the unprivileged home."""
    if os.environ.get('VALET_HOME'):
        return Path(os.environ['VALET_HOME'])
    try:
        home = Path(pwd.getpwnam(invoking_user()).pw_dir)
    except KeyError:
        home = Path.home()
    return home / '.valet'


VALET_HOME_PATH = default_home_path()
LOG_DIR = VALET_HOME_PATH / 'Log'

# --- PHP Version Pinning ---
PIN_MARKER_FILE = VALET_HOME_PATH / 'use_php_version'
SYSTEM_PHP_BINARY = Path('/usr/bin/php')
DEFAULT_PHP_ALIAS = "default" # Passing this to `use` tracks the system PHP again

# --- PHP-FPM Naming ---
FPM_PACKAGE_TEMPLATE = "php{version}-fpm"
FPM_SERVICE_NAME_TEMPLATES = (
    "php{version}-fpm", # Debian, Ubuntu
    "php-fpm{version}", # Fedora, Arch and friends
)
# Substrings service managers print for units they do not know about
SERVICE_NOT_FOUND_MARKERS = ("not-found", "not be found")

# --- PHP-FPM Pool Directories (first existing directory wins) ---
FPM_CONFIG_PATH_CANDIDATES = (
    "/etc/php/{version}/fpm/pool.d", # Ubuntu
    "/etc/php{version}/fpm/pool.d", # Ubuntu
    "/etc/php{version}/php-fpm.d", # Manjaro
    "/etc/php-fpm.d", # Fedora
    "/etc/php/php-fpm.d", # Arch
    "/etc/php7/fpm/php-fpm.d", # openSUSE
)
FPM_POOL_FILENAME = "valet.conf"

# --- systemd ---
SYSTEMD_RUNTIME_DIR = Path('/run/systemd/system')
SYSTEMD_DROPIN_DIR = Path('/etc/systemd/system/php-fpm.service.d')
SYSTEMD_DROPIN_FILE = SYSTEMD_DROPIN_DIR / 'valet.conf'

# --- Stub Templates (shipped with the package) ---
STUBS_DIR = Path(__file__).resolve().parent.parent / 'stubs'
FPM_POOL_STUB = STUBS_DIR / 'fpm.conf'
FPM_DROPIN_STUB = STUBS_DIR / 'php-fpm.service.d' / 'valet.conf'

# --- System Interaction Paths ---
SYSTEM_LOG_DIR = Path('/var/log')
SYSTEMCTL_PATH = "/usr/bin/systemctl"
SERVICE_PATH = "/usr/sbin/service"
UPDATE_RC_D_PATH = "/usr/sbin/update-rc.d"
SYSV_RC_DIRS = tuple(Path(f'/etc/rc{level}.d') for level in range(2, 6))
