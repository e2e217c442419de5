import sys
import argparse
import logging
from typing import List, Optional

from valet.core.errors import ValetError
from valet.managers.php_fpm import PhpFpm

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)-7s] %(name)s: %(message)s'


def setup_logging(verbose: bool = False) -> None:
    """Single stderr handler on the package logger; repeated calls don't stack handlers."""
    package_logger = logging.getLogger("valet")
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="valet-fpm", description="Manage the PHP-FPM service used by Valet.")
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug output.')
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    subparsers.add_parser('install', help='Install php-fpm and the Valet pool configuration.')
    subparsers.add_parser('uninstall', help='Remove the Valet pool configuration.')
    use_parser = subparsers.add_parser('use', help='Switch to another PHP version.')
    use_parser.add_argument('version', nargs='?', default=None,
                            help="Version such as 8.1, or 'default' for the system PHP.")
    subparsers.add_parser('restart', help='Restart php-fpm.')
    subparsers.add_parser('stop', help='Stop php-fpm.')
    subparsers.add_parser('status', help='Print the php-fpm service status.')
    which_parser = subparsers.add_parser('which', help='Print the PHP version in use.')
    which_parser.add_argument('--real', action='store_true', help='Ignore the pinned version.')
    return parser


def dispatch(fpm: PhpFpm, args: argparse.Namespace) -> None:
    if args.command == 'install':
        fpm.install()
    elif args.command == 'uninstall':
        fpm.uninstall()
    elif args.command == 'use':
        version = fpm.change_version(args.version)
        print(f"Valet is now using PHP {version}.")
    elif args.command == 'restart':
        fpm.restart()
    elif args.command == 'stop':
        fpm.stop()
    elif args.command == 'status':
        fpm.status()
    elif args.command == 'which':
        print(fpm.get_version(force_real=args.real))


def main(argv: Optional[List[str]] = None, fpm: Optional[PhpFpm] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if fpm is None:
            fpm = PhpFpm.from_system()
        dispatch(fpm, args)
    except ValetError as e:
        logger.error(f"CLI: {e}")
        if e.__cause__ is not None:
            logger.error(f"CLI: Caused by: {e.__cause__}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
