import grp
import os
import pwd
import shlex
import subprocess
import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)


def run_command(command_list: List[str]) -> Tuple[int, str, str]:
    """Runs a system command and captures output/return code.

    Returns (returncode, stdout, stderr). A missing executable yields -1 and an
    unexpected launch failure -2, so callers only ever branch on the code.
    """
    joined_command = shlex.join(command_list)
    logger.debug(f"SYSTEM_UTILS: Running command: {joined_command}")
    try:
        result = subprocess.run(
            command_list,
            capture_output=True,
            text=True,
            check=False,
            encoding='utf-8',
            errors='replace'
        )
    except FileNotFoundError:
        msg = f"SYSTEM_UTILS: Command not found: {command_list[0]}"
        logger.error(msg)
        return -1, "", msg
    except OSError as e:
        msg = f"SYSTEM_UTILS: Error running command '{joined_command}': {e}"
        logger.error(msg, exc_info=True)
        return -2, "", msg

    if result.returncode != 0:
        logger.warning(
            f"SYSTEM_UTILS: Command failed (Code: {result.returncode}): {joined_command}\n"
            f"  Stdout: {result.stdout.strip()}\n"
            f"  Stderr: {result.stderr.strip()}"
        )
    return result.returncode, result.stdout.strip(), result.stderr.strip()


def invoking_user() -> str:
    """The non-privileged user who started the tool, even under sudo."""
    user = os.environ.get("SUDO_USER") or os.environ.get("USER")
    if user:
        return user
    return pwd.getpwuid(os.getuid()).pw_name


def invoking_group() -> str:
    """Primary group name of invoking_user()."""
    user = invoking_user()
    try:
        gid = pwd.getpwnam(user).pw_gid
    except KeyError:
        logger.warning(f"SYSTEM_UTILS: User '{user}' not found in passwd database; using current gid.")
        gid = os.getgid()
    return grp.getgrgid(gid).gr_name
