import os
import shutil
import logging
from pathlib import Path
from typing import Optional, Union

from .system_utils import invoking_user

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Filesystem:
    """Thin wrapper around the filesystem calls the managers need.

    Kept as an object so tests can hand the managers an in-memory double.
    """

    def exists(self, path: PathLike) -> bool:
        return Path(path).exists()

    def is_dir(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def read_link(self, path: PathLike) -> str:
        """Final target of a symlink chain (the path itself if it is no link)."""
        return os.path.realpath(path)

    def get(self, path: PathLike) -> str:
        return Path(path).read_text(encoding='utf-8')

    def put(self, path: PathLike, contents: str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding='utf-8')
        logger.debug(f"FILESYSTEM: Wrote {len(contents)} characters to {path}")

    def put_as_user(self, path: PathLike, contents: str) -> None:
        """Write a file and hand it (and any directories created for it) to the invoking user."""
        user = invoking_user()
        self.ensure_dir_exists(Path(path).parent, user)
        self.put(path, contents)
        self.chown(path, user)

    def delete_if_exists(self, path: PathLike) -> None:
        path = Path(path)
        if path.is_file() or path.is_symlink():
            path.unlink()
            logger.debug(f"FILESYSTEM: Removed {path}")

    def ensure_dir_exists(self, path: PathLike, owner: Optional[str] = None) -> None:
        """Create a directory tree; every directory created is handed to `owner`."""
        path = Path(path)
        if path.is_dir():
            return
        missing = [path] + [parent for parent in path.parents if not parent.exists()]
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"FILESYSTEM: Created directory {path}")
        if owner:
            for directory in reversed(missing):
                self.chown(directory, owner)

    def chown(self, path: PathLike, user: str) -> None:
        # Only root can give files away; as the user the file is already ours.
        if os.geteuid() != 0:
            return
        shutil.chown(path, user=user)
