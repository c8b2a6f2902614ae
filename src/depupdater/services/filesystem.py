"""Filesystem helpers scoped to the repository working copy."""

import logging
import os
import shutil
import stat
import sys
from pathlib import Path, PurePosixPath
from typing import Optional


class FileSystemService:
    """Encapsulates file and directory side effects below ``local_dir``.

    Paths handed in and returned are POSIX-style and relative to the working
    copy, the same form package file paths take everywhere else.
    """

    def __init__(self, local_dir: str, logger: logging.Logger):
        self.local_dir = local_dir
        self.logger = logger

    def local_path(self, relative_path: str) -> str:
        return os.path.join(self.local_dir, *PurePosixPath(relative_path).parts)

    def read_local_file(self, relative_path: str) -> Optional[str]:
        path = self.local_path(relative_path)
        try:
            with open(path, "r", encoding="utf-8") as file_obj:
                return file_obj.read()
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.debug("Could not read %s: %s", relative_path, exc)
            return None

    def write_local_file(self, relative_path: str, content: str):
        path = self.local_path(relative_path)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
            file_obj.write(content)

    def local_file_exists(self, relative_path: str) -> bool:
        return os.path.isfile(self.local_path(relative_path))

    def ensure_executable(self, relative_path: str):
        if sys.platform == "win32":
            return

        path = self.local_path(relative_path)
        try:
            mode = os.stat(path).st_mode
            if not mode & stat.S_IXUSR:
                os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
                self.logger.debug("Marked %s as executable", relative_path)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", relative_path, exc)

    def remove_local_path(self, relative_path: str):
        path = Path(self.local_path(relative_path))
        if not path.exists():
            return
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
            self.logger.debug("Removed %s", relative_path)
        except OSError as exc:
            self.logger.warning("Could not remove %s: %s", relative_path, exc)
