"""Project root detection for build-tool backed ecosystems."""

import sys
from pathlib import PurePosixPath
from typing import Iterable, Optional, Sequence

from depupdater.services.filesystem import FileSystemService

GRADLE_ROOT_FILE_NAMES = ("build.gradle", "build.gradle.kts")


def default_wrapper_name(wrapper: str = "gradlew") -> str:
    if sys.platform == "win32":
        return f"{wrapper}.bat"
    return wrapper


class ProjectRootLocator:
    """Picks the package file that marks the root of a multi-file project."""

    def __init__(
        self,
        filesystem: FileSystemService,
        root_file_names: Sequence[str] = GRADLE_ROOT_FILE_NAMES,
        wrapper_name: Optional[str] = None,
    ):
        self.filesystem = filesystem
        self.root_file_names = tuple(root_file_names)
        self.wrapper_name = wrapper_name or default_wrapper_name()

    def wrapper_path(self, package_file: str) -> str:
        directory = PurePosixPath(package_file).parent
        if str(directory) == ".":
            return self.wrapper_name
        return str(directory / self.wrapper_name)

    def has_wrapper(self, package_file: str) -> bool:
        return self.filesystem.local_file_exists(self.wrapper_path(package_file))

    def locate(self, candidates: Iterable[str]) -> Optional[str]:
        # Input order is discovery order; the first match wins.
        for package_file in candidates:
            if PurePosixPath(package_file).name in self.root_file_names:
                return package_file
            if self.has_wrapper(package_file):
                return package_file
        return None
