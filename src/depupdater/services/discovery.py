"""Package file discovery in the working copy."""

import os
import re
from typing import Iterable, List


def discover_files(local_dir: str, ignore_paths: Iterable[str] = ()) -> List[str]:
    """Lists all files below ``local_dir`` as POSIX paths in a stable walk order."""
    ignored = set(ignore_paths)
    found: List[str] = []

    for current_root, dirs, files in os.walk(local_dir):
        dirs[:] = sorted(d for d in dirs if d not in ignored)
        relative_root = os.path.relpath(current_root, local_dir)
        for file_name in sorted(files):
            if relative_root == ".":
                found.append(file_name)
            else:
                found.append("/".join(relative_root.split(os.sep) + [file_name]))

    return found


def match_package_files(file_list: Iterable[str], patterns: Iterable[str]) -> List[str]:
    compiled = [re.compile(pattern) for pattern in patterns]
    if not compiled:
        return []
    return [path for path in file_list if any(regex.search(path) for regex in compiled)]
