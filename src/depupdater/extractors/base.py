"""
Base extraction adapter for per-ecosystem dependency extraction.

Defines the contract every ecosystem adapter implements.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from depupdater.models import Dependency, PackageFile, RepositoryConfig, Upgrade
from depupdater.services.filesystem import FileSystemService


class ExtractionAdapter(ABC):
    """
    Abstract base class for ecosystem-specific extraction adapters.

    An adapter either works file by file (``extract_package_file``) or over
    all of its package files at once (``extract_all_package_files``, which
    build-tool backed adapters override). The return value of
    ``extract_all_package_files`` distinguishes three outcomes:

    - ``None``: no applicable project in this repository
    - ``[]``: project found, nothing to report
    - non-empty list: one PackageFile per declaration file
    """

    manager: str = ""
    datasource_id: str = ""
    default_file_match: Tuple[str, ...] = ()

    def __init__(self, filesystem: FileSystemService, logger):
        self.filesystem = filesystem
        self.logger = logger

    def file_patterns(self, config: RepositoryConfig) -> Tuple[str, ...]:
        extra = tuple(config.file_match.get(self.manager, ()))
        return self.default_file_match + extra

    def extract_package_file(self, content: str, path: str) -> List[Dependency]:
        """
        Extract dependencies from the content of a single file.

        Adapters that only support whole-project extraction leave this alone.
        """
        raise NotImplementedError(f"{self.manager} does not support per-file extraction")

    def extract_all_package_files(
        self,
        config: RepositoryConfig,
        package_files: Sequence[str],
    ) -> Optional[List[PackageFile]]:
        if not package_files:
            return None

        results: List[PackageFile] = []
        for path in package_files:
            content = self.filesystem.read_local_file(path)
            if not content:
                self.logger.debug("Package file %s has no content", path)
                continue
            deps = self.extract_package_file(content, path)
            if deps:
                results.append(
                    PackageFile(
                        path=path,
                        datasource_id=self.datasource_id,
                        deps=tuple(deps),
                        manager=self.manager,
                    )
                )
        return results

    @abstractmethod
    def update_dependency(
        self,
        file_content: str,
        upgrade: Upgrade,
        dependency: Optional[Dependency] = None,
    ) -> str:
        """
        Apply ``upgrade`` to ``file_content``.

        Args:
            file_content: Current text of ``upgrade.package_file``
            upgrade: The version change to apply
            dependency: The owning Dependency instance, carrying any
                version variable binding

        Returns:
            The updated content, or the unchanged content when nothing matched
        """
        pass
