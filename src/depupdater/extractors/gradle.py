"""Gradle extraction adapter backed by the Gradle build tool itself.

Gradle build scripts are programs, so dependencies are not parsed from the
files directly. Instead an init script is injected into the project root,
Gradle is executed to write a JSON report, and the report is reconciled with
the declaration files to recover shared version variables.
"""

import re
from pathlib import PurePosixPath
from typing import List, Optional, Sequence

from depupdater.errors import ExtractionFailure
from depupdater.extractors.base import ExtractionAdapter
from depupdater.models import Dependency, PackageFile, RepositoryConfig, Upgrade
from depupdater.services.command_runner import CommandRunner
from depupdater.services.filesystem import FileSystemService
from depupdater.services.gradle_plugin import GRADLE_EXTRA_ENV, GRADLE_REPORT_ARGS, GradlePluginService
from depupdater.services.project_root import ProjectRootLocator
from depupdater.services.report_parser import ReportParser
from depupdater.services.version_variables import VersionVariableBinder, definition_update_patterns


class GradleAdapter(ExtractionAdapter):
    manager = "gradle"
    datasource_id = "maven"
    default_file_match = (r"\.gradle(\.kts)?$", r"(^|/)gradle\.properties$")

    def __init__(
        self,
        filesystem: FileSystemService,
        logger,
        runner: CommandRunner,
        plugin: Optional[GradlePluginService] = None,
        parser: Optional[ReportParser] = None,
    ):
        super().__init__(filesystem, logger)
        self.runner = runner
        self.plugin = plugin or GradlePluginService(filesystem, logger)
        self.parser = parser or ReportParser(logger)

    @staticmethod
    def _root_dir(root_file: str) -> str:
        parent = str(PurePosixPath(root_file).parent)
        return "" if parent == "." else parent

    def prepare_command(self, root_file: str, locator: ProjectRootLocator) -> List[str]:
        wrapper = locator.wrapper_path(root_file)
        if self.filesystem.local_file_exists(wrapper):
            self.filesystem.ensure_executable(wrapper)
            return [self.filesystem.local_path(wrapper), *GRADLE_REPORT_ARGS]
        return ["gradle", *GRADLE_REPORT_ARGS]

    def execute_gradle(self, config: RepositoryConfig, root_file: str, locator: ProjectRootLocator) -> bool:
        """Runs the report task. Returns False when Gradle itself failed."""
        cmd = self.prepare_command(root_file, locator)
        cwd = self.filesystem.local_path(self._root_dir(root_file))

        self.logger.debug("Start gradle command: %s", " ".join(cmd))
        try:
            result = self.runner.run(
                cmd,
                cwd=cwd,
                timeout=config.gradle_timeout,
                extra_env=GRADLE_EXTRA_ENV,
            )
        except ExtractionFailure as exc:
            self.logger.warning("Gradle extraction failed: %s", exc)
            return False

        self.logger.debug(result.stdout + result.stderr)
        self.logger.debug("Gradle report complete")
        return True

    def extract_all_package_files(
        self,
        config: RepositoryConfig,
        package_files: Sequence[str],
    ) -> Optional[List[PackageFile]]:
        locator = ProjectRootLocator(self.filesystem, wrapper_name=config.gradle_wrapper)
        root_file = locator.locate(package_files)
        if root_file is None:
            self.logger.warning("No root build.gradle nor build.gradle.kts found - skipping")
            return None

        self.logger.debug("Extracting dependencies from all gradle files")
        root_dir = self._root_dir(root_file)

        self.plugin.prepare(root_dir)
        try:
            if not self.execute_gradle(config, root_file, locator):
                return []
            report_dir = self.filesystem.local_path(self.plugin.report_dir(root_dir))
            dependencies = self.parser.parse(report_dir)
        finally:
            self.plugin.cleanup(root_dir)

        if not dependencies:
            return []

        binder = VersionVariableBinder(self.logger)
        shared = tuple(dependencies)
        gradle_files: List[PackageFile] = []
        for path in package_files:
            content = self.filesystem.read_local_file(path)
            if not content:
                self.logger.debug("Package file %s has no content", path)
                continue

            gradle_files.append(
                PackageFile(path=path, datasource_id=self.datasource_id, deps=shared, manager=self.manager)
            )
            binder.bind(dependencies, content, path)

        return gradle_files

    def update_dependency(
        self,
        file_content: str,
        upgrade: Upgrade,
        dependency: Optional[Dependency] = None,
    ) -> str:
        self.logger.debug(
            "gradle.update_dependency(): package_file:%s dep_name:%s, version:%s ==> %s",
            upgrade.package_file,
            upgrade.display_name,
            upgrade.current_value,
            upgrade.new_value,
        )
        if not upgrade.dep_group:
            return file_content

        updated = self._update_version_literals(file_content, upgrade)
        if updated is not None:
            return updated

        updated = self._update_variable_definition(file_content, upgrade, dependency)
        if updated is not None:
            return updated

        return file_content

    @staticmethod
    def _literal_patterns(upgrade: Upgrade):
        g = re.escape(upgrade.dep_group or "")
        n = re.escape(upgrade.dep_name)
        cur = re.escape(upgrade.current_value)
        patterns = [
            re.compile(rf"(['\"]{g}:{n}:){cur}(['\":@])"),
            re.compile(
                rf"(group\s*:\s*['\"]{g}['\"]\s*,\s*name\s*:\s*['\"]{n}['\"]\s*,\s*version\s*:\s*['\"]){cur}(['\"])"
            ),
            re.compile(rf"(group\s*=\s*\"{g}\"\s*,\s*name\s*=\s*\"{n}\"\s*,\s*version\s*=\s*\"){cur}(\")"),
        ]
        if upgrade.dep_name == f"{upgrade.dep_group}.gradle.plugin":
            patterns.append(re.compile(rf"(id\s*\(?\s*['\"]{g}['\"]\s*\)?\s+version\s*\(?\s*['\"]){cur}(['\"])"))
        return patterns

    def _update_version_literals(self, file_content: str, upgrade: Upgrade) -> Optional[str]:
        result = file_content
        for pattern in self._literal_patterns(upgrade):
            result = pattern.sub(lambda match: f"{match.group(1)}{upgrade.new_value}{match.group(2)}", result)
        if result != file_content:
            return result
        return None

    def _update_variable_definition(
        self,
        file_content: str,
        upgrade: Upgrade,
        dependency: Optional[Dependency],
    ) -> Optional[str]:
        if dependency is None or dependency.version_variable is None:
            return None

        variable_name = dependency.version_variable.variable_name
        patterns = definition_update_patterns(variable_name, upgrade.current_value, upgrade.package_file)
        for pattern in patterns:
            result, count = pattern.subn(
                lambda match: f"{match.group(1)}{upgrade.new_value}{match.group(2)}",
                file_content,
                count=1,
            )
            if count:
                self.logger.debug("Updated variable %s in %s", variable_name, upgrade.package_file)
                return result
        return None
