"""Init script injected into Gradle projects to emit dependency reports."""

from pathlib import PurePosixPath

from depupdater.services.filesystem import FileSystemService

PLUGIN_FILE_NAME = "depupdater-plugin.gradle"
REPORT_TASK_NAME = "depupdaterDependencies"
REPORT_DIR = ".depupdater/reports"

GRADLE_REPORT_ARGS = ["--init-script", PLUGIN_FILE_NAME, REPORT_TASK_NAME]

GRADLE_EXTRA_ENV = {
    "GRADLE_OPTS": (
        "-Dorg.gradle.parallel=true -Dorg.gradle.configureondemand=true "
        "-Dorg.gradle.daemon=false -Dorg.gradle.caching=false"
    ),
}

PLUGIN_CONTENT = f"""
import groovy.json.JsonOutput
import org.gradle.api.artifacts.DependencyConstraint
import org.gradle.api.artifacts.ExternalModuleDependency
import org.gradle.api.artifacts.repositories.MavenArtifactRepository

allprojects {{
  tasks.register("{REPORT_TASK_NAME}") {{
    doLast {{
      def reportDir = new File(rootProject.projectDir, "{REPORT_DIR}")
      reportDir.mkdirs()

      def repos = (repositories + buildscript.repositories)
        .findAll {{ it instanceof MavenArtifactRepository && it.url.scheme ==~ /https?/ }}
        .collect {{ "$it.url" }}
        .unique()

      def deps = (buildscript.configurations + configurations)
        .collect {{ it.dependencies + it.dependencyConstraints }}
        .flatten()
        .findAll {{ it instanceof ExternalModuleDependency || it instanceof DependencyConstraint }}
        .findAll {{ 'Pinned to the embedded Kotlin' != it.reason }}
        .collect {{ ['group': it.group, 'name': it.name, 'version': it.version] }}

      def report = ['project': project.path, 'repositories': repos, 'dependencies': deps]
      def fileName = project.path == ':' ? 'root' : project.path.substring(1).replace(':', '_')
      new File(reportDir, fileName + '.json').text = JsonOutput.toJson(report)
    }}
  }}
}}
""".lstrip()


class GradlePluginService:
    """Writes the init script and manages the report directory of a project root."""

    def __init__(self, filesystem: FileSystemService, logger):
        self.filesystem = filesystem
        self.logger = logger

    @staticmethod
    def _join(root_dir: str, name: str) -> str:
        if root_dir in ("", "."):
            return name
        return str(PurePosixPath(root_dir) / name)

    def report_dir(self, root_dir: str) -> str:
        return self._join(root_dir, REPORT_DIR)

    def prepare(self, root_dir: str):
        # Overwriting is safe; stale reports from an earlier run must not leak in.
        self.filesystem.remove_local_path(self.report_dir(root_dir))
        self.filesystem.write_local_file(self._join(root_dir, PLUGIN_FILE_NAME), PLUGIN_CONTENT)
        self.logger.debug("Wrote Gradle init script to %s", root_dir or ".")

    def cleanup(self, root_dir: str):
        self.filesystem.remove_local_path(self._join(root_dir, PLUGIN_FILE_NAME))
        self.filesystem.remove_local_path(self._join(root_dir, ".depupdater"))
