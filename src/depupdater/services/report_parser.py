"""Parser for the JSON dependency reports written by the injected build plugin."""

import json
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from depupdater.models import Dependency

VERSION_PLACEHOLDER = re.compile(r"^%.*%$")


class ReportParser:
    """Turns report files into a deduplicated, ordered dependency list.

    Each report file holds one project record or a list of them::

        {"project": ":app", "repositories": ["https://repo.maven.apache.org/maven2/"],
         "dependencies": [{"group": "com.example", "name": "lib", "version": "1.0.0"}]}

    A missing or empty report directory means the tool found nothing and
    yields an empty list.
    """

    def __init__(self, logger):
        self.logger = logger

    def parse(self, report_dir: str) -> List[Dependency]:
        projects = self._read_projects(report_dir)

        dependencies: List[Dependency] = []
        index: Dict[Tuple[str, str], Dependency] = {}

        for project in projects:
            repositories = [str(url) for url in project.get("repositories") or []]
            for entry in project.get("dependencies") or []:
                dependency = self._build_dependency(entry, repositories)
                if dependency is None:
                    continue

                key = (dependency.group or "", dependency.name)
                existing = index.get(key)
                if existing is None:
                    index[key] = dependency
                    dependencies.append(dependency)
                    continue

                if existing.current_value != dependency.current_value:
                    self.logger.warning(
                        "Conflicting versions for %s: keeping %s, ignoring %s",
                        existing.dep_name,
                        existing.current_value,
                        dependency.current_value,
                    )
                for url in dependency.registry_urls:
                    if url not in existing.registry_urls:
                        existing.registry_urls.append(url)

        self.logger.debug("Parsed %s dependencies from %s", len(dependencies), report_dir)
        return dependencies

    def _read_projects(self, report_dir: str) -> List[Dict[str, Any]]:
        if not os.path.isdir(report_dir):
            self.logger.debug("No report directory at %s", report_dir)
            return []

        projects: List[Dict[str, Any]] = []
        for file_name in sorted(os.listdir(report_dir)):
            if not file_name.endswith(".json"):
                continue

            path = os.path.join(report_dir, file_name)
            try:
                with open(path, "r", encoding="utf-8") as file_obj:
                    data = json.load(file_obj)
            except (OSError, ValueError) as exc:
                self.logger.error("Invalid dependency report %s: %s", path, exc)
                continue

            records = data if isinstance(data, list) else [data]
            projects.extend(record for record in records if isinstance(record, dict))

        return sorted(projects, key=lambda record: str(record.get("project") or ""))

    def _build_dependency(self, entry: Any, repositories: List[str]) -> Optional[Dependency]:
        if not isinstance(entry, dict):
            return None

        group = entry.get("group")
        name = entry.get("name")
        version = entry.get("version")
        if not group or not name or not version:
            self.logger.debug("Skipping incomplete report entry: %s", entry)
            return None

        dependency = Dependency(
            name=str(name),
            current_value=str(version),
            group=str(group),
            lookup_name=f"{group}:{name}",
            registry_urls=list(repositories),
        )
        if VERSION_PLACEHOLDER.match(dependency.current_value):
            dependency.skip_reason = "version-placeholder"
        return dependency
