"""File-based upgrade input for runs without a version-resolution step."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from depupdater.errors import ConfigValidationError
from depupdater.models import ExtractionResult, Upgrade


class UpgradeListResolver:
    """Turns ``{dep_name, new_value}`` entries into per-file Upgrades.

    ``dep_name`` is ``group:name`` for grouped ecosystems or the bare name.
    An optional ``base_branches`` list restricts an entry to those branches.
    """

    def __init__(self, entries: List[Dict[str, Any]], logger):
        self.entries = entries
        self.logger = logger

    @classmethod
    def from_file(cls, path: str, logger) -> "UpgradeListResolver":
        file_path = Path(path)
        if not file_path.exists():
            raise ConfigValidationError(path, "Upgrade list not found.")

        try:
            text = file_path.read_text(encoding="utf-8")
            if file_path.suffix == ".json":
                parsed = json.loads(text)
            else:
                parsed = yaml.safe_load(text)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise ConfigValidationError(path, f"Invalid upgrade list: {exc}") from exc

        if isinstance(parsed, dict):
            parsed = parsed.get("upgrades")
        if parsed is None:
            return cls([], logger)
        if not isinstance(parsed, list):
            raise ConfigValidationError(path, "Upgrade list must be a list or contain an 'upgrades' list.")

        for index, entry in enumerate(parsed):
            if not isinstance(entry, dict) or not entry.get("dep_name") or not entry.get("new_value"):
                raise ConfigValidationError(path, f"Entry {index} needs 'dep_name' and 'new_value'.")
        return cls(parsed, logger)

    @staticmethod
    def _split(dep_name: str) -> Tuple[Optional[str], str]:
        if ":" in dep_name:
            group, name = dep_name.rsplit(":", 1)
            return group, name
        return None, dep_name

    def __call__(self, base_branch: str, extraction: ExtractionResult) -> List[Upgrade]:
        upgrades: List[Upgrade] = []
        for entry in self.entries:
            branches = entry.get("base_branches")
            if branches and base_branch not in branches:
                continue

            group, name = self._split(str(entry["dep_name"]))
            new_value = str(entry["new_value"])
            matched = False
            for package_file in extraction.package_files:
                for dep in package_file.deps:
                    if dep.name != name or dep.group != group or dep.skip_reason:
                        continue
                    matched = True
                    if dep.current_value == new_value:
                        continue
                    upgrade = Upgrade(
                        package_file=package_file.path,
                        dep_name=dep.name,
                        dep_group=dep.group,
                        current_value=dep.current_value,
                        new_value=new_value,
                    )
                    if upgrade not in upgrades:
                        upgrades.append(upgrade)

            if not matched:
                self.logger.info("No extracted dependency matches %s on %s", entry["dep_name"], base_branch)
        return upgrades
