"""Grouping of upgrades into deterministic update branches."""

import re
from typing import Dict, Iterable, List, Tuple

from packaging.version import InvalidVersion, Version

from depupdater.errors import PlanningError
from depupdater.errors_catalog import actionable_error
from depupdater.models import BranchPlan, PackageFile, RepositoryConfig, Upgrade

_UNSAFE_BRANCH_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def slugify(value: str) -> str:
    slug = _UNSAFE_BRANCH_CHARS.sub("-", value).strip("-.")
    return re.sub(r"-{2,}", "-", slug) or "update"


def major_of(value: str) -> str:
    try:
        return str(Version(value).major)
    except InvalidVersion:
        match = re.match(r"\d+", value)
        return match.group(0) if match else value


class BranchPlanner:
    """Computes one BranchPlan per upgrade group for a base branch.

    Branch names only depend on the group key, the configured prefix and the
    base branch, so unchanged inputs always map to the same branch names.
    """

    def __init__(self, config: RepositoryConfig, logger):
        self.config = config
        self.logger = logger

    def group_key(self, upgrade: Upgrade) -> str:
        group_by = self.config.group_by
        if group_by == "all":
            return "all-dependencies"
        if group_by == "group":
            return upgrade.dep_group or upgrade.dep_name
        if group_by == "major":
            return f"{upgrade.display_name}-{major_of(upgrade.new_value)}.x"
        return f"{upgrade.display_name}-{upgrade.new_value}"

    def branch_name(self, base_branch: str, key: str) -> str:
        prefix = self.config.branch_prefix
        if self.config.base_branches:
            return f"{prefix}{slugify(base_branch)}-{slugify(key)}"
        return f"{prefix}{slugify(key)}"

    def validate(self, package_files: Iterable[PackageFile], upgrades: Iterable[Upgrade]):
        known_paths = {package_file.path for package_file in package_files}
        for upgrade in upgrades:
            if upgrade.package_file not in known_paths:
                raise PlanningError(
                    actionable_error(
                        "unknown_package_file",
                        dep_name=upgrade.display_name,
                        path=upgrade.package_file,
                    ),
                    package_file=upgrade.package_file,
                    dep_name=upgrade.display_name,
                )
            if upgrade.current_value == upgrade.new_value:
                raise PlanningError(
                    actionable_error(
                        "unchanged_upgrade",
                        dep_name=upgrade.display_name,
                        path=upgrade.package_file,
                        value=upgrade.current_value,
                    ),
                    package_file=upgrade.package_file,
                    dep_name=upgrade.display_name,
                )

    def plan(
        self,
        base_branch: str,
        package_files: Iterable[PackageFile],
        upgrades: Iterable[Upgrade],
    ) -> List[BranchPlan]:
        upgrades = list(upgrades)
        self.validate(list(package_files), upgrades)

        groups: Dict[str, List[Upgrade]] = {}
        for upgrade in upgrades:
            name = self.branch_name(base_branch, self.group_key(upgrade))
            bucket = groups.setdefault(name, [])
            if upgrade not in bucket:
                bucket.append(upgrade)

        plans = []
        for name in sorted(groups):
            ordered: Tuple[Upgrade, ...] = tuple(
                sorted(
                    groups[name],
                    key=lambda item: (item.package_file, item.dep_group or "", item.dep_name, item.new_value),
                )
            )
            plans.append(BranchPlan(base_branch=base_branch, branch_name=name, upgrades=ordered))

        self.logger.debug("Planned %s branches for %s", len(plans), base_branch)
        return plans
