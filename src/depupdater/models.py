"""Shared domain models for depupdater."""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

GROUP_BY_CHOICES = ("dependency", "major", "group", "all")
PLATFORM_CHOICES = ("local", "github")


@dataclass(frozen=True)
class VersionVariable:
    """A named version placeholder and where it is defined."""

    variable_name: str
    value: str
    defining_file_path: str


@dataclass
class Dependency:
    """One declared library reference.

    Instances are owned by the extraction run and shared by reference between
    every PackageFile that lists them; equality only looks at the identity
    triple.
    """

    name: str
    current_value: str
    group: Optional[str] = None
    lookup_name: Optional[str] = field(default=None, compare=False)
    registry_urls: List[str] = field(default_factory=list, compare=False)
    skip_reason: Optional[str] = field(default=None, compare=False)
    version_variable: Optional[VersionVariable] = field(default=None, compare=False)

    @property
    def dep_name(self) -> str:
        if self.group:
            return f"{self.group}:{self.name}"
        return self.name


@dataclass(frozen=True)
class PackageFile:
    path: str
    datasource_id: str
    deps: Tuple[Dependency, ...]
    manager: str


@dataclass(frozen=True)
class Upgrade:
    package_file: str
    dep_name: str
    dep_group: Optional[str]
    current_value: str
    new_value: str

    @property
    def display_name(self) -> str:
        if self.dep_group:
            return f"{self.dep_group}:{self.dep_name}"
        return self.dep_name


@dataclass(frozen=True)
class RepositoryConfig:
    """Immutable per-run configuration, passed explicitly to every component."""

    local_dir: str
    base_branches: Tuple[str, ...] = ()
    enabled_managers: Tuple[str, ...] = ("gradle", "cdnurl")
    file_match: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    ignore_paths: Tuple[str, ...] = ("node_modules", ".git", "build", ".gradle")
    gradle_timeout: Optional[float] = 600.0
    gradle_wrapper: Optional[str] = None
    allowed_env: Tuple[str, ...] = ()
    branch_prefix: str = "depupdater/"
    group_by: str = "dependency"
    dry_run: bool = False
    push: bool = False
    platform: str = "local"
    repository: Optional[str] = None
    endpoint: str = "https://api.github.com"
    git_author: str = "depupdater <bot@depupdater.invalid>"


@dataclass(frozen=True)
class BranchPlan:
    base_branch: str
    branch_name: str
    upgrades: Tuple[Upgrade, ...]


@dataclass(frozen=True)
class FileEdit:
    path: str
    old_fragment: str
    new_fragment: str
    updated_content: str = field(compare=False, repr=False)


@dataclass
class ExtractionResult:
    """Extraction snapshot of one base branch."""

    base_branch: str
    package_files: Tuple[PackageFile, ...] = ()
    contents: Dict[str, str] = field(default_factory=dict)
    skipped_managers: Tuple[str, ...] = ()

    @property
    def dependency_count(self) -> int:
        seen = set()
        for package_file in self.package_files:
            for dep in package_file.deps:
                seen.add(id(dep))
        return len(seen)

    def manager_for(self, path: str) -> Optional[str]:
        for package_file in self.package_files:
            if package_file.path == path:
                return package_file.manager
        return None

    def find_dependency(self, path: str, dep_name: str, dep_group: Optional[str]) -> Optional[Dependency]:
        for package_file in self.package_files:
            if package_file.path != path:
                continue
            for dep in package_file.deps:
                if dep.name == dep_name and dep.group == dep_group:
                    return dep
        return None


@dataclass(frozen=True)
class BranchAction:
    branch_name: str
    action: str


@dataclass
class BranchOutcome:
    base_branch: str
    status: str
    package_files: int = 0
    dependencies: int = 0
    error: Optional[str] = None
    actions: List[BranchAction] = field(default_factory=list)
    skipped_managers: List[str] = field(default_factory=list)


@dataclass
class RunResult:
    run_id: str
    status: str = "running"
    outcomes: List[BranchOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def exit_code(self) -> int:
        if self.status in ("aborted", "cancelled"):
            return 1
        if self.outcomes and all(outcome.status == "failed" for outcome in self.outcomes):
            return 1
        return 0
