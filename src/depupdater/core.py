import logging
import os
import threading
import uuid
from typing import Callable, Dict, List, Mapping, Optional

from rich.console import Console

from .errors import (
    PlanningError,
    RunCancelledError,
    TemporaryError,
    UpdaterError,
)
from .errors_catalog import actionable_error
from .extractors import ExtractionAdapter, build_adapters
from .models import (
    BranchAction,
    BranchOutcome,
    ExtractionResult,
    PackageFile,
    RepositoryConfig,
    RunResult,
    Upgrade,
)
from .services.branch_planner import BranchPlanner
from .services.branch_update import BranchUpdateService, build_file_edits
from .services.command_runner import CommandRunner
from .services.discovery import discover_files, match_package_files
from .services.filesystem import FileSystemService
from .services.git import GitService
from .services.manifest import ManifestService
from .services.platform import GitHubPlatform, LocalGitPlatform

console = Console()
logger = logging.getLogger("depupdater")

UpgradeResolver = Callable[[str, ExtractionResult], List[Upgrade]]


def _no_upgrades(_base_branch: str, _extraction: ExtractionResult) -> List[Upgrade]:
    return []


class RepositoryOrchestrator:
    """Runs extraction and branch updates for one repository.

    Base branches are processed one after another because each of them needs
    the shared working copy checked out. Collaborators default to the local
    git implementations and can be replaced for other platforms or tests.
    """

    def __init__(
        self,
        config: RepositoryConfig,
        upgrade_resolver: Optional[UpgradeResolver] = None,
        working_copy=None,
        platform=None,
        branch_writer=None,
        adapters: Optional[Mapping[str, ExtractionAdapter]] = None,
        cancel_event: Optional[threading.Event] = None,
        manifest_file: Optional[str] = None,
        github_token: Optional[str] = None,
    ):
        self.config = config
        self.cancel_event = cancel_event or threading.Event()
        self.upgrade_resolver = upgrade_resolver or _no_upgrades

        self.filesystem_service = FileSystemService(config.local_dir, logger=logger)
        self.command_runner = CommandRunner(
            logger=logger,
            default_timeout=config.gradle_timeout,
            allowed_env=config.allowed_env,
            cancel_event=self.cancel_event,
        )

        self.git_service: Optional[GitService] = None
        if working_copy is None or branch_writer is None or (platform is None and config.platform == "local"):
            self.git_service = GitService(
                self.filesystem_service,
                self.command_runner,
                logger,
                author=config.git_author,
                push=config.push,
            )
        self.working_copy = working_copy or self.git_service
        self.branch_writer = branch_writer or self.git_service
        self.platform = platform or self._build_platform(github_token)

        if adapters is None:
            adapters = build_adapters(config, self.filesystem_service, self.command_runner, logger)
        self.adapters = dict(adapters)

        self.branch_planner = BranchPlanner(config, logger)
        self.branch_update_service = BranchUpdateService(
            self.platform,
            self.branch_writer,
            logger,
            dry_run=config.dry_run,
        )
        self.manifest_service = ManifestService(manifest_file=manifest_file, logger=logger)

    def _build_platform(self, github_token: Optional[str]):
        if self.config.platform == "github":
            return GitHubPlatform(
                repository=self.config.repository or "",
                logger=logger,
                token=github_token,
                endpoint=self.config.endpoint,
            )
        return LocalGitPlatform(self.git_service)

    def _build_manifest_metadata(self) -> Dict[str, object]:
        return {
            "local_dir": self.config.local_dir,
            "base_branches": list(self.config.base_branches),
            "enabled_managers": list(self.adapters),
            "group_by": self.config.group_by,
            "dry_run": self.config.dry_run,
            "platform": self.config.platform,
        }

    def _check_cancelled(self):
        if self.cancel_event.is_set():
            raise RunCancelledError("Run cancelled.")

    def extract(self, base_branch: str) -> Optional[ExtractionResult]:
        """Runs every enabled adapter against the checked out working copy.

        Returns None when no adapter found an applicable project.
        """
        file_list = discover_files(self.config.local_dir, self.config.ignore_paths)
        package_files: List[PackageFile] = []
        contents: Dict[str, str] = {}
        skipped: List[str] = []

        for manager, adapter in self.adapters.items():
            self._check_cancelled()
            matched = match_package_files(file_list, adapter.file_patterns(self.config))
            if not matched:
                skipped.append(manager)
                continue

            logger.debug("Found %s %s package files on %s", len(matched), manager, base_branch)
            extracted = adapter.extract_all_package_files(self.config, matched)
            if extracted is None:
                skipped.append(manager)
                continue

            for package_file in extracted:
                package_files.append(package_file)
                if package_file.path not in contents:
                    content = self.filesystem_service.read_local_file(package_file.path)
                    if content is not None:
                        contents[package_file.path] = content

        if not package_files and len(skipped) == len(self.adapters):
            return None

        return ExtractionResult(
            base_branch=base_branch,
            package_files=tuple(package_files),
            contents=contents,
            skipped_managers=tuple(skipped),
        )

    def _extract_base_branch(
        self,
        base_branch: str,
        extractions: Dict[str, ExtractionResult],
    ) -> BranchOutcome:
        step_name = f"extract:{base_branch}"
        self.manifest_service.step_started(step_name)
        console.print(f"[blue]Extracting dependencies on {base_branch}...[/blue]")

        try:
            if self.config.base_branches:
                self.working_copy.checkout(base_branch)
            extraction = self.extract(base_branch)
        except (TemporaryError, RunCancelledError) as exc:
            self.manifest_service.step_finished(step_name, "failed", error=str(exc))
            raise
        except UpdaterError as exc:
            logger.error("Extraction failed on %s: %s", base_branch, exc)
            self.manifest_service.step_finished(step_name, "failed", error=str(exc))
            return BranchOutcome(base_branch=base_branch, status="failed", error=str(exc))

        if extraction is None:
            logger.warning("No applicable project found on %s - skipping", base_branch)
            self.manifest_service.step_finished(step_name, "skipped")
            return BranchOutcome(base_branch=base_branch, status="skipped")

        extractions[base_branch] = extraction
        outcome = BranchOutcome(
            base_branch=base_branch,
            status="extracted",
            package_files=len(extraction.package_files),
            dependencies=extraction.dependency_count,
            skipped_managers=list(extraction.skipped_managers),
        )
        self.manifest_service.step_finished(
            step_name,
            "success",
            details={
                "package_files": outcome.package_files,
                "dependencies": outcome.dependencies,
                "skipped_managers": outcome.skipped_managers,
            },
        )
        console.print(
            f"[green]{base_branch}: {outcome.package_files} package files, "
            f"{outcome.dependencies} dependencies.[/green]"
        )
        return outcome

    def _update_base_branch(self, extraction: ExtractionResult, outcome: BranchOutcome):
        base_branch = extraction.base_branch
        step_name = f"update:{base_branch}"
        self.manifest_service.step_started(step_name)

        try:
            upgrades = self.upgrade_resolver(base_branch, extraction)
            plans = self.branch_planner.plan(base_branch, extraction.package_files, upgrades)
            for plan in plans:
                self._check_cancelled()
                edits = build_file_edits(plan, extraction, self.adapters)
                action = self.branch_update_service.sync(plan, edits)
                outcome.actions.append(BranchAction(branch_name=plan.branch_name, action=action))
                console.print(f"[blue]{plan.branch_name}: {action}[/blue]")
        except (TemporaryError, RunCancelledError) as exc:
            self.manifest_service.step_finished(step_name, "failed", error=str(exc))
            raise
        except PlanningError as exc:
            logger.error("Planning failed on %s: %s", base_branch, exc)
            outcome.status = "failed"
            outcome.error = str(exc)
            self.manifest_service.step_finished(step_name, "failed", error=str(exc))
            return
        except UpdaterError as exc:
            logger.error("Branch update failed on %s: %s", base_branch, exc)
            outcome.status = "failed"
            outcome.error = str(exc)
            self.manifest_service.step_finished(step_name, "failed", error=str(exc))
            return

        self.manifest_service.step_finished(step_name, "success", details={"branches": len(outcome.actions)})

    def _restore_branch(self, original_branch: Optional[str]):
        if not original_branch or not self.config.base_branches:
            return
        try:
            self.working_copy.checkout(original_branch)
        except UpdaterError as exc:
            logger.warning("Could not restore branch %s: %s", original_branch, exc)

    def run(self) -> RunResult:
        result = RunResult(run_id=uuid.uuid4().hex[:10])
        original_branch: Optional[str] = None

        try:
            logger.info("Starting depupdater run %s", result.run_id)
            self.manifest_service.start_run(result.run_id, self._build_manifest_metadata())

            if not os.path.isdir(self.config.local_dir):
                logger.error(actionable_error("working_copy_missing", path=self.config.local_dir))
                raise TemporaryError()

            original_branch = self.working_copy.current_branch()
            base_branches = list(self.config.base_branches) or [original_branch]

            extractions: Dict[str, ExtractionResult] = {}
            outcomes: Dict[str, BranchOutcome] = {}
            for base_branch in base_branches:
                self._check_cancelled()
                outcome = self._extract_base_branch(base_branch, extractions)
                outcomes[base_branch] = outcome
                result.outcomes.append(outcome)

            for base_branch, extraction in extractions.items():
                self._check_cancelled()
                self._update_base_branch(extraction, outcomes[base_branch])

            failed = [outcome for outcome in result.outcomes if outcome.status == "failed"]
            if not failed:
                result.status = "success"
            elif len(failed) == len(result.outcomes):
                result.status = "failed"
            else:
                result.status = "partial"
            return result

        except (RunCancelledError, KeyboardInterrupt):
            console.print("[bold red]Run cancelled.[/bold red]")
            logger.info("Run cancelled; remaining branch plans discarded")
            result.status = "cancelled"
            result.error = "Run cancelled."
            return result
        except TemporaryError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error("Run aborted: %s", exc)
            result.status = "aborted"
            result.error = str(exc)
            return result
        except UpdaterError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            result.status = "aborted"
            result.error = str(exc)
            return result
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            result.status = "aborted"
            result.error = str(exc)
            return result
        finally:
            self._restore_branch(original_branch)
            self.manifest_service.finalize(result)
            for outcome in result.outcomes:
                logger.info("%s: %s", outcome.base_branch, outcome.status)
