"""Turns branch plans into file edits and reconciles them with existing branches."""

import hashlib
from typing import Dict, List, Mapping, Optional, Tuple

from depupdater.errors import UpdaterError
from depupdater.models import BranchPlan, ExtractionResult, FileEdit


def compute_content_hash(files: Mapping[str, Optional[str]]) -> str:
    """Hash of path/content pairs; a missing file hashes differently from an empty one."""
    digest = hashlib.sha256()
    for path in sorted(files):
        content = files[path]
        digest.update(path.encode("utf-8"))
        digest.update(b"\0")
        digest.update(b"\1" if content is None else content.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def diff_fragments(old: str, new: str) -> Tuple[str, str]:
    """Returns the smallest differing block of whole lines."""
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    limit = min(len(old_lines), len(new_lines))

    start = 0
    while start < limit and old_lines[start] == new_lines[start]:
        start += 1

    end = 0
    while end < limit - start and old_lines[-1 - end] == new_lines[-1 - end]:
        end += 1

    return (
        "".join(old_lines[start:len(old_lines) - end]),
        "".join(new_lines[start:len(new_lines) - end]),
    )


def build_file_edits(plan: BranchPlan, extraction: ExtractionResult, adapters: Mapping) -> List[FileEdit]:
    updated: Dict[str, str] = {}

    for upgrade in plan.upgrades:
        path = upgrade.package_file
        adapter = adapters.get(extraction.manager_for(path))
        if adapter is None:
            raise UpdaterError(f"No extraction adapter available for {path}")

        current = updated.get(path, extraction.contents.get(path))
        if current is None:
            raise UpdaterError(f"No extracted content for {path}")

        dependency = extraction.find_dependency(path, upgrade.dep_name, upgrade.dep_group)
        updated[path] = adapter.update_dependency(current, upgrade, dependency)

    edits = []
    for path, content in updated.items():
        original = extraction.contents[path]
        if content == original:
            continue
        old_fragment, new_fragment = diff_fragments(original, content)
        edits.append(FileEdit(path=path, old_fragment=old_fragment, new_fragment=new_fragment, updated_content=content))
    return edits


class BranchUpdateService:
    """Creates, updates or leaves alone the branch for one plan.

    The platform is always asked for the branch state before anything is
    written, so repeated runs against unchanged inputs touch nothing.
    """

    def __init__(self, platform, writer, logger, dry_run: bool = False):
        self.platform = platform
        self.writer = writer
        self.logger = logger
        self.dry_run = dry_run

    def sync(self, plan: BranchPlan, edits: List[FileEdit]) -> str:
        if not edits:
            self.logger.info("No file changes for %s; nothing to do.", plan.branch_name)
            return "no-changes"

        planned_hash = compute_content_hash({edit.path: edit.updated_content for edit in edits})
        state = self.platform.get_branch_state(plan.branch_name, [edit.path for edit in edits])

        if state is not None and state.content_hash == planned_hash:
            self.logger.info("Branch %s is up to date.", plan.branch_name)
            return "unchanged"

        create = state is None
        if self.dry_run:
            action = "would-create" if create else "would-update"
            self.logger.info("Dry run: %s %s", action, plan.branch_name)
            return action

        if create:
            self.logger.info("Creating branch %s off %s", plan.branch_name, plan.base_branch)
        else:
            self.logger.info("Branch %s has diverged; updating it in place.", plan.branch_name)
        self.writer.write_branch(plan, edits, create=create)
        return "created" if create else "updated"
