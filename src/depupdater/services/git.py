"""Git working copy operations for depupdater."""

import re
from typing import List, Optional

from depupdater.errors import UpdaterError
from depupdater.models import BranchPlan, FileEdit
from depupdater.services.command_runner import CommandRunner, ToolResult
from depupdater.services.filesystem import FileSystemService

_AUTHOR = re.compile(r"^\s*(?P<name>[^<]+?)\s*<(?P<email>[^>]+)>\s*$")


def commit_message(plan: BranchPlan) -> str:
    targets = sorted({(upgrade.display_name, upgrade.new_value) for upgrade in plan.upgrades})
    if len(targets) == 1:
        name, new_value = targets[0]
        return f"Update {name} to {new_value}"

    lines = [f"Update {len(targets)} dependencies", ""]
    for upgrade in plan.upgrades:
        lines.append(
            f"- {upgrade.display_name} {upgrade.current_value} -> {upgrade.new_value} ({upgrade.package_file})"
        )
    return "\n".join(lines)


class GitService:
    """Working copy collaborator: branch switching, branch queries and branch writes."""

    def __init__(
        self,
        filesystem: FileSystemService,
        runner: CommandRunner,
        logger,
        author: str = "depupdater <bot@depupdater.invalid>",
        push: bool = False,
        timeout: Optional[float] = 300.0,
    ):
        self.filesystem = filesystem
        self.runner = runner
        self.logger = logger
        self.push = push
        self.timeout = timeout

        match = _AUTHOR.match(author)
        if not match:
            raise UpdaterError(f"Invalid git author '{author}'. Use 'Name <email>'.")
        self.author_name = match.group("name")
        self.author_email = match.group("email")

    @property
    def local_dir(self) -> str:
        return self.filesystem.local_dir

    def _git(self, *args: str, check: bool = True) -> ToolResult:
        result = self.runner.run(["git", *args], cwd=self.local_dir, timeout=self.timeout, check=False)
        if check and result.returncode != 0:
            message = f"git {args[0]} failed ({result.returncode})"
            if result.stderr.strip():
                message = f"{message}\n{result.stderr.strip()}"
            raise UpdaterError(message)
        return result

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def checkout(self, branch: str):
        self.logger.debug("Checking out %s", branch)
        self._git("checkout", "--quiet", branch)

    def branch_exists(self, branch: str) -> bool:
        result = self._git("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}", check=False)
        return result.returncode == 0

    def read_file_at(self, ref: str, path: str) -> Optional[str]:
        result = self._git("show", f"{ref}:{path}", check=False)
        if result.returncode != 0:
            return None
        return result.stdout

    def write_branch(self, plan: BranchPlan, edits: List[FileEdit], create: bool):
        """Commits ``edits`` on top of the base branch, resetting an existing branch."""
        original = self.current_branch()
        self.logger.debug("%s branch %s", "Creating" if create else "Resetting", plan.branch_name)
        # -B also resets a stale local branch the platform does not know about.
        self._git("checkout", "--quiet", "-B", plan.branch_name, plan.base_branch)
        try:
            for edit in edits:
                self.filesystem.write_local_file(edit.path, edit.updated_content)
            self._git("add", "--", *[edit.path for edit in edits])
            self._git(
                "-c",
                f"user.name={self.author_name}",
                "-c",
                f"user.email={self.author_email}",
                "commit",
                "--quiet",
                "--no-verify",
                "-m",
                commit_message(plan),
            )
            if self.push:
                self._git("push", "--quiet", "--force-with-lease", "origin", plan.branch_name)
        finally:
            self._git("checkout", "--quiet", "--force", original)
