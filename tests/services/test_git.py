import logging
import shutil
import subprocess

import pytest

from depupdater.errors import UpdaterError
from depupdater.models import BranchPlan, FileEdit, Upgrade
from depupdater.services.command_runner import CommandRunner
from depupdater.services.filesystem import FileSystemService
from depupdater.services.git import GitService, commit_message

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _plan(*upgrades):
    return BranchPlan(base_branch="main", branch_name="depupdater/com.example-lib-2.0.0", upgrades=upgrades)


def _upgrade(path="build.gradle", current="1.0.0", new="2.0.0"):
    return Upgrade(package_file=path, dep_name="lib", dep_group="com.example", current_value=current, new_value=new)


@pytest.fixture
def repo(tmp_path):
    def git(*args):
        subprocess.run(
            ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
            cwd=tmp_path,
            check=True,
            capture_output=True,
        )

    git("init", "--quiet")
    git("symbolic-ref", "HEAD", "refs/heads/main")
    (tmp_path / "build.gradle").write_text("implementation 'com.example:lib:1.0.0'\n", encoding="utf-8")
    git("add", "build.gradle")
    git("commit", "--quiet", "-m", "initial")
    return tmp_path


@pytest.fixture
def git_service(repo):
    logger = logging.getLogger("test")
    filesystem = FileSystemService(str(repo), logger=logger)
    return GitService(filesystem, CommandRunner(logger=logger), logger=logger)


def test_commit_message_for_single_and_grouped_plans():
    single = commit_message(_plan(_upgrade()))
    same_target = commit_message(_plan(_upgrade(), _upgrade(path="app/build.gradle")))
    grouped = commit_message(_plan(_upgrade(), _upgrade(path="app/build.gradle", new="2.1.0")))

    assert single == "Update com.example:lib to 2.0.0"
    assert same_target == single
    assert grouped.splitlines()[0] == "Update 2 dependencies"
    assert "- com.example:lib 1.0.0 -> 2.1.0 (app/build.gradle)" in grouped


def test_invalid_author_is_rejected(repo):
    logger = logging.getLogger("test")
    filesystem = FileSystemService(str(repo), logger=logger)

    with pytest.raises(UpdaterError, match="Invalid git author"):
        GitService(filesystem, CommandRunner(logger=logger), logger=logger, author="nobody")


def test_current_branch_and_missing_branch(git_service):
    assert git_service.current_branch() == "main"
    assert git_service.branch_exists("depupdater/nope") is False
    assert git_service.read_file_at("main", "missing.gradle") is None


def test_checkout_unknown_branch_raises(git_service):
    with pytest.raises(UpdaterError, match="git checkout failed"):
        git_service.checkout("does-not-exist")


def test_write_branch_commits_and_restores_original(git_service, repo):
    content = "implementation 'com.example:lib:2.0.0'\n"
    edit = FileEdit(path="build.gradle", old_fragment="", new_fragment="", updated_content=content)
    plan = _plan(_upgrade())

    git_service.write_branch(plan, [edit], create=True)

    assert git_service.current_branch() == "main"
    assert git_service.branch_exists(plan.branch_name) is True
    assert git_service.read_file_at(plan.branch_name, "build.gradle") == content
    assert (repo / "build.gradle").read_text(encoding="utf-8") == "implementation 'com.example:lib:1.0.0'\n"


def test_write_branch_resets_existing_branch(git_service):
    plan = _plan(_upgrade())
    first = FileEdit(path="build.gradle", old_fragment="", new_fragment="", updated_content="first\n")
    second = FileEdit(path="build.gradle", old_fragment="", new_fragment="", updated_content="second\n")

    git_service.write_branch(plan, [first], create=True)
    git_service.write_branch(plan, [second], create=False)

    assert git_service.read_file_at(plan.branch_name, "build.gradle") == "second\n"


def test_write_branch_create_replaces_stale_local_branch(git_service, repo):
    plan = _plan(_upgrade())
    subprocess.run(["git", "branch", plan.branch_name], cwd=repo, check=True, capture_output=True)
    content = "implementation 'com.example:lib:2.0.0'\n"
    edit = FileEdit(path="build.gradle", old_fragment="", new_fragment="", updated_content=content)

    git_service.write_branch(plan, [edit], create=True)

    assert git_service.read_file_at(plan.branch_name, "build.gradle") == content
    assert git_service.current_branch() == "main"
