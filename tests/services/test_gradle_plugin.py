import logging

from depupdater.services.filesystem import FileSystemService
from depupdater.services.gradle_plugin import (
    PLUGIN_CONTENT,
    PLUGIN_FILE_NAME,
    REPORT_TASK_NAME,
    GradlePluginService,
)


def _service(tmp_path):
    filesystem = FileSystemService(str(tmp_path), logger=logging.getLogger("test"))
    return GradlePluginService(filesystem, logger=logging.getLogger("test"))


def test_report_dir_is_relative_to_root(tmp_path):
    service = _service(tmp_path)

    assert service.report_dir("") == ".depupdater/reports"
    assert service.report_dir("sub") == "sub/.depupdater/reports"


def test_prepare_writes_init_script_and_clears_stale_reports(tmp_path):
    stale = tmp_path / "sub" / ".depupdater" / "reports"
    stale.mkdir(parents=True)
    (stale / "old.json").write_text("{}", encoding="utf-8")
    service = _service(tmp_path)

    service.prepare("sub")

    script = tmp_path / "sub" / PLUGIN_FILE_NAME
    assert script.read_text(encoding="utf-8") == PLUGIN_CONTENT
    assert REPORT_TASK_NAME in PLUGIN_CONTENT
    assert not stale.exists()


def test_cleanup_removes_script_and_reports(tmp_path):
    service = _service(tmp_path)
    service.prepare("")
    (tmp_path / ".depupdater" / "reports").mkdir(parents=True)

    service.cleanup("")

    assert not (tmp_path / PLUGIN_FILE_NAME).exists()
    assert not (tmp_path / ".depupdater").exists()
