import os
import sys
import threading
import time

import pytest

from depupdater.errors import ExternalHostError, ExtractionFailure, RunCancelledError, TemporaryError
from depupdater.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None

    def error(self, *_args, **_kwargs):
        return None


def _python(code: str):
    return [sys.executable, "-c", code]


def test_command_runner_returns_output(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("print('hello')"), cwd=str(tmp_path))

    assert result.returncode == 0
    assert result.stdout.strip() == "hello"


def test_command_runner_raises_extraction_failure_with_stderr(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExtractionFailure, match="boom") as exc_info:
        runner.run(
            _python("import sys; sys.stderr.write('boom'); sys.exit(1)"),
            cwd=str(tmp_path),
        )

    assert exc_info.value.returncode == 1


def test_command_runner_returns_when_check_disabled(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("import sys; sys.exit(3)"), cwd=str(tmp_path), check=False)

    assert result.returncode == 3


def test_command_runner_classifies_interruption_exit_code_as_external_host_error(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExternalHostError) as exc_info:
        runner.run(_python("import sys; sys.exit(143)"), cwd=str(tmp_path), check=False)

    assert exc_info.value.returncode == 143


def test_command_runner_timeout_kills_child(tmp_path):
    runner = CommandRunner(logger=DummyLogger(), kill_grace_seconds=2.0)
    pid_file = tmp_path / "child.pid"
    code = (
        "import os, time;"
        f"open({str(pid_file)!r}, 'w').write(str(os.getpid()));"
        "time.sleep(30)"
    )

    started = time.monotonic()
    with pytest.raises(ExternalHostError, match="did not finish"):
        runner.run(_python(code), cwd=str(tmp_path), timeout=1.0)
    elapsed = time.monotonic() - started

    assert elapsed < 1.0 + 2.0 + 2.0
    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_command_runner_missing_working_directory_raises_sentinel(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(TemporaryError) as exc_info:
        runner.run(_python("print('x')"), cwd=str(tmp_path / "missing"))

    assert str(exc_info.value) == "temporary-error"


def test_command_runner_missing_binary_is_external_host_error(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExternalHostError, match="Required command not found"):
        runner.run(["depupdater-no-such-binary"], cwd=str(tmp_path))


def test_command_runner_isolates_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("DEPUPDATER_SECRET", "hunter2")
    monkeypatch.setenv("DEPUPDATER_ALLOWED", "yes")
    runner = CommandRunner(logger=DummyLogger(), allowed_env=["DEPUPDATER_ALLOWED"])

    code = (
        "import os;"
        "print(os.environ.get('DEPUPDATER_SECRET', '-'));"
        "print(os.environ.get('DEPUPDATER_ALLOWED', '-'));"
        "print(os.environ.get('INJECTED', '-'))"
    )
    result = runner.run(_python(code), cwd=str(tmp_path), extra_env={"INJECTED": "1"})

    assert result.stdout.split() == ["-", "yes", "1"]


def test_command_runner_cancellation_terminates_child(tmp_path):
    cancel_event = threading.Event()
    runner = CommandRunner(logger=DummyLogger(), cancel_event=cancel_event, kill_grace_seconds=2.0)
    timer = threading.Timer(0.5, cancel_event.set)
    timer.start()

    try:
        with pytest.raises(RunCancelledError):
            runner.run(_python("import time; time.sleep(30)"), cwd=str(tmp_path), timeout=20)
    finally:
        timer.cancel()
