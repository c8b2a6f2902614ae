"""Subprocess execution service for depupdater."""

import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from depupdater.errors import (
    ExternalHostError,
    ExtractionFailure,
    RunCancelledError,
    TemporaryError,
)
from depupdater.errors_catalog import actionable_error
from depupdater.services.child_env import build_child_env

TIMEOUT_EXIT_CODE = 143


@dataclass(frozen=True)
class ToolResult:
    stdout: str
    stderr: str
    returncode: int


class CommandRunner:
    """Runs external commands with an isolated environment and a hard timeout.

    Failures are classified, never retried: timeouts, interruption exit codes
    and missing binaries raise ExternalHostError, any other non-zero exit
    raises ExtractionFailure when ``check`` is set.
    """

    POLL_INTERVAL_SECONDS = 0.1

    def __init__(
        self,
        logger,
        default_timeout: Optional[float] = None,
        allowed_env: Iterable[str] = (),
        cancel_event: Optional[threading.Event] = None,
        kill_grace_seconds: float = 5.0,
    ):
        self.logger = logger
        self.default_timeout = default_timeout
        self.allowed_env = tuple(allowed_env)
        self.cancel_event = cancel_event
        self.kill_grace_seconds = kill_grace_seconds

    def run(
        self,
        cmd: List[str],
        cwd: str,
        timeout: Optional[float] = None,
        extra_env: Optional[Mapping[str, str]] = None,
        check: bool = True,
    ) -> ToolResult:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s (cwd=%s)", cmd_str, cwd)

        if not os.path.isdir(cwd):
            self.logger.error(actionable_error("working_copy_missing", path=cwd))
            raise TemporaryError()

        effective_timeout = timeout if timeout is not None else self.default_timeout
        env = build_child_env(extra_env, allowed=self.allowed_env)

        try:
            process = subprocess.Popen(
                cmd,
                cwd=cwd,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                start_new_session=os.name != "nt",
            )
        except FileNotFoundError as exc:
            raise ExternalHostError(
                cmd[0], actionable_error("tool_not_found", command=cmd[0])
            ) from exc
        except OSError as exc:
            raise ExtractionFailure(cmd[0], -1, f"Failed to execute command: {cmd_str}. {exc}") from exc

        try:
            stdout, stderr = self._communicate(process, cmd_str, effective_timeout)
        except TemporaryError:
            self._terminate(process)
            raise
        except KeyboardInterrupt:
            self._terminate(process)
            raise

        result = ToolResult(stdout=stdout or "", stderr=stderr or "", returncode=process.returncode)
        if result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        if result.returncode == TIMEOUT_EXIT_CODE:
            raise ExternalHostError(
                cmd[0],
                actionable_error("tool_interrupted", command=cmd_str, returncode=str(result.returncode)),
                returncode=result.returncode,
            )

        if check:
            raise ExtractionFailure(cmd[0], result.returncode, result.stderr.strip())

        self.logger.debug("Command exited with %s: %s", result.returncode, cmd_str)
        return result

    def _communicate(self, process: subprocess.Popen, cmd_str: str, timeout: Optional[float]):
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                self._terminate(process)
                raise RunCancelledError(f"Run cancelled while executing: {cmd_str}")

            wait = self.POLL_INTERVAL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._terminate(process)
                    raise ExternalHostError(
                        cmd_str.split(" ")[0],
                        actionable_error("tool_timed_out", command=cmd_str, timeout=str(timeout)),
                    )
                wait = min(wait, remaining)

            try:
                return process.communicate(timeout=wait)
            except subprocess.TimeoutExpired:
                continue

    def _terminate(self, process: subprocess.Popen):
        if process.poll() is not None:
            return

        self.logger.warning("Terminating process %s", process.pid)
        self._signal(process, signal.SIGTERM)
        try:
            process.communicate(timeout=self.kill_grace_seconds)
            return
        except subprocess.TimeoutExpired:
            pass

        self._signal(process, getattr(signal, "SIGKILL", signal.SIGTERM))
        process.communicate()

    @staticmethod
    def _signal(process: subprocess.Popen, sig: int):
        if os.name == "nt":
            process.kill()
            return
        try:
            os.killpg(process.pid, sig)
        except ProcessLookupError:
            pass
