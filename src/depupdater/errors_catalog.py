"""Actionable error catalog for depupdater."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "tool_not_found": {
        "what": "Required command not found: {command}.",
        "next": "Install it or add a wrapper script to the project root and try again.",
    },
    "tool_timed_out": {
        "what": "{command} did not finish within {timeout}s.",
        "next": "Raise `gradle_timeout` in the config or check the build for hanging tasks.",
    },
    "tool_interrupted": {
        "what": "{command} was interrupted (exit code {returncode}).",
        "next": "Retry the run; the build host may have been under pressure.",
    },
    "working_copy_missing": {
        "what": "Working copy directory does not exist: {path}",
        "next": "Check `local_dir` or clone the repository before running.",
    },
    "unknown_package_file": {
        "what": "Upgrade for {dep_name} references unknown package file {path}.",
        "next": "Re-run extraction; the upgrade list was computed from stale data.",
    },
    "unchanged_upgrade": {
        "what": "Upgrade for {dep_name} in {path} does not change the version ({value}).",
        "next": "Remove the entry from the upgrade list.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
