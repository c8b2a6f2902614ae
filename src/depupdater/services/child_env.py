"""Environment construction for child processes."""

import os
from typing import Dict, Iterable, Mapping, Optional

BASIC_ENV_VARS = (
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "NO_PROXY",
    "http_proxy",
    "https_proxy",
    "no_proxy",
    "HOME",
    "PATH",
    "LC_ALL",
    "LANG",
    "DOCKER_HOST",
    "JAVA_HOME",
    "GRADLE_USER_HOME",
    "TMPDIR",
    "TEMP",
    "TMP",
    "USER",
    "SYSTEMROOT",
)


def build_child_env(
    extra_env: Optional[Mapping[str, str]] = None,
    allowed: Iterable[str] = (),
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Return the allow-listed part of the environment plus ``extra_env``.

    The ambient environment is never passed through as a whole; tokens and
    other secrets only reach the child if their names are allowed explicitly.
    """
    source = os.environ if environ is None else environ
    names = list(BASIC_ENV_VARS) + [name for name in allowed if name not in BASIC_ENV_VARS]

    env = {name: source[name] for name in names if name in source}
    if extra_env:
        env.update({key: str(value) for key, value in extra_env.items()})
    return env
