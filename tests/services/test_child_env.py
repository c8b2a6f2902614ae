from depupdater.services.child_env import build_child_env


def test_build_child_env_keeps_only_allow_listed_variables():
    environ = {"PATH": "/usr/bin", "HOME": "/home/bot", "GITHUB_TOKEN": "secret", "CUSTOM": "1"}

    env = build_child_env(environ=environ)

    assert env == {"PATH": "/usr/bin", "HOME": "/home/bot"}


def test_build_child_env_adds_allowed_names_and_extras():
    environ = {"PATH": "/usr/bin", "CUSTOM": "1"}

    env = build_child_env({"GRADLE_OPTS": "-Xmx1g"}, allowed=["CUSTOM"], environ=environ)

    assert env == {"PATH": "/usr/bin", "CUSTOM": "1", "GRADLE_OPTS": "-Xmx1g"}
