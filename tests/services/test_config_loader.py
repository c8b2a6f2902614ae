import pytest

from depupdater.errors import ConfigValidationError, UpdaterError
from depupdater.services.config_loader import ConfigLoader, build_repository_config


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".depupdater.yml"
    config_file.write_text(
        "local_dir: ./repo\nbase_branches: [main, release/1.x]\ngradle_timeout: 120\ngroup_by: major\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["local_dir"] == "./repo"
    assert loaded["base_branches"] == ["main", "release/1.x"]
    assert loaded["gradle_timeout"] == 120


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".depupdater.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(UpdaterError, match="Unknown configuration keys"):
        loader.load(str(config_file))


@pytest.mark.parametrize(
    "content, message",
    [
        ("gradle_timeout: 0\n", "gradle_timeout"),
        ("group_by: weekly\n", "group_by"),
        ("base_branches: main\n", "base_branches"),
        ("dry_run: 'yes'\n", "dry_run"),
        ("file_match: {gradle: '*.gradle'}\n", "file_match"),
        ("- just\n- a list\n", "YAML mapping"),
    ],
)
def test_config_loader_rejects_invalid_values(tmp_path, content, message):
    config_file = tmp_path / ".depupdater.yml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigValidationError, match=message):
        ConfigLoader().load(str(config_file))


def test_config_loader_missing_file(tmp_path):
    with pytest.raises(ConfigValidationError, match="not found"):
        ConfigLoader().load(str(tmp_path / "missing.yml"))


def test_config_loader_empty_file_is_empty_mapping(tmp_path):
    config_file = tmp_path / ".depupdater.yml"
    config_file.write_text("", encoding="utf-8")

    assert ConfigLoader().load(str(config_file)) == {}


def test_build_repository_config_applies_values_over_defaults():
    config = build_repository_config(
        {
            "local_dir": "/work/repo",
            "base_branches": ["main"],
            "file_match": {"gradle": [r"\.gradle$"]},
            "gradle_timeout": 30,
            "push": True,
        }
    )

    assert config.local_dir == "/work/repo"
    assert config.base_branches == ("main",)
    assert config.file_match == {"gradle": (r"\.gradle$",)}
    assert config.gradle_timeout == 30.0
    assert config.push is True
    assert config.group_by == "dependency"
    assert config.enabled_managers == ("gradle", "cdnurl")
