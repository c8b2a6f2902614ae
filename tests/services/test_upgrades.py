import json
import logging

import pytest

from depupdater.errors import ConfigValidationError
from depupdater.models import Dependency, ExtractionResult, PackageFile
from depupdater.services.upgrades import UpgradeListResolver


def _extraction():
    lib = Dependency(name="lib", current_value="1.0.0", group="com.example")
    placeholder = Dependency(name="gen", current_value="%v%", group="com.example", skip_reason="version-placeholder")
    jquery = Dependency(name="jquery", current_value="3.6.0", lookup_name="jquery/jquery.min.js")
    return ExtractionResult(
        base_branch="main",
        package_files=(
            PackageFile(path="build.gradle", datasource_id="maven", deps=(lib, placeholder), manager="gradle"),
            PackageFile(path="app/build.gradle", datasource_id="maven", deps=(lib, placeholder), manager="gradle"),
            PackageFile(path="index.html", datasource_id="cdnjs", deps=(jquery,), manager="cdnurl"),
        ),
    )


def test_resolver_builds_one_upgrade_per_package_file():
    resolver = UpgradeListResolver([{"dep_name": "com.example:lib", "new_value": "2.0.0"}], logging.getLogger("test"))

    upgrades = resolver("main", _extraction())

    assert [upgrade.package_file for upgrade in upgrades] == ["build.gradle", "app/build.gradle"]
    assert all(upgrade.current_value == "1.0.0" for upgrade in upgrades)


def test_resolver_handles_ungrouped_names_and_skipped_deps():
    resolver = UpgradeListResolver(
        [
            {"dep_name": "jquery", "new_value": "3.7.1"},
            {"dep_name": "com.example:gen", "new_value": "2"},
        ],
        logging.getLogger("test"),
    )

    upgrades = resolver("main", _extraction())

    assert [(upgrade.package_file, upgrade.dep_group) for upgrade in upgrades] == [("index.html", None)]


def test_resolver_respects_base_branch_filter_and_same_value():
    resolver = UpgradeListResolver(
        [
            {"dep_name": "com.example:lib", "new_value": "2.0.0", "base_branches": ["release"]},
            {"dep_name": "jquery", "new_value": "3.6.0"},
        ],
        logging.getLogger("test"),
    )

    assert resolver("main", _extraction()) == []
    assert len(resolver("release", _extraction())) == 2


def test_from_file_reads_yaml_and_json(tmp_path):
    yaml_file = tmp_path / "upgrades.yml"
    yaml_file.write_text("upgrades:\n  - dep_name: com.example:lib\n    new_value: 2.0.0\n", encoding="utf-8")
    json_file = tmp_path / "upgrades.json"
    json_file.write_text(json.dumps([{"dep_name": "jquery", "new_value": "3.7.1"}]), encoding="utf-8")

    from_yaml = UpgradeListResolver.from_file(str(yaml_file), logging.getLogger("test"))
    from_json = UpgradeListResolver.from_file(str(json_file), logging.getLogger("test"))

    assert from_yaml.entries[0]["new_value"] == "2.0.0"
    assert from_json.entries[0]["dep_name"] == "jquery"


def test_from_file_rejects_incomplete_entries(tmp_path):
    upgrades_file = tmp_path / "upgrades.yml"
    upgrades_file.write_text("- dep_name: com.example:lib\n", encoding="utf-8")

    with pytest.raises(ConfigValidationError, match="Entry 0"):
        UpgradeListResolver.from_file(str(upgrades_file), logging.getLogger("test"))


def test_from_file_missing(tmp_path):
    with pytest.raises(ConfigValidationError, match="not found"):
        UpgradeListResolver.from_file(str(tmp_path / "missing.yml"), logging.getLogger("test"))
