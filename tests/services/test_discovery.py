from depupdater.services.discovery import discover_files, match_package_files


def test_discover_files_is_sorted_and_skips_ignored_dirs(tmp_path):
    for path in ["b/build.gradle", "a/build.gradle", "build.gradle", "node_modules/x/build.gradle"]:
        target = tmp_path / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")

    files = discover_files(str(tmp_path), ignore_paths=["node_modules"])

    assert files == ["build.gradle", "a/build.gradle", "b/build.gradle"]


def test_match_package_files_keeps_input_order():
    files = ["build.gradle", "README.md", "app/build.gradle.kts", "gradle.properties", "web/index.html"]

    matched = match_package_files(files, [r"\.gradle(\.kts)?$", r"(^|/)gradle\.properties$"])

    assert matched == ["build.gradle", "app/build.gradle.kts", "gradle.properties"]


def test_match_package_files_without_patterns_matches_nothing():
    assert match_package_files(["build.gradle"], []) == []
