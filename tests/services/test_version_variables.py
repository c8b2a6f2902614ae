import logging

from depupdater.models import Dependency, VersionVariable
from depupdater.services.version_variables import (
    VersionVariableBinder,
    definition_update_patterns,
    normalize_variable_name,
)

BUILD_GRADLE = """\
ext.libVersion = '1.0.0'

dependencies {
    implementation "com.example:lib:${libVersion}"
    implementation 'org.other:tool:3.1'
}
"""


def _dep(name="lib", version="1.0.0", group="com.example"):
    return Dependency(name=name, current_value=version, group=group, lookup_name=f"{group}:{name}")


def test_collect_definitions_in_build_script():
    binder = VersionVariableBinder(logging.getLogger("test"))

    definitions = binder.collect_definitions(
        "def a = '1'\nval b by extra(\"2\")\nextra[\"c\"] = \"3\"\n", "build.gradle.kts"
    )

    assert {(item.variable_name, item.value) for item in definitions} == {("a", "1"), ("b", "2"), ("c", "3")}
    assert all(item.defining_file_path == "build.gradle.kts" for item in definitions)


def test_collect_definitions_in_properties_file():
    binder = VersionVariableBinder(logging.getLogger("test"))

    definitions = binder.collect_definitions("# comment\nlib.version=1.2.3\nother : 4\n", "gradle.properties")

    assert [(item.variable_name, item.value) for item in definitions] == [("lib.version", "1.2.3"), ("other", "4")]


def test_bind_links_dependency_to_definition_in_same_file():
    binder = VersionVariableBinder(logging.getLogger("test"))
    lib = _dep()
    tool = _dep(name="tool", version="3.1", group="org.other")

    binder.bind([lib, tool], BUILD_GRADLE, "build.gradle")

    assert lib.version_variable == VersionVariable("libVersion", "1.0.0", "build.gradle")
    assert tool.version_variable is None


def test_bind_resolves_definition_from_later_properties_file():
    binder = VersionVariableBinder(logging.getLogger("test"))
    lib = _dep(version="2.0")
    build = "dependencies {\n    implementation \"com.example:lib:$libVersion\"\n}\n"

    binder.bind([lib], build, "build.gradle")
    assert lib.version_variable is None

    binder.bind([lib], "libVersion=2.0\n", "gradle.properties")

    assert lib.version_variable == VersionVariable("libVersion", "2.0", "gradle.properties")


def test_bind_requires_matching_value():
    binder = VersionVariableBinder(logging.getLogger("test"))
    lib = _dep(version="9.9.9")

    binder.bind([lib], BUILD_GRADLE, "build.gradle")

    assert lib.version_variable is None


def test_bind_keeps_existing_binding():
    binder = VersionVariableBinder(logging.getLogger("test"))
    existing = VersionVariable("pinned", "1.0.0", "gradle.properties")
    lib = _dep()
    lib.version_variable = existing

    binder.bind([lib], BUILD_GRADLE, "build.gradle")

    assert lib.version_variable is existing


def test_bind_understands_map_notation():
    binder = VersionVariableBinder(logging.getLogger("test"))
    lib = _dep()
    content = "def libVersion = '1.0.0'\ncompile group: 'com.example', name: 'lib', version: libVersion\n"

    binder.bind([lib], content, "build.gradle")

    assert lib.version_variable.variable_name == "libVersion"


def test_with_bindings_leaves_inputs_untouched():
    binder = VersionVariableBinder(logging.getLogger("test"))
    lib = _dep()

    bound = binder.with_bindings([lib], BUILD_GRADLE, "build.gradle")

    assert lib.version_variable is None
    assert bound[0].version_variable.variable_name == "libVersion"
    assert binder.registry.definitions == {}


def test_normalize_variable_name_strips_extension_prefixes():
    assert normalize_variable_name("rootProject.ext.libVersion") == "libVersion"
    assert normalize_variable_name("ext.libVersion") == "libVersion"
    assert normalize_variable_name("libVersion") == "libVersion"


def test_definition_update_patterns_target_only_the_definition():
    content = "ext.libVersion = '1.0.0'\nversion = '1.0.0'\n"

    patterns = definition_update_patterns("libVersion", "1.0.0", "build.gradle")
    updated = patterns[0].sub(r"\g<1>2.0.0\g<2>", content, count=1)

    assert updated == "ext.libVersion = '2.0.0'\nversion = '1.0.0'\n"
