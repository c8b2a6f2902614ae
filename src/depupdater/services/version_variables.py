"""Binding of dependencies to shared version variables in Gradle build files."""

import copy
import dataclasses
import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from depupdater.models import Dependency, VersionVariable

_IDENT = r"[A-Za-z_]\w*"
_VALUE = r"[^'\"$\s]+"

DEFINITION_PATTERNS = (
    # def libVersion = '1.0.0' / ext.libVersion = "1.0.0" / val libVersion = "1.0.0"
    re.compile(
        r"^[ \t]*(?:(?:def|val|var|String)[ \t]+)?(?:(?:rootProject\.|project\.)?ext\.)?"
        rf"(?P<name>{_IDENT})[ \t]*=[ \t]*(?P<quote>['\"])(?P<value>{_VALUE})(?P=quote)",
        re.MULTILINE,
    ),
    # val libVersion by extra("1.0.0")
    re.compile(
        rf"^[ \t]*val[ \t]+(?P<name>{_IDENT})[ \t]+by[ \t]+extra\([ \t]*\"(?P<value>{_VALUE})\"[ \t]*\)",
        re.MULTILINE,
    ),
    # extra["libVersion"] = "1.0.0"
    re.compile(
        rf"extra\[[ \t]*\"(?P<name>{_IDENT})\"[ \t]*\][ \t]*=[ \t]*\"(?P<value>{_VALUE})\"",
    ),
)

PROPERTIES_DEFINITION_PATTERN = re.compile(
    r"^[ \t]*(?P<name>[A-Za-z_][\w.\-]*)[ \t]*[=:][ \t]*(?P<value>[^\s#!]+)[ \t]*$",
    re.MULTILINE,
)

_VARIABLE_PREFIXES = ("rootProject.ext.", "project.ext.", "rootProject.", "project.", "ext.", "extra.")


def is_properties_file(path: str) -> bool:
    return path.endswith(".properties")


def normalize_variable_name(name: str) -> str:
    for prefix in _VARIABLE_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def reference_patterns(group: str, name: str) -> List[Pattern]:
    g = re.escape(group)
    n = re.escape(name)
    patterns = [
        re.compile(rf"['\"]{g}:{n}:\$\{{?(?P<var>[\w.]+)\}}?(?:@\w+)?['\"]"),
        re.compile(
            rf"group\s*:\s*['\"]{g}['\"]\s*,\s*name\s*:\s*['\"]{n}['\"]\s*,\s*version\s*:\s*(?P<var>{_IDENT}(?:\.\w+)*)"
        ),
        re.compile(
            rf"group\s*=\s*\"{g}\"\s*,\s*name\s*=\s*\"{n}\"\s*,\s*version\s*=\s*(?P<var>{_IDENT}(?:\.\w+)*)"
        ),
    ]
    if name == f"{group}.gradle.plugin":
        patterns.extend(
            [
                re.compile(rf"id\s*\(?\s*['\"]{g}['\"]\s*\)?\s+version\s*\(?\s*['\"]\$\{{?(?P<var>[\w.]+)\}}?['\"]"),
                re.compile(rf"id\s*\(\s*\"{g}\"\s*\)\s*version\s+(?P<var>{_IDENT}(?:\.\w+)*)"),
            ]
        )
    return patterns


def definition_update_patterns(variable_name: str, value: str, path: str) -> List[Pattern]:
    """Patterns capturing the text around one definition of ``variable_name``."""
    var = re.escape(variable_name)
    val = re.escape(value)
    if is_properties_file(path):
        return [re.compile(rf"(^[ \t]*{var}[ \t]*[=:][ \t]*){val}([ \t]*$)", re.MULTILINE)]
    return [
        re.compile(
            r"(^[ \t]*(?:(?:def|val|var|String)[ \t]+)?(?:(?:rootProject\.|project\.)?ext\.)?"
            rf"{var}[ \t]*=[ \t]*['\"]){val}(['\"])",
            re.MULTILINE,
        ),
        re.compile(rf"(^[ \t]*val[ \t]+{var}[ \t]+by[ \t]+extra\([ \t]*\"){val}(\")", re.MULTILINE),
        re.compile(rf"(extra\[[ \t]*\"{var}\"[ \t]*\][ \t]*=[ \t]*\"){val}(\")"),
    ]


class VersionVariableRegistry:
    """Variable definitions and dependency references seen during one extraction."""

    def __init__(self):
        self.definitions: Dict[str, List[VersionVariable]] = {}
        self.references: Dict[Tuple[str, str], str] = {}

    def add_definition(self, variable: VersionVariable):
        known = self.definitions.setdefault(variable.variable_name, [])
        if variable not in known:
            known.append(variable)

    def find_definition(self, variable_name: str, value: str) -> Optional[VersionVariable]:
        for variable in self.definitions.get(variable_name, []):
            if variable.value == value:
                return variable
        return None


class VersionVariableBinder:
    """Restores the link between resolved dependency versions and the variables
    that declare them.

    ``bind`` is called once per package file of a project. Definitions and
    references accumulate in the registry, so a variable defined in
    ``gradle.properties`` binds dependencies referenced from any build file
    regardless of which file is scanned first. Existing bindings are never
    replaced.
    """

    def __init__(self, logger, registry: Optional[VersionVariableRegistry] = None):
        self.logger = logger
        self.registry = registry or VersionVariableRegistry()

    def collect_definitions(self, content: str, path: str) -> List[VersionVariable]:
        patterns: Iterable[Pattern] = DEFINITION_PATTERNS
        if is_properties_file(path):
            patterns = (PROPERTIES_DEFINITION_PATTERN,)

        variables = []
        for pattern in patterns:
            for match in pattern.finditer(content):
                variables.append(
                    VersionVariable(
                        variable_name=match.group("name"),
                        value=match.group("value"),
                        defining_file_path=path,
                    )
                )
        return variables

    def find_reference(self, dependency: Dependency, content: str) -> Optional[str]:
        if not dependency.group:
            return None
        for pattern in reference_patterns(dependency.group, dependency.name):
            match = pattern.search(content)
            if match:
                return normalize_variable_name(match.group("var"))
        return None

    def bind(self, dependencies: List[Dependency], content: str, path: str):
        for variable in self.collect_definitions(content, path):
            self.registry.add_definition(variable)

        for dependency in dependencies:
            key = (dependency.group or "", dependency.name)
            if key in self.registry.references:
                continue
            variable_name = self.find_reference(dependency, content)
            if variable_name:
                self.registry.references[key] = variable_name

        for dependency in dependencies:
            if dependency.version_variable is not None:
                continue
            variable_name = self.registry.references.get((dependency.group or "", dependency.name))
            if not variable_name:
                continue
            definition = self.registry.find_definition(variable_name, dependency.current_value)
            if definition is None:
                self.logger.debug(
                    "Variable %s for %s has no definition with value %s yet",
                    variable_name,
                    dependency.dep_name,
                    dependency.current_value,
                )
                continue
            dependency.version_variable = definition
            self.logger.debug(
                "Bound %s to %s defined in %s",
                dependency.dep_name,
                variable_name,
                definition.defining_file_path,
            )

    def with_bindings(self, dependencies: List[Dependency], content: str, path: str) -> List[Dependency]:
        """Pure variant of ``bind``: returns bound copies, leaving inputs and registry untouched."""
        scratch = VersionVariableBinder(self.logger, registry=copy.deepcopy(self.registry))
        copies = [dataclasses.replace(dep, registry_urls=list(dep.registry_urls)) for dep in dependencies]
        scratch.bind(copies, content, path)
        return copies
