"""Extraction of cdnjs URLs embedded in arbitrary text files."""

import re
from typing import List, Optional

from depupdater.extractors.base import ExtractionAdapter
from depupdater.models import Dependency, Upgrade

CLOUDFLARE_URL = re.compile(
    r"//cdnjs\.cloudflare\.com/ajax/libs/(?P<name>[^/]+?)/(?P<version>[^/]+?)/(?P<asset>[-/_.a-zA-Z0-9]+)"
)


class CdnUrlAdapter(ExtractionAdapter):
    """Finds ``//cdnjs.cloudflare.com/ajax/libs/<name>/<version>/<asset>`` references.

    No files are matched by default; enable it with ``file_match: {cdnurl: [...]}``.
    """

    manager = "cdnurl"
    datasource_id = "cdnjs"

    def extract_package_file(self, content: str, path: str) -> List[Dependency]:
        deps = []
        for match in CLOUDFLARE_URL.finditer(content):
            deps.append(
                Dependency(
                    name=match.group("name"),
                    current_value=match.group("version"),
                    lookup_name=f"{match.group('name')}/{match.group('asset')}",
                )
            )
        return deps

    def update_dependency(
        self,
        file_content: str,
        upgrade: Upgrade,
        dependency: Optional[Dependency] = None,
    ) -> str:
        self.logger.debug(
            "cdnurl.update_dependency(): %s %s ==> %s",
            upgrade.dep_name,
            upgrade.current_value,
            upgrade.new_value,
        )
        pattern = re.compile(
            rf"(//cdnjs\.cloudflare\.com/ajax/libs/{re.escape(upgrade.dep_name)}/){re.escape(upgrade.current_value)}(/)"
        )
        return pattern.sub(lambda match: f"{match.group(1)}{upgrade.new_value}{match.group(2)}", file_content)
