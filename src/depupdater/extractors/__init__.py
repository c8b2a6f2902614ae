"""Ecosystem extraction adapters."""

from typing import Dict

from depupdater.extractors.base import ExtractionAdapter
from depupdater.extractors.cdnurl import CdnUrlAdapter
from depupdater.extractors.gradle import GradleAdapter
from depupdater.models import RepositoryConfig
from depupdater.services.command_runner import CommandRunner
from depupdater.services.filesystem import FileSystemService

ADAPTER_CLASSES = {
    GradleAdapter.manager: GradleAdapter,
    CdnUrlAdapter.manager: CdnUrlAdapter,
}


def build_adapters(
    config: RepositoryConfig,
    filesystem: FileSystemService,
    runner: CommandRunner,
    logger,
) -> Dict[str, ExtractionAdapter]:
    adapters: Dict[str, ExtractionAdapter] = {}
    for manager in config.enabled_managers:
        if manager == GradleAdapter.manager:
            adapters[manager] = GradleAdapter(filesystem, logger, runner)
        elif manager in ADAPTER_CLASSES:
            adapters[manager] = ADAPTER_CLASSES[manager](filesystem, logger)
        else:
            logger.warning("Unknown manager '%s' ignored", manager)
    return adapters


__all__ = ["ExtractionAdapter", "CdnUrlAdapter", "GradleAdapter", "ADAPTER_CLASSES", "build_adapters"]
