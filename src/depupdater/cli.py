import logging
import os

import click
from rich.logging import RichHandler

from .core import RepositoryOrchestrator
from .errors import UpdaterError
from .models import GROUP_BY_CHOICES, PLATFORM_CHOICES
from .services.config_loader import ConfigLoader, build_repository_config
from .services.upgrades import UpgradeListResolver


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .depupdater.yml if present.",
)
@click.option("--local-dir", required=False, type=click.Path(), help="Repository working copy (default: cwd).")
@click.option(
    "--base-branch",
    "base_branches",
    multiple=True,
    help="Base branch to process. Repeat for several; defaults to the current branch.",
)
@click.option("--upgrades", "upgrades_file", required=False, type=click.Path(), help="YAML/JSON upgrade list.")
@click.option("--gradle-timeout", type=float, default=None, help="Gradle timeout in seconds (default: 600).")
@click.option("--group-by", type=click.Choice(GROUP_BY_CHOICES), default=None, help="Branch grouping policy.")
@click.option("--branch-prefix", required=False, help="Prefix for update branches (default: depupdater/).")
@click.option("--platform", type=click.Choice(PLATFORM_CHOICES), default=None, help="Branch state source.")
@click.option("--repository", required=False, help="owner/name on the platform (github only).")
@click.option("--token", envvar="DEPUPDATER_TOKEN", required=False, help="Platform API token.")
@click.option("--push", is_flag=True, default=None, help="Push created or updated branches to origin.")
@click.option("--dry-run", is_flag=True, default=None, help="Extract and plan without writing branches.")
@click.option("--manifest-file", required=False, type=click.Path(), help="Write the run manifest JSON here.")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    config,
    local_dir,
    base_branches,
    upgrades_file,
    gradle_timeout,
    group_by,
    branch_prefix,
    platform,
    repository,
    token,
    push,
    dry_run,
    manifest_file,
    verbose,
    log_file,
):
    """Extract dependencies and maintain one update branch per upgrade group."""
    logger = logging.getLogger("depupdater")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), ".depupdater.yml")
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc

    values = dict(config_values)
    values["local_dir"] = _resolve_option(local_dir, config_values, "local_dir", default=os.getcwd())
    values["base_branches"] = list(base_branches) or config_values.get("base_branches")
    values["gradle_timeout"] = _resolve_option(gradle_timeout, config_values, "gradle_timeout")
    values["group_by"] = _resolve_option(group_by, config_values, "group_by")
    values["branch_prefix"] = _resolve_option(branch_prefix, config_values, "branch_prefix")
    values["platform"] = _resolve_option(platform, config_values, "platform")
    values["repository"] = _resolve_option(repository, config_values, "repository")
    values["push"] = _resolve_option(push, config_values, "push")
    values["dry_run"] = _resolve_option(dry_run, config_values, "dry_run")
    upgrades_file = _resolve_option(upgrades_file, config_values, "upgrades_file")
    manifest_file = _resolve_option(manifest_file, config_values, "manifest_file")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        repository_config = build_repository_config(values)
        upgrade_resolver = UpgradeListResolver.from_file(upgrades_file, logger) if upgrades_file else None
        orchestrator = RepositoryOrchestrator(
            config=repository_config,
            upgrade_resolver=upgrade_resolver,
            manifest_file=manifest_file,
            github_token=token,
        )
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc

    result = orchestrator.run()
    raise SystemExit(result.exit_code)


if __name__ == "__main__":
    main()
