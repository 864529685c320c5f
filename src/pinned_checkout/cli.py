"""
Command-line interface for the pinned checkout provisioner.
"""

import click
import logging
import sys
from typing import Optional, Dict, Any
from pathlib import Path

from . import __version__
from .config import ConfigManager, AppConfig
from .error_handling import ProvisionError, ConfigurationError
from .logging import setup_logging, LoggerConfig
from .repository import RepositoryProvisioner

logger = logging.getLogger(__name__)


@click.command()
@click.version_option(version=__version__)
@click.argument('path', type=click.Path(path_type=Path))
@click.option(
    '--config', '-c', 'config_file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (use -v or -vv)'
)
@click.option(
    '--repository-url',
    help='Repository to clone instead of the pinned default'
)
@click.option(
    '--reference',
    help='Tag or branch to check out instead of the pinned default'
)
@click.option(
    '--verify-existing/--no-verify-existing',
    default=None,
    help='Rebuild an existing checkout whose origin or HEAD does not match the reference'
)
def main(
    path: Path,
    config_file: Optional[Path],
    verbose: int,
    repository_url: Optional[str],
    reference: Optional[str],
    verify_existing: Optional[bool]
) -> None:
    """
    Ensure PATH holds a shallow checkout of the pinned reference.

    An existing checkout (a PATH with a .git directory) is left as it is.
    Anything else at PATH is replaced by a fresh depth-1 clone.
    """
    try:
        config = ConfigManager(config_file).load_config(
            create_cli_overrides(repository_url, reference, verify_existing)
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    configure_logging(config, verbose)

    provisioner = RepositoryProvisioner.from_config(config.source)
    try:
        result = provisioner.provision(path, config.source.repository_url, config.source.reference)
    except ProvisionError as e:
        logger.debug(f"Provisioning failed: {e}")
        click.echo(e.diagnostic, err=True)
        sys.exit(1)

    logger.debug(f"Provisioning result: {result.to_dict()}")


def create_cli_overrides(
    repository_url: Optional[str],
    reference: Optional[str],
    verify_existing: Optional[bool]
) -> Dict[str, Any]:
    """Create configuration overrides from CLI options."""
    source: Dict[str, Any] = {}

    if repository_url:
        source['repository_url'] = repository_url
    if reference:
        source['reference'] = reference
    if verify_existing is not None:
        source['verify_existing'] = verify_existing

    return {'source': source} if source else {}


def configure_logging(config: AppConfig, verbose: int) -> None:
    """Set up logging; ``-v`` flags win over the configured level."""
    if verbose == 1:
        level = "INFO"
    elif verbose >= 2:
        level = "DEBUG"
    else:
        level = config.logging.level

    setup_logging(LoggerConfig(
        level=level,
        file_path=config.logging.file,
        format_string=config.logging.format,
        max_file_size=config.logging.max_file_size,
        backup_count=config.logging.backup_count,
        structured=config.logging.structured
    ))


if __name__ == '__main__':
    main()
