"""Command-line interface for repohealth."""

import json
import logging
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from repohealth import __version__, schemas
from repohealth.config import ConfigurationError, HealthConfig, get_default_config
from repohealth.health import HealthScorer
from repohealth.report import render_markdown, render_text

CONTEXT_SETTINGS = {
    'help_option_names': ['-h', '--help'],
    'max_content_width': 120
}

@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
@click.option('--verbose', '-v', count=True, help='Increase log verbosity (-v info, -vv debug)')
@click.pass_context
def cli(ctx, verbose: int):
    """repohealth: weighted health scoring for source repositories."""
    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

@cli.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output config file path')
@click.option('--overwrite', is_flag=True, help='Replace an existing config file')
def config(output: Optional[str], overwrite: bool):
    """Generate a configuration file with default settings."""
    cfg = get_default_config()

    if output:
        output_path = Path(output)
        if output_path.exists() and not overwrite:
            raise click.ClickException(f"{output_path} already exists. Use --overwrite to replace it")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        cfg.to_yaml(output_path)
        click.echo(f"Configuration saved to {output_path}")
    else:
        click.echo(yaml.dump(cfg.to_dict(), default_flow_style=False, sort_keys=False), nl=False)

@cli.command()
@click.argument('path', required=False, type=click.Path(file_okay=False))
@click.option('--repo', help='GitHub repository as OWNER/NAME; omit for a local-only audit')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='Config file')
@click.option('--format', 'fmt', type=click.Choice(['text', 'json', 'markdown']), default='text',
              help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write the report to a file')
def score(
    path: Optional[str],
    repo: Optional[str],
    config_path: Optional[str],
    fmt: str,
    output: Optional[str]
):
    """Audit a repository and print its health score."""
    try:
        cfg = HealthConfig.from_yaml(config_path) if config_path else get_default_config()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    # Override config from command line
    if path:
        cfg.target.path = path
    if repo:
        owner, _, name = repo.partition('/')
        if not owner or not name or '/' in name:
            raise click.BadParameter("expected OWNER/NAME", param_hint='--repo')
        cfg.target.owner, cfg.target.repo = owner, name

    try:
        scorer = HealthScorer.from_config(cfg)
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    report = scorer.calculate_health_score()

    if fmt == 'json':
        rendered = json.dumps(report.to_dict(), indent=2)
    elif fmt == 'markdown':
        rendered = render_markdown(report, cfg.weights)
    else:
        rendered = render_text(report)

    if output:
        with open(output, 'w') as f:
            f.write(rendered if rendered.endswith('\n') else rendered + '\n')
        click.echo(f"Report saved to {output}")
    else:
        click.echo(rendered)

@cli.command()
@click.argument('report_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='Config file, for the category weights shown in the table')
@click.option('--format', 'fmt', type=click.Choice(['text', 'markdown']), default='markdown',
              help='Output format')
def render(report_file: str, config_path: Optional[str], fmt: str):
    """Re-render a report saved with `score --format json`."""
    try:
        cfg = HealthConfig.from_yaml(config_path) if config_path else get_default_config()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    try:
        report = schemas.load_report(report_file)
    except ValidationError as e:
        raise click.ClickException(f"{report_file} is not a health report: {e.error_count()} validation errors")
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{report_file} is not valid JSON: {e}")

    click.echo(render_markdown(report, cfg.weights) if fmt == 'markdown' else render_text(report))

@cli.command()
@click.argument('output_dir', type=click.Path(file_okay=False))
def schema(output_dir: str):
    """Export JSON schemas for the config, report and audit result types."""
    written = schemas.export(Path(output_dir))
    for path in written.values():
        click.echo(f"Schema written to {path}")

if __name__ == '__main__':
    cli()
