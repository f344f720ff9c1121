"""Command-line interface for sdisk."""

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

import click

from .config.config_manager import ConfigManager
from .core.analyzer import DiskAnalyzer
from .core.deleter import PendingDeletion
from .core.errors import ConfigError, ScanRootError
from .core.models import AggregatedTree, DeletionMode, DeletionReport
from .reporters.text_reporter import TextReporter
from .utils.formatters import format_age, format_file_size


def setup_logging(level: str, log_file: Optional[str] = None):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps command output on stdout clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


def collect_roots(root: Optional[str], paths: Sequence[str]) -> List[str]:
    """Combine --path and positional paths, dropping duplicates.

    A root inside another given root is dropped so no file is scanned
    twice. Falls back to the current directory when nothing was given.
    """
    roots: List[str] = []
    for candidate in ([root] if root else []) + list(paths):
        resolved = os.path.abspath(candidate)
        if resolved not in roots:
            roots.append(resolved)
    if not roots:
        return [os.getcwd()]
    return [r for r in roots if not any(_is_inside(r, other) for other in roots if other != r)]


def _is_inside(path: str, ancestor: str) -> bool:
    return os.path.commonpath([path, ancestor]) == ancestor


def parse_selection(text: str, count: int) -> List[int]:
    """Parse a selection such as ``1,3-5`` or ``all`` into zero-based indexes.

    Raises:
        click.BadParameter: If the selection is malformed or out of range.
    """
    text = text.strip().lower()
    if not text:
        return []
    if text in ('all', '*'):
        return list(range(count))

    selected: List[int] = []
    for part in text.replace(' ', ',').split(','):
        if not part:
            continue
        try:
            if '-' in part:
                start, end = (int(value) for value in part.split('-', 1))
            else:
                start = end = int(part)
        except ValueError:
            raise click.BadParameter(f"'{part}' is not a number or range")
        if start < 1 or end > count or start > end:
            raise click.BadParameter(f"'{part}' is outside 1-{count}")
        for index in range(start - 1, end):
            if index not in selected:
                selected.append(index)
    return selected


def _confirm_batch(pending: List[PendingDeletion]) -> bool:
    total = sum(item.size for item in pending)
    return click.confirm(f"Delete {len(pending)} files ({format_file_size(total)})?", default=False)


def _build_analyzer(ctx) -> DiskAnalyzer:
    try:
        return DiskAnalyzer(ctx.obj.get('config_path'), ctx.obj.get('overrides'))
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


def _scan(analyzer: DiskAnalyzer, roots: List[str], announce: bool = True) -> List[AggregatedTree]:
    if announce:
        for root in roots:
            click.echo(f"Scanning {root}", err=True)
    try:
        return analyzer.scan_roots(roots)
    except ScanRootError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _deletion_mode(ctx) -> DeletionMode:
    if ctx.obj['dry_run']:
        return DeletionMode.DRY_RUN
    if ctx.obj['yes']:
        return DeletionMode.AUTO
    return DeletionMode.CONFIRM


def _select(labels: List[str]) -> List[int]:
    click.echo("")
    for index, label in enumerate(labels, 1):
        click.echo(f"{index:>3}. {label}")
    return click.prompt(
        "Select entries to delete (e.g. 1,3-5 or 'all'; empty for none)",
        default='',
        show_default=False,
        value_proc=lambda text: parse_selection(text, len(labels)),
    )


def _delete(ctx, analyzer: DiskAnalyzer, candidates: List[Any],
            limit: Optional[int] = None) -> DeletionReport:
    reporter = TextReporter()
    report = analyzer.clean(candidates, _deletion_mode(ctx), limit=limit, confirm=_confirm_batch)
    click.echo(reporter.deletion_report(report))
    if report.failed:
        sys.exit(1)
    return report


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (default from configuration)')
@click.option('--log-file',
              help='Log file path')
@click.option('--path', '-p', 'root',
              help='Root path to analyze (defaults to current directory)')
@click.option('--stale-days', type=click.FloatRange(min=0), default=None,
              help='Minimum days since last modification/access to consider stale')
@click.option('--reference', type=click.Choice(['modified', 'accessed']), default=None,
              help='Timestamp used to measure staleness')
@click.option('--non-interactive', is_flag=True,
              help='Run non-interactively (no selection prompt)')
@click.option('--yes', is_flag=True,
              help='Assume yes for deletion confirmations')
@click.option('--dry-run', is_flag=True,
              help='Show what would be removed without removing anything')
@click.option('--max-depth', type=click.IntRange(min=0), default=None,
              help='Maximum directory depth to scan')
@click.option('--follow-symlinks/--no-follow-symlinks', default=None,
              help='Follow symbolic links while scanning')
@click.option('--cross-devices/--stay-on-device', default=None,
              help='Descend into directories on other devices')
@click.option('--workers', type=click.IntRange(min=1), default=None,
              help='Number of scanning threads')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str], log_file: Optional[str],
        root: Optional[str], stale_days: Optional[float], reference: Optional[str],
        non_interactive: bool, yes: bool, dry_run: bool, max_depth: Optional[int],
        follow_symlinks: Optional[bool], cross_devices: Optional[bool], workers: Optional[int]):
    """sdisk - analyze disk usage and clean up stale files."""
    ctx.ensure_object(dict)

    logging_config: Dict[str, Any] = {}
    try:
        config_manager = ConfigManager(config_path)
        config_manager.load_config()
        logging_config = config_manager.get_logging_config()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(log_level or logging_config.get('level', 'WARNING'),
                  log_file or logging_config.get('file'))

    ctx.obj['config_path'] = config_path
    ctx.obj['root'] = root
    ctx.obj['interactive'] = not non_interactive
    ctx.obj['yes'] = yes
    ctx.obj['dry_run'] = dry_run
    ctx.obj['overrides'] = {
        'scan': {
            'max_depth': max_depth,
            'follow_symlinks': follow_symlinks,
            'stay_on_device': None if cross_devices is None else not cross_devices,
            'workers': workers,
        },
        'stale': {
            'days': stale_days,
            'reference': reference,
        },
    }


@cli.command()
@click.option('--count', '-n', type=click.IntRange(min=0), default=None,
              help='Number of entries to show')
@click.option('--dirs', is_flag=True,
              help='Rank directories by cumulative size instead of files')
@click.option('--output', '-o', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.argument('paths', nargs=-1)
@click.pass_context
def top(ctx, count: Optional[int], dirs: bool, output: str, paths: Sequence[str]):
    """Show the largest files (or directories)."""
    analyzer = _build_analyzer(ctx)
    reporter = TextReporter()
    trees = _scan(analyzer, collect_roots(ctx.obj['root'], paths), announce=output == 'text')

    if dirs:
        nodes = analyzer.top_directories(trees, count)
        if output == 'json':
            click.echo(json.dumps({'directories': reporter.directories_json(nodes)}, indent=2))
        else:
            click.echo(reporter.scan_summary(trees))
            click.echo(reporter.ranked_directories(nodes))
        return

    ranked = analyzer.top_files(trees, count)
    if output == 'json':
        click.echo(json.dumps({'files': reporter.files_json(ranked)}, indent=2))
        return

    click.echo(reporter.scan_summary(trees))
    click.echo(reporter.ranked_files(ranked))

    if ctx.obj['interactive'] and ranked:
        labels = [f"{format_file_size(record.size)}  {record.path}" for record in ranked]
        selection = _select(labels)
        if not selection:
            return
        _delete(ctx, analyzer, [ranked[index] for index in selection])


@cli.command()
@click.option('--limit', '-l', type=click.IntRange(min=0), default=None,
              help='Show at most N items')
@click.option('--output', '-o', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.argument('paths', nargs=-1)
@click.pass_context
def stale(ctx, limit: Optional[int], output: str, paths: Sequence[str]):
    """List files older than --stale-days, oldest first."""
    analyzer = _build_analyzer(ctx)
    reporter = TextReporter()
    if limit is None:
        limit = analyzer.config_manager.get_clean_config().get('limit')
    trees = _scan(analyzer, collect_roots(ctx.obj['root'], paths), announce=output == 'text')
    report = analyzer.stale_files(trees)

    if output == 'json':
        click.echo(json.dumps(reporter.stale_json(report, limit), indent=2))
        return

    click.echo(reporter.scan_summary(trees))
    click.echo(reporter.stale_report(report, limit))


@cli.command()
@click.option('--limit', '-l', type=click.IntRange(min=0), default=None,
              help='Consider at most N candidates')
@click.argument('paths', nargs=-1)
@click.pass_context
def clean(ctx, limit: Optional[int], paths: Sequence[str]):
    """Remove stale files after selection and confirmation."""
    analyzer = _build_analyzer(ctx)
    reporter = TextReporter()
    if limit is None:
        limit = analyzer.config_manager.get_clean_config().get('limit')
    trees = _scan(analyzer, collect_roots(ctx.obj['root'], paths))
    report = analyzer.stale_files(trees)

    click.echo(reporter.stale_report(report, limit))
    candidates = report.candidates[:limit]
    if not candidates:
        return

    if ctx.obj['interactive']:
        labels = [
            f"{format_file_size(c.size)}  {format_age(c.age)}  {c.path}" for c in candidates
        ]
        selection = _select(labels)
        if not selection:
            click.echo("Nothing selected.")
            return
        candidates = [candidates[index] for index in selection]

    _delete(ctx, analyzer, candidates, limit=limit)


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
