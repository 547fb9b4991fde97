#!/usr/bin/env python3
"""
Hybrid Test Generation - Main Entry Point
"""
import re
import shutil
import sys
import logging
import yaml
from typing import Optional, Dict, Any, Tuple
import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .core.exceptions import ConfigurationError, ResourceUnavailableError
from .core.options import LOG_LEVELS, Coverage, TimeUnit, Visibility, load_options
from .core.models.run_report import RunReport
from .explorer.jbse_wrapper import JbseProcessEngine
from .concretizer.evosuite_wrapper import EvoSuiteProcessEngine
from .orchestrator.coordinator import TestGenerationCoordinator

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)

logger = logging.getLogger(__name__)
console = Console()


_UNIT_SUFFIXES = {
    "ns": TimeUnit.NANOSECONDS,
    "us": TimeUnit.MICROSECONDS,
    "ms": TimeUnit.MILLISECONDS,
    "s": TimeUnit.SECONDS,
    "m": TimeUnit.MINUTES,
    "h": TimeUnit.HOURS,
    "d": TimeUnit.DAYS,
}


class DurationParam(click.ParamType):
    """Durations such as '30', '500ms', '3m' or '2h' (bare numbers are seconds)"""
    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        match = re.fullmatch(r"\s*([0-9]*\.?[0-9]+)\s*([a-z]*)\s*", str(value).lower())
        if not match or match.group(2) not in ("", *_UNIT_SUFFIXES):
            self.fail(f"{value!r} is not a duration (expected e.g. 30s, 500ms, 3m, 2h)", param, ctx)
        unit = _UNIT_SUFFIXES.get(match.group(2) or "s")
        return (float(match.group(1)), unit.name)


DURATION = DurationParam()


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping of option names to values")
    logger.info(f"✓ Loaded configuration from: {config_path}")
    return config


def _parse_heap_scope(entries: Tuple[str, ...]) -> Dict[str, int]:
    heap_scope = {}
    for entry in entries:
        class_name, sep, count = entry.rpartition("=")
        if not sep or not class_name or not count.isdigit():
            raise click.BadParameter(f"expected CLASS=N, got {entry!r}", param_hint="--heap-scope")
        heap_scope[class_name] = int(count)
    return heap_scope


def print_report(report: RunReport) -> None:
    """Render per-method statistics of a run"""
    table = Table(title=f"Run {report.run_name}")
    table.add_column("Target method", style="cyan")
    table.add_column("Paths", justify="right")
    table.add_column("Infeasible", justify="right")
    table.add_column("Duplicate", justify="right")
    table.add_column("Batches", justify="right")
    table.add_column("Tests", justify="right", style="green")
    table.add_column("Failures", justify="right", style="red")
    for stats in report.methods.values():
        table.add_row(
            stats.target,
            str(stats.paths_explored),
            str(stats.paths_infeasible),
            str(stats.paths_duplicate),
            str(stats.batches_dispatched),
            str(stats.tests_generated),
            str(stats.concretization_failures),
        )
    console.print(table)
    console.print(report.get_summary())


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Hybrid Test Generation - symbolic exploration + search-based concretization

    Explores the paths of Java methods symbolically, batches the resulting
    path conditions and hands them to a search-based test generator that
    turns them into JUnit tests.
    """
    pass


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True), help='Path to configuration YAML file')
@click.option('--target-class', help='Generate tests for every eligible method of this class')
@click.option('--target-method', help='Generate tests for one method, as CLASS:DESCRIPTOR:NAME')
@click.option('--visibility', type=click.Choice([v.name for v in Visibility], case_sensitive=False),
              help='Methods of the target class that get tests')
@click.option('--coverage', type=click.Choice([c.name for c in Coverage], case_sensitive=False),
              help='Coverage objective')
@click.option('--max-depth', type=int, help='Maximum symbolic exploration depth')
@click.option('--max-tc-depth', type=int, help='Maximum depth explored past a seed test case')
@click.option('--heap-scope', multiple=True, metavar='CLASS=N', help='Maximum instances of a class (repeatable)')
@click.option('--count-scope', type=int, help='Maximum live objects per path (0 = unlimited)')
@click.option('--uninterpreted', multiple=True, metavar='CLASS:DESCRIPTOR:NAME',
              help='Method treated as uninterpreted (repeatable)')
@click.option('--classes', multiple=True, type=click.Path(), help='Classpath entry of the code under test (repeatable)')
@click.option('--exploration-threads', type=int, help='Threads of the exploration pool')
@click.option('--exploration-throttle', type=float, help='Idle fraction of the exploration pool, in [0, 1]')
@click.option('--concretization-threads', type=int, help='Threads of the concretization pool')
@click.option('--concretization-throttle', type=float, help='Idle fraction of the concretization pool, in [0, 1]')
@click.option('--num-mosa-targets', type=int, help='Path conditions per concretization batch')
@click.option('--global-time-budget', type=DURATION, help='Budget of the whole run (e.g. 10m)')
@click.option('--evosuite-time-budget', type=DURATION, help='Budget of one concretization job (e.g. 180s)')
@click.option('--timeout-mosa-task-creation', type=DURATION,
              help='Longest wait before a partial batch is dispatched (e.g. 5s)')
@click.option('--single-clause/--no-single-clause', default=None, help='Also encode every clause on its own')
@click.option('--replace-whole', is_flag=True, help='With --single-clause, drop the whole-sequence record')
@click.option('--split-fingerprint/--no-split-fingerprint', default=None,
              help='Fingerprint prefix and suffix of each path separately')
@click.option('--no-dependency/--with-dependency', default=None,
              help='Generate tests without the runtime dependency')
@click.option('--initial-test', metavar='CLASS:DESCRIPTOR:NAME', help='Seed test case for the first exploration')
@click.option('--initial-test-path', type=click.Path(), help='Source directory of the seed test case')
@click.option('--tmp-base', type=click.Path(), help='Base directory of run directories')
@click.option('--run-name', help='Name of the run directory (defaults to a timestamp)')
@click.option('--out', '-o', 'out_dir', type=click.Path(), help='Output directory for generated tests')
@click.option('--z3', 'z3_path', type=click.Path(), help='Path of the Z3 binary')
@click.option('--jbse', 'jbse_path', type=click.Path(), help='Path of the JBSE jar')
@click.option('--java8-home', type=click.Path(), help='Java 8 home used to run EvoSuite')
@click.option('--evosuite', 'evosuite_path', type=click.Path(), help='Path of the EvoSuite jar')
@click.option('--sushi-lib', 'sushi_lib_path', type=click.Path(), help='Path of the support library jar')
@click.option('--verbosity', type=click.Choice(list(LOG_LEVELS), case_sensitive=False), help='Log level')
@click.option('--debug', is_flag=True, help='Enable debug mode with detailed logging')
def run(
    config: Optional[str],
    heap_scope: Tuple[str, ...],
    uninterpreted: Tuple[str, ...],
    classes: Tuple[str, ...],
    single_clause: Optional[bool],
    replace_whole: bool,
    debug: bool,
    **flags: Any
):
    """
    Generate tests for a target class or method.

    Workflow:
    1. Explore target methods symbolically (exploration pool)
    2. Encode and deduplicate the path conditions
    3. Batch them per method (count or timeout trigger)
    4. Concretize batches into tests (concretization pool)
    5. Write the tests, re-seed exploration from them, until idle or deadline

    Command line flags override values of the --config file.

    Example:
        hybrid-testgen run --target-class avl_tree/AvlTree --classes bin -o out/tests
    """
    try:
        yaml_config = load_config_file(config) if config else {}

        overrides: Dict[str, Any] = {k: v for k, v in flags.items() if v is not None}
        if heap_scope:
            overrides["heap_scope"] = _parse_heap_scope(heap_scope)
        if uninterpreted:
            overrides["uninterpreted"] = list(uninterpreted)
        if classes:
            overrides["classes"] = list(classes)
        if single_clause is not None:
            overrides["single_clause_mode"] = {"enabled": single_clause, "replace_whole": replace_whole}
        if "no_dependency" in overrides:
            overrides["evosuite_no_dependency"] = overrides.pop("no_dependency")
        if "split_fingerprint" in overrides:
            overrides["split_fingerprint_mode"] = overrides.pop("split_fingerprint")

        builder = load_options(overrides, load_options(yaml_config))
        options = builder.build()

        logging.getLogger().setLevel(logging.DEBUG if debug else options.log_level)

        console.print("\n[bold cyan]Hybrid Test Generation[/bold cyan]")
        console.print(f"[dim]Run: {options.run_name}[/dim]")
        console.print(f"[dim]Target: {options.target_class or options.target_method}[/dim]")
        console.print(f"[dim]Output: {options.out_dir}[/dim]\n")
        for rejection in builder.rejections:
            console.print(f"[yellow]⚠ {escape(str(rejection))}[/yellow]")

        coordinator = TestGenerationCoordinator(
            options,
            JbseProcessEngine(options),
            EvoSuiteProcessEngine(options),
            rejections=builder.rejections,
        )
        report = coordinator.run()

        console.print("\n[bold green]Run Complete![/bold green]")
        print_report(report)
        if report.deadline_reached:
            console.print("\n[yellow]Global time budget elapsed, results are partial[/yellow]")
        sys.exit(0)

    except ResourceUnavailableError as e:
        console.print(f"\n[bold red]Missing resources:[/bold red] {escape(', '.join(e.missing))}")
        sys.exit(1)
    except (ConfigurationError, OSError, yaml.YAMLError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}")
        if debug:
            console.print_exception()
        sys.exit(2)


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True), help='Also check the paths of this configuration')
def info(config: Optional[str]):
    """Display system information and required tools."""
    console.print("\n[bold cyan]System Information[/bold cyan]\n")

    console.print(f"[green]Version:[/green] {__version__}")
    console.print(f"[green]Python Version:[/green] {sys.version}")
    console.print(f"[green]Platform:[/green] {sys.platform}")

    # Check for required tools
    console.print("\n[bold]Required Tools:[/bold]")

    tools = {
        'java': 'Java runtime',
        'z3': 'Z3 SMT solver',
    }

    for tool, description in tools.items():
        if shutil.which(tool):
            console.print(f"  [green]✓[/green] {tool} ({description})")
        else:
            console.print(f"  [red]✗[/red] {tool} ({description}) - NOT FOUND")

    if config:
        builder = load_options(load_config_file(config))
        console.print("\n[bold]Configured Paths:[/bold]")
        for name, path in builder.tool_paths.items():
            mark = "[green]✓[/green]" if path.exists() else "[red]✗[/red]"
            console.print(f"  {mark} {name}: {path}")

    console.print("\n")


if __name__ == '__main__':
    cli()
