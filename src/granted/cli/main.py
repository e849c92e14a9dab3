"""CLI entry point for granted.

Invoked as::

    granted [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m granted.cli.main

Commands
--------
- show     List the rules declared in one or more rule files
- check    Evaluate an action for an ad-hoc subject against rule files
- version  Show version information
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
import yaml
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from granted.config import ConfigLoader, GrantedConfig
from granted.decision import Outcome
from granted.errors import RuleConfigError
from granted.evaluator import RuleEvaluator
from granted.grantable import Grantable
from granted.loader import RuleLoader
from granted.rules import describe

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("granted.yaml")

_OUTCOME_STYLES: dict[Outcome, str] = {
    Outcome.PASSED: "[green]PASSED[/green]",
    Outcome.DENIED: "[red]DENIED[/red]",
    Outcome.NOT_GRANTED: "[red]NOT GRANTED[/red]",
    Outcome.NOT_DEFINED: "[yellow]NOT DEFINED[/yellow]",
    Outcome.INVALID_TARGET: "[red]INVALID TARGET[/red]",
}


class RuleSet(Grantable):
    """Target holding the rules loaded from the command line."""

    def __repr__(self) -> str:
        return "RuleSet()"


class CliSubject(Grantable):
    """Subject assembled from ``--capability`` and ``--attr`` options."""

    def __init__(self, capabilities: tuple[str, ...], attributes: dict[str, object]) -> None:
        self.capabilities = frozenset(capabilities)
        for key, value in attributes.items():
            setattr(self, key, value)

    def __repr__(self) -> str:
        return f"CliSubject(capabilities={sorted(self.capabilities)!r})"


def _load_config(config_path: str | None) -> GrantedConfig:
    loader = ConfigLoader()
    if config_path is not None:
        return loader.load(Path(config_path))
    if _DEFAULT_CONFIG.exists():
        return loader.load(_DEFAULT_CONFIG)
    return loader.defaults()


def _load_rules(rule_paths: tuple[str, ...], config: GrantedConfig) -> RuleSet:
    paths = [Path(p) for p in rule_paths] + list(config.rule_files)
    if not paths:
        raise click.UsageError("No rule files given; pass --rules or set rule_files in the config.")
    target = RuleSet()
    loader = RuleLoader()
    for path in paths:
        loader.load(path, target)
    return target


def _parse_attributes(pairs: tuple[str, ...]) -> dict[str, object]:
    attributes: dict[str, object] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.isidentifier():
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--attr")
        if key == "capabilities":
            raise click.BadParameter("use --capability to set capabilities", param_hint="--attr")
        attributes[key] = yaml.safe_load(value) if value else ""
    return attributes


_rules_option = click.option(
    "--rules",
    "-r",
    "rule_paths",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Rule file to load (repeatable).",
)
_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help=f"Path to the evaluator config (default: ./{_DEFAULT_CONFIG} if present).",
)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="granted")
def cli() -> None:
    """granted CLI — inspect and exercise permission rule files."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from granted import __version__

    console.print(
        Panel(
            f"[bold]granted[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Deny-overrides permission rules for Python objects.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command(name="show")
@_rules_option
@_config_option
def show_command(rule_paths: tuple[str, ...], config_path: str | None) -> None:
    """List the rules declared in the given rule files."""
    try:
        config = _load_config(config_path)
        target = _load_rules(rule_paths, config)
    except (RuleConfigError, FileNotFoundError) as exc:
        err_console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        sys.exit(2)

    registry = target.rule_registry
    table = Table(title="Rules", box=box.SIMPLE)
    table.add_column("Action", style="cyan")
    table.add_column("Effect", style="magenta")
    table.add_column("Guard")
    table.add_column("Check")
    for rule in registry or ():
        effect = "[red]deny[/red]" if rule.is_deny else "[green]allow[/green]"
        table.add_row(rule.action, effect, describe(rule.guard), describe(rule.check))
    console.print(table)
    console.print(f"  Total rules: [cyan]{len(registry) if registry else 0}[/cyan]")


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("action")
@_rules_option
@_config_option
@click.option(
    "--capability",
    "-t",
    "capabilities",
    multiple=True,
    help="Capability tag carried by the subject (repeatable).",
)
@click.option(
    "--attr",
    "-a",
    "attr_pairs",
    multiple=True,
    help="Subject attribute as KEY=VALUE; VALUE is parsed as YAML (repeatable).",
)
def check_command(
    action: str,
    rule_paths: tuple[str, ...],
    config_path: str | None,
    capabilities: tuple[str, ...],
    attr_pairs: tuple[str, ...],
) -> None:
    """Check whether a subject may perform ACTION under the given rules."""
    attributes = _parse_attributes(attr_pairs)
    try:
        config = _load_config(config_path)
        target = _load_rules(rule_paths, config)
    except (RuleConfigError, FileNotFoundError) as exc:
        err_console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        sys.exit(2)

    subject = CliSubject(capabilities, attributes)
    evaluator = RuleEvaluator(config.evaluation)
    decision = asyncio.run(evaluator.decide(subject, action, target))

    console.print(
        Panel(_OUTCOME_STYLES[decision.outcome], title="Permission Check Result", border_style="blue")
    )
    console.print(f"  Action: [bold]{action}[/bold]")
    console.print(f"  Reason: {escape(decision.reason)}")

    sys.exit(0 if decision.allowed else 1)


if __name__ == "__main__":
    cli()
