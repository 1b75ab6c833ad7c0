"""CLI entrypoints for playdeck.

This module exposes the `typer` application and its commands.

Key behaviors
- `validate` reports every warning and error of a config in one pass; any error exits 1.
- `plan` validates, decodes and prints the resolved plays with their command lines.
- `inventory` prints the inventory document rendered for one play.
- `run` executes the enabled plays, locally or on an SSH `--host`.
- Output modes: default prints tables; `--quiet` prints a single summary line;
  `-v` also prints stdout/stderr blocks per play.
- Artifacts: `--log-file` writes JSONL records per play.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .commands import build_command, command_line
from .config import load_config
from .decoder import load_plan
from .inventory import render_inventory
from .models import ProvisionerConfig, ValidationResult
from .runner import PlayResult, SSHTarget, run_plan
from .validator import validate

app = typer.Typer(add_completion=False, help="Validate, plan and run ordered Ansible plays")
console = Console()

INVENTORY_PLACEHOLDER = "<inventory>"


def _expand(path: Path) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def _load_raw(config: Path) -> Dict[str, Any]:
    try:
        return load_config(_expand(config))
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="CONFIG")


def _print_diagnostics(result: ValidationResult, quiet: bool) -> None:
    if quiet:
        console.print(f"Errors: {len(result.errors)}, Warnings: {len(result.warnings)}")
        return
    for warning in result.warnings:
        console.print(f"[yellow]warning[/yellow]: {escape(warning)}")
    for error in result.errors:
        console.print(f"[red]error[/red]: {escape(error)}")


def _checked_plan(config: Path, quiet: bool) -> ProvisionerConfig:
    """Load, validate and decode; exits 1 when validation reports errors."""
    try:
        resolved, result = load_plan(_expand(config))
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="CONFIG")
    if result.errors or (result.warnings and not quiet):
        _print_diagnostics(result, quiet)
    if resolved is None:
        raise typer.Exit(code=1)
    return resolved


def _plan_table(plan: ProvisionerConfig) -> Table:
    table = Table(title="Planned Plays", show_lines=False)
    table.add_column("#", style="bold")
    table.add_column("Enabled")
    table.add_column("Kind")
    table.add_column("Target")
    table.add_column("Hosts")
    table.add_column("Groups")
    table.add_column("Become")
    table.add_column("Forks")
    table.add_column("Command (preview)")

    for index, play in enumerate(plan.plays):
        args = play.call_args
        become = f"{args.become_method}:{args.become_user}" if args.become.enabled else "no"
        inventory = plan.inventory_file or INVENTORY_PLACEHOLDER
        table.add_row(
            str(index),
            play.enabled.value,
            play.kind,
            escape(play.name),
            ", ".join(play.inventory_meta.hosts),
            ", ".join(play.inventory_meta.groups),
            become,
            str(args.forks),
            escape(command_line(build_command(play, inventory))[:160]),
        )
    return table


@app.command("validate")
def validate_cmd(
    config: Path = typer.Argument(..., dir_okay=False, help="Path to provisioner config YAML"),
    quiet: bool = typer.Option(False, help="Minimal output: only counts and exit code"),
) -> None:
    """Validate CONFIG and report all warnings and errors.

    Exits 1 when at least one error is found; warnings never fail validation.
    """
    result = validate(_load_raw(config))
    _print_diagnostics(result, quiet)
    if not quiet and result.ok:
        console.print("[green]Configuration is valid[/green]")
    raise typer.Exit(code=0 if result.ok else 1)


@app.command()
def plan(
    config: Path = typer.Argument(..., dir_okay=False, help="Path to provisioner config YAML"),
) -> None:
    """Show the resolved plays of CONFIG after per-play fallback to global defaults."""
    resolved = _checked_plan(config, quiet=False)
    console.print(_plan_table(resolved))
    mode = "local" if resolved.local.enabled else "remote"
    console.print(f"{len(resolved.enabled_plays())} of {len(resolved.plays)} plays enabled, {mode} execution")


@app.command("inventory")
def inventory_cmd(
    config: Path = typer.Argument(..., dir_okay=False, help="Path to provisioner config YAML"),
    play: int = typer.Option(0, min=0, help="Index of the play to render"),
    local: Optional[bool] = typer.Option(None, "--local/--remote", help="Inventory form (defaults to the config 'local' flag)"),
) -> None:
    """Print the inventory document rendered for one play of CONFIG."""
    resolved = _checked_plan(config, quiet=True)
    if play >= len(resolved.plays):
        raise typer.BadParameter(f"Config has {len(resolved.plays)} plays.", param_hint="--play")
    use_local = resolved.local.enabled if local is None else local
    typer.echo(render_inventory(resolved.plays[play].inventory_meta, local=use_local), nl=False)


@app.command()
def run(
    config: Path = typer.Argument(..., dir_okay=False, help="Path to provisioner config YAML"),
    host: Optional[str] = typer.Option(None, help="SSH host to run Ansible on (omit to run locally)"),
    username: Optional[str] = typer.Option(None, help="SSH username"),
    port: int = typer.Option(22, min=1, help="SSH port"),
    identity: Optional[Path] = typer.Option(None, help="Path to private key file to use"),
    connect_timeout: float = typer.Option(10.0, min=1.0, help="SSH connect timeout (seconds)"),
    dry_run: bool = typer.Option(False, help="Preview the plays and commands without executing"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Print stdout/stderr blocks per play"),
    quiet: bool = typer.Option(False, help="Minimal output: only summary and exit code"),
    log_file: Optional[Path] = typer.Option(None, help="Write JSON lines log with per-play results"),
) -> None:
    """Run the enabled plays of CONFIG in order.

    Details
    - Plays run sequentially; the first failing play stops the run.
    - With ``--host`` (and ``local: no`` in the config) Ansible is installed and run on that
      host over SSH; otherwise it runs on this machine.
    - ``--dry-run`` prints the plan and exits 0. ``--quiet`` reduces output to a single
      summary line. When ``--log-file`` is provided, a JSON Lines file is written with one
      record per play including result metadata and the command line.
    """
    resolved = _checked_plan(config, quiet)

    if dry_run:
        if not quiet:
            console.print(_plan_table(resolved))
        console.print(f"Will run {len(resolved.enabled_plays())} plays")
        raise typer.Exit(code=0)

    target: Optional[SSHTarget] = None
    if host:
        target = SSHTarget(
            host=host,
            username=username,
            port=port,
            identity=_expand(identity) if identity else None,
            connect_timeout=connect_timeout,
        )

    if not quiet:
        where = "locally" if resolved.local.enabled or target is None else f"on {host}"
        console.print(f"Running {len(resolved.enabled_plays())} plays {where}...")

    results: List[PlayResult] = run_plan(resolved, target)

    ok_count = sum(1 for r in results if r.ok)
    failed_count = len(results) - ok_count
    exit_code = 0 if failed_count == 0 else 1

    if not quiet:
        table = Table(title="Play Results", show_lines=False)
        table.add_column("#", style="bold")
        table.add_column("Play")
        table.add_column("Status")
        table.add_column("Exit")
        table.add_column("Duration (s)")
        table.add_column("Error")

        for r in results:
            exit_text = "" if r.exit_status is None else str(r.exit_status)
            error_text = ""
            if not r.ok:
                error_text = (r.error or (r.stderr.strip().splitlines() or [""])[-1])[:200]
            table.add_row(str(r.index), escape(f"{r.kind}: {r.name}"), "OK" if r.ok else "FAIL", exit_text, f"{r.duration:.2f}", escape(error_text))

        console.print(table)

        if failed_count:
            console.print(f"[red]Failed: {failed_count}[/red], Succeeded: {ok_count}")
        else:
            console.print(f"[green]Succeeded: {ok_count}[/green]")

        if verbose >= 1:
            for r in results:
                if r.stdout:
                    console.rule(f"[bold]STDOUT[/bold] - play {r.index}")
                    console.print(r.stdout, markup=False, highlight=False)
                if r.stderr:
                    console.rule(f"[bold red]STDERR[/bold red] - play {r.index}")
                    console.print(r.stderr, markup=False, highlight=False)
    else:
        if failed_count:
            console.print(f"Failed: {failed_count}, Succeeded: {ok_count}")
        else:
            console.print(f"Succeeded: {ok_count}")

    if log_file is not None:
        log_file = _expand(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with log_file.open("w", encoding="utf-8") as f:
            for r in results:
                record = {
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "play": r.index,
                    "kind": r.kind,
                    "name": r.name,
                    "ok": r.ok,
                    "exit_status": r.exit_status,
                    "duration_sec": r.duration,
                    "error": r.error,
                    "stdout": r.stdout,
                    "stderr": r.stderr,
                    "command": r.command,
                }
                f.write(json.dumps(record) + "\n")

    raise typer.Exit(code=exit_code)
