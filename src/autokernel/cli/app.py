"""
Root Typer application for the autokernel CLI.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.table import Table
from typer import Typer

from autokernel.cli.utils import console, err_console, fail, print_symbols
from autokernel.core.errors import AutokernelError
from autokernel.core.logging import configure_logging

app = Typer(
    name="autokernel",
    help="autokernel: write kernel configuration in Lua.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from autokernel import __version__

        typer.echo(f"autokernel {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """autokernel CLI: apply configuration sources and explain the results."""
    from autokernel.core.settings import get_settings

    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


# ── Helpers ──────────────────────────────────────────────────────────────


def _apply(config: Path, symbols: Path):
    from autokernel.bridge.symbols import SymbolTable
    from autokernel.bridge.tree import read_kernel_version
    from autokernel.config import load_config_source
    from autokernel.core.settings import get_settings

    try:
        table = SymbolTable.from_file(symbols)
        if table.get_env("KERNELVERSION") is None:
            version = read_kernel_version(get_settings().kernel_dir)
            if version:
                table.env["KERNELVERSION"] = version
        load_config_source(config).apply_kernel_config(table)
    except AutokernelError as exc:
        fail(exc)
    return table


_CONFIG_ARG = typer.Argument(..., exists=True, dir_okay=False, help="Lua script or .config file to apply.")
_SYMBOLS_OPT = typer.Option(..., "--symbols", "-s", exists=True, dir_okay=False, help="TOML symbol declarations.")


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("apply")
def apply_config(
    config: Path = _CONFIG_ARG,
    symbols: Path = _SYMBOLS_OPT,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the result as a .config file."),  # noqa: UP007
    as_json: bool = typer.Option(False, "--json", help="Print values as JSON."),
) -> None:
    """Apply a configuration source and show the resulting symbol values."""
    table = _apply(config, symbols)

    if output is not None:
        from autokernel.core.settings import get_settings

        output.write_text(table.dump_config(prefix=get_settings().symbol_prefix), encoding="utf-8")
        err_console.print(f"[green]✓[/green] Wrote {output}")
        return

    if as_json:
        assigned = {sym.name: sym.get_string_value() for sym in table if sym.value is not None}
        console.print_json(json.dumps(assigned))
        return

    print_symbols(table)


@app.command("explain")
def explain_symbol(
    symbol: str = typer.Argument(..., help="Symbol name, without prefix."),
    config: Path = _CONFIG_ARG,
    symbols: Path = _SYMBOLS_OPT,
) -> None:
    """Show every assignment of one symbol, oldest first."""
    table = _apply(config, symbols)

    sym = table.symbol(symbol)
    if sym is None:
        err_console.print(f"[red]Error:[/red] unknown symbol {symbol}")
        raise typer.Exit(1)

    console.print(f"[bold]{sym.name}[/bold] ({sym.symbol_type.value}) = {sym.get_string_value()}")
    if not sym.history:
        console.print("[dim]Never assigned.[/dim]")
        return
    for number, record in enumerate(sym.history, start=1):
        console.print(f"  {number}. from [cyan]{record.source}[/cyan]")
        if record.traceback:
            console.print(f"     {record.traceback}", markup=False, highlight=False)


@app.command("settings")
def show_settings(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
) -> None:
    """Show the effective autokernel settings."""
    from autokernel.core.settings import get_settings

    settings = get_settings()
    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    out = Table()
    out.add_column("Setting")
    out.add_column("Value")
    for key, value in sorted(settings.model_dump().items()):
        out.add_row(key, str(value))
    console.print(out)
