"""
CLI utility helpers for output formatting and error reporting.
"""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from autokernel.bridge.symbols import SymbolTable
from autokernel.core.errors import AutokernelError

console = Console()
err_console = Console(stderr=True)


def fail(error: AutokernelError) -> NoReturn:
    """Report an autokernel error and exit non-zero."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    source = error.context.source
    if source:
        err_console.print(f"  [dim]in {source}[/dim]")
    if error.context.traceback:
        err_console.print(error.context.traceback, markup=False, highlight=False)
    raise typer.Exit(code=1)


def print_symbols(table: SymbolTable, *, only_assigned: bool = True) -> None:
    """Render symbol values and their latest provenance."""
    rows = [sym for sym in table if sym.value is not None or not only_assigned]
    if not rows:
        console.print("[dim]No symbols assigned.[/dim]")
        return

    out = Table()
    out.add_column("Symbol", style="cyan")
    out.add_column("Type")
    out.add_column("Value", style="bold")
    out.add_column("From")
    for sym in rows:
        origin = sym.provenance.source if sym.provenance else ""
        out.add_row(sym.name, sym.symbol_type.value, sym.get_string_value(), origin)
    console.print(out)
