"""
rulexpr CLI.

Compile and evaluate expressions from the command line:

    rulexpr check 'a + 1 > 2'
    rulexpr terms 'a + b * c'
    rulexpr eval 'Foo.Bar == "Waz"' --env '{"Foo": {"Bar": "Waz"}}' --bool
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rulexpr._version import get_version
from rulexpr.compiled import CompiledExpression, compile
from rulexpr.core.errors import ExpressionEvalError, ExpressionSyntaxError
from rulexpr.core.ir.values import NullValue, StrValue, Value

app = typer.Typer(
    help="rulexpr: compile and evaluate Go-like expressions against named values",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display the rulexpr version."""
    if value:
        typer.echo(f"rulexpr {get_version()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """rulexpr CLI main callback for global options."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _compile_or_exit(source: str) -> CompiledExpression:
    try:
        return compile(source)
    except ExpressionSyntaxError as e:
        err_console.print(f"[red]Syntax error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _load_env(env: str | None, env_file: Path | None) -> dict[str, Any]:
    """Build the evaluation environment from --env-file and --env (later wins)."""
    bindings: dict[str, Any] = {}
    sources: list[tuple[str, str]] = []
    if env_file is not None:
        try:
            text = env_file.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise typer.BadParameter(f"{env_file} is not UTF-8 text: {e.reason}") from e
        sources.append((str(env_file), text))
    if env is not None:
        sources.append(("--env", env))

    for label, text in sources:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"{label} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise typer.BadParameter(f"{label} must be a JSON object")
        bindings.update(data)
    return bindings


def render_value(value: Value) -> str:
    """Render a value the way it would be written in an expression."""
    if isinstance(value, NullValue):
        return "nil"
    if isinstance(value, StrValue):
        return json.dumps(value.value, ensure_ascii=False)
    return str(value)


@app.command("check")
def check_command(
    expression: Annotated[str, typer.Argument(help="Expression to compile")],
) -> None:
    """Compile an expression and show its parsed form and terms."""
    compiled = _compile_or_exit(expression)

    console.print("[green]✓[/green] Expression compiles")
    if compiled.ast is None:
        console.print("[dim]Empty expression (always true)[/dim]")
        return

    console.print(f"[bold]Parsed:[/bold] {escape(str(compiled.ast))}")
    table = Table(title="Terms")
    table.add_column("#", justify="right")
    table.add_column("Name")
    for i, term in enumerate(compiled.terms, 1):
        table.add_row(str(i), escape(term))
    console.print(table)


@app.command("terms")
def terms_command(
    expression: Annotated[str, typer.Argument(help="Expression to compile")],
) -> None:
    """Print the names an expression references, one per line."""
    compiled = _compile_or_exit(expression)
    for term in compiled.terms:
        typer.echo(term)


@app.command("eval")
def eval_command(
    expression: Annotated[str, typer.Argument(help="Expression to evaluate")],
    env: Annotated[
        str | None, typer.Option("--env", "-e", help="Bindings as a JSON object")
    ] = None,
    env_file: Annotated[
        Path | None,
        typer.Option("--env-file", "-f", exists=True, dir_okay=False, help="JSON file with bindings"),
    ] = None,
    as_bool: Annotated[
        bool, typer.Option("--bool", "-b", help="Print truthiness instead of the value")
    ] = False,
) -> None:
    """Evaluate an expression against JSON bindings."""
    compiled = _compile_or_exit(expression)
    bindings = _load_env(env, env_file)

    if as_bool:
        typer.echo("true" if compiled.as_bool(bindings) else "false")
        return

    try:
        value = compiled.eval(bindings)
    except ExpressionEvalError as e:
        err_console.print(f"[red]Evaluation error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    typer.echo(f"{render_value(value)} ({value.kind})")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
