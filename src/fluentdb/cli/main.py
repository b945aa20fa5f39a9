"""FluentDB CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import fluentdb
from fluentdb.cli.context import CLIContext, get_database_url

# Create main Typer app
app = typer.Typer(
    name="fluentdb",
    help="FluentDB CLI - build and run SQL from the command line",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="FLUENTDB_URL",
            help="Database URL (SQLite, PostgreSQL or MySQL)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log compiled SQL and connection events to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    cli_ctx = CLIContext(
        database_url=get_database_url(database),
        json_output=json_output,
        verbose=verbose,
    )

    # Store in Typer context for command access
    ctx.obj = cli_ctx


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"FluentDB v{fluentdb.__version__}")


# Register commands
from fluentdb.cli.commands import query  # noqa: E402

app.command(name="sql")(query.sql_command)
app.command(name="select")(query.select_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
