"""Query commands: run raw SQL or build a SELECT from options."""

from typing import Annotated, Any

import typer

from fluentdb.cli.context import CLIContext
from fluentdb.cli.output import OutputFormatter
from fluentdb.cli.parsing import parse_condition, parse_value

_ROW_KEYWORDS = ("SELECT", "WITH", "PRAGMA", "EXPLAIN", "SHOW", "VALUES")


def _parse_parameters(specs: list[str]) -> dict[str, Any]:
    parameters: dict[str, Any] = {}
    for spec in specs:
        name, sep, value = spec.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Invalid parameter: '{spec}'. Expected format: name=value")
        parameters[name.strip()] = parse_value(value)
    return parameters


def sql_command(
    ctx: typer.Context,
    sql: Annotated[str, typer.Argument(help="SQL statement to execute verbatim")],
    params: Annotated[
        list[str] | None,
        typer.Option("--param", "-p", help="Bound parameter as name=value (repeatable)"),
    ] = None,
) -> None:
    """Execute a raw SQL statement.

    Examples:

        fluentdb sql "SELECT * FROM users WHERE id = :id" -p id=1
        fluentdb sql "UPDATE users SET active = 0"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        statement = cli_ctx.get_db().raw(sql, _parse_parameters(params or []))
        rows = statement.get()

        if rows or sql.lstrip().upper().startswith(_ROW_KEYWORDS):
            formatter.print_rows(rows)
        else:
            formatter.print_success("Statement executed", {"rowcount": statement.rowcount})
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


def select_command(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table to select from")],
    columns: Annotated[
        list[str] | None,
        typer.Option("--column", "-c", help="Column to select (repeatable, default: *)"),
    ] = None,
    where: Annotated[
        list[str] | None,
        typer.Option("--where", "-w", help="Condition as column=value, column>=value, ... (repeatable)"),
    ] = None,
    order: Annotated[
        str | None,
        typer.Option("--order", "-o", help="Column to order by"),
    ] = None,
    desc: Annotated[
        bool,
        typer.Option("--desc", help="Order descending"),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", min=0, help="Maximum number of rows"),
    ] = None,
    show_sql: Annotated[
        bool,
        typer.Option("--show-sql", help="Print the compiled SQL and parameters"),
    ] = False,
) -> None:
    """Build and run a SELECT.

    Examples:

        fluentdb select users -c id -c name -w active=true --order id --desc --limit 10
        fluentdb select orders -w "total>=100" --show-sql
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        select = cli_ctx.get_db().table(table).select(*(columns or []))
        for spec in where or []:
            try:
                column, operator, value = parse_condition(spec)
            except ValueError as e:
                raise typer.BadParameter(str(e)) from e
            select.where(column, operator, value)
        if order:
            if desc:
                select.order_desc(order)
            else:
                select.order_asc(order)
        if limit is not None:
            select.limit(limit)

        if show_sql:
            compiled = select.compile()
            formatter.print_sql(compiled.sql, compiled.parameters)

        formatter.print_rows(select.get(), title=table)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
