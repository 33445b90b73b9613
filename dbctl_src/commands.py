#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
CLI commands for managing the dockerized MySQL instance.
"""

import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, Callable, NoReturn, Optional

import typer
from rich.markup import escape
from rich.table import Table

from .errors import DbctlError
from .manager import DatabaseManager, console, err_console


class Command(str, Enum):
    """Supported subcommands; anything else prints the usage listing"""

    IMPORT = "mysql:import"
    DUMP = "mysql:dump"
    QUERY = "mysql:query"
    EXEC = "exec"
    INIT = "init"
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    STATUS = "status"


COMMAND_NAMES = {command.value for command in Command}

USAGE = """\
Usage: dbctl [-v] <command> [args...]

Commands:
  mysql:import <dump> <db>   Create <db> if absent and load ./dumps/<dump>.sql
  mysql:dump <db> <out>      Write a dump of <db> to ./dumps/<out>.sql
  mysql:query <sql...>       Run a raw SQL statement
  exec <cmd...>              Run a command inside the database container
  init [--force]             Render docker-compose.yml from dbctl.yaml
  start                      Start the containers
  stop                       Stop the containers
  restart                    Stop, then start the containers
  status                     Show the running containers
"""

# Forward option-like tokens (e.g. `-uroot`, `--help`) to the delegated command
PASSTHROUGH = {"ignore_unknown_options": True}

# Lifecycle commands take no arguments; anything extra is ignored
IGNORE_EXTRA = {"allow_extra_args": True, "ignore_unknown_options": True}

# Options accepted before the subcommand
GLOBAL_OPTIONS = {"-v", "--verbose"}

app = typer.Typer(
    name="dbctl",
    help="Start, stop and query a dockerized MySQL instance",
    add_completion=False,
)


def fail(error: DbctlError) -> NoReturn:
    err_console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(error.exit_code)


def run_action(action: Callable[..., int], *args) -> NoReturn:
    """Run a manager action and exit with its code"""
    try:
        code = action(*args)
    except DbctlError as e:
        fail(e)
    raise typer.Exit(code)


# ============================================================================
# CLI Commands
# ============================================================================


@app.callback(invoke_without_command=True)
def startup(
    ctx: typer.Context,
    verbose: Annotated[
        bool, typer.Option("-v", "--verbose", help="Echo delegated commands")
    ] = False,
):
    """Validate preconditions shared by every command"""
    manager = DatabaseManager(Path.cwd(), verbose=verbose)
    try:
        manager.check_preconditions(
            require_compose_file=ctx.invoked_subcommand != Command.INIT.value
        )
    except DbctlError as e:
        fail(e)

    ctx.obj = manager
    if ctx.invoked_subcommand is None:
        console.print(USAGE, markup=False, highlight=False, end="")
        raise typer.Exit(0)


@app.command(Command.STATUS.value, context_settings=IGNORE_EXTRA)
def status(ctx: typer.Context):
    """Show the running containers"""
    manager: DatabaseManager = ctx.obj
    try:
        containers = manager.status()
    except DbctlError as e:
        fail(e)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("State", style="green")
    for container in containers:
        table.add_row(container["name"], container["state"])
    console.print(table)


@app.command(Command.START.value, context_settings=IGNORE_EXTRA)
def start(ctx: typer.Context):
    """Start all containers in detached mode"""
    manager: DatabaseManager = ctx.obj
    try:
        code = manager.start()
    except DbctlError as e:
        fail(e)

    if code == 0:
        console.print("[green]✓[/green] Containers started")
    raise typer.Exit(code)


@app.command(Command.STOP.value, context_settings=IGNORE_EXTRA)
def stop(ctx: typer.Context):
    """Stop and remove the containers"""
    run_action(ctx.obj.stop)


@app.command(Command.RESTART.value, context_settings=IGNORE_EXTRA)
def restart(ctx: typer.Context):
    """Stop, then start the containers"""
    run_action(ctx.obj.restart)


@app.command(Command.EXEC.value, context_settings=PASSTHROUGH, add_help_option=False)
def exec_command(
    ctx: typer.Context,
    args: Annotated[
        Optional[list[str]], typer.Argument(help="Command to run in the container")
    ] = None,
):
    """Run a command inside the database container"""
    run_action(ctx.obj.exec, args or [])


@app.command(Command.IMPORT.value)
def mysql_import(
    ctx: typer.Context,
    dump_name: Annotated[str, typer.Argument(help="Dump name, without .sql")],
    database: Annotated[str, typer.Argument(help="Target database")],
):
    """Create a database if absent and load a dump into it"""
    run_action(ctx.obj.import_dump, dump_name, database)


@app.command(Command.DUMP.value)
def mysql_dump(
    ctx: typer.Context,
    database: Annotated[str, typer.Argument(help="Database to dump")],
    output_name: Annotated[str, typer.Argument(help="Output name, without .sql")],
):
    """Dump a database to a local file"""
    run_action(ctx.obj.dump, database, output_name)


@app.command(Command.QUERY.value, context_settings=PASSTHROUGH, add_help_option=False)
def mysql_query(
    ctx: typer.Context,
    args: Annotated[Optional[list[str]], typer.Argument(help="SQL statement")] = None,
):
    """Run a raw SQL statement"""
    run_action(ctx.obj.query, args or [])


@app.command(Command.INIT.value)
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite the compose file if it already exists"),
    ] = False,
):
    """Render the compose file from dbctl.yaml"""
    manager: DatabaseManager = ctx.obj
    output_path = manager.generate_compose_file(force=force)
    if output_path is None:
        console.print(
            f"[yellow]{escape(manager.config.compose.file)} already exists. "
            "Use --force to overwrite.[/yellow]"
        )
        return
    console.print(f"[green]✓[/green] Generated {escape(str(output_path))}")


def normalize_args(args: list[str]) -> list[str]:
    """Drop an unknown subcommand or option so the usage listing is printed instead"""
    for index, token in enumerate(args):
        if token in GLOBAL_OPTIONS:
            continue
        if token in COMMAND_NAMES:
            return args
        return args[:index]
    return args


def main(argv: Optional[list[str]] = None):
    """Main entry point"""
    args = list(sys.argv[1:] if argv is None else argv)
    app(args=normalize_args(args), prog_name="dbctl")
