#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Database manager for Docker Compose and MySQL client operations.
"""

import json
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import IO, Optional

import yaml
from jinja2 import Environment, FileSystemLoader
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .errors import (
    CommandFailed,
    ContainersAlreadyRunning,
    ContainersNotRunning,
    Interrupted,
    InvalidSettings,
    MissingConfigFile,
    MissingDumpFile,
    MissingOrchestrationDescriptor,
    MissingRequiredCredential,
    MissingRequiredExecutable,
)
from .models import Secrets, Settings

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

SETTINGS_FILE = "dbctl.yaml"
TEMPLATES_DIR = Path(__file__).parent / "templates"
COMPOSE_TEMPLATE = "docker-compose.yml.jinja2"


def quote_identifier(name: str) -> str:
    """Quote a MySQL identifier with backticks"""
    return "`" + name.replace("`", "``") + "`"


# ============================================================================
# Core Database Manager
# ============================================================================


class DatabaseManager:
    """Manages the dockerized MySQL instance"""

    def __init__(self, project_root: Path, verbose: bool = False):
        self.project_root = project_root
        self.verbose = verbose
        self.settings_path = project_root / SETTINGS_FILE
        self.settings: Optional[Settings] = None
        self.secrets: Optional[Secrets] = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def load_settings(self) -> Settings:
        """Load dbctl.yaml, falling back to defaults when it is absent"""
        data = {}
        if self.settings_path.exists():
            with open(self.settings_path, encoding="utf-8") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise InvalidSettings(f"{self.settings_path}: {e}") from e
            if not isinstance(data, dict):
                raise InvalidSettings(f"{self.settings_path}: expected a mapping")

        try:
            return Settings(**data)
        except ValidationError as e:
            raise InvalidSettings(f"{self.settings_path}: {e}") from e

    def load_secrets(self, settings: Settings) -> Secrets:
        """Load the root credential from the secrets file"""
        secrets_path = self.project_root / settings.secrets_file
        if not secrets_path.is_file():
            raise MissingConfigFile(f"{secrets_path} not found")

        try:
            return Secrets(_env_file=secrets_path)
        except ValidationError as e:
            raise MissingRequiredCredential(
                f"MYSQL_ROOT_PASSWORD is not set in {secrets_path}"
            ) from e

    def check_preconditions(self, require_compose_file: bool = True) -> None:
        """Validate everything a subcommand needs before it runs.

        Order: settings, secrets file, credential, compose descriptor,
        executables. Nothing is executed here.
        """
        self.settings = self.load_settings()
        self.secrets = self.load_secrets(self.settings)

        if require_compose_file and not self.compose_path.is_file():
            raise MissingOrchestrationDescriptor(f"{self.compose_path} not found")

        for executable in (
            self.settings.compose.argv[0],
            self.settings.runtime.command,
        ):
            if shutil.which(executable) is None:
                raise MissingRequiredExecutable(f"{executable} not found in PATH")

    @property
    def config(self) -> Settings:
        if self.settings is None:
            self.settings = self.load_settings()
        return self.settings

    @property
    def compose_path(self) -> Path:
        return self.project_root / self.config.compose.file

    @property
    def dumps_dir(self) -> Path:
        return self.project_root / self.config.mysql.dumps_dir

    # ------------------------------------------------------------------
    # Subprocess plumbing
    # ------------------------------------------------------------------

    def compose_cmd(self, *args: str) -> list[str]:
        return [*self.config.compose.argv, "-f", str(self.compose_path), *args]

    def exec_cmd(self, *args: str, interactive: bool = True, tty: bool = False) -> list[str]:
        """Build a ``docker exec`` command line for the database container"""
        cmd = [self.config.runtime.command, "exec"]
        if interactive:
            cmd.append("-i")
        if tty:
            cmd.append("-t")
        # Value is taken from the environment of the docker client
        cmd.extend(["-e", "MYSQL_PWD", self.config.runtime.container])
        cmd.extend(args)
        return cmd

    def client_env(self) -> dict[str, str]:
        env = os.environ.copy()
        if self.secrets is not None:
            env["MYSQL_PWD"] = self.secrets.mysql_root_password.get_secret_value()
        return env

    def run(
        self,
        cmd: list[str],
        stdin: Optional[IO[bytes]] = None,
        stdout: Optional[IO[bytes]] = None,
    ) -> int:
        """Run a delegated command with inherited stdio unless redirected"""
        if self.verbose:
            err_console.print(f"[dim]Running: {escape(' '.join(cmd))}[/dim]")

        try:
            result = subprocess.run(
                cmd,
                cwd=self.project_root,
                env=self.client_env(),
                stdin=stdin,
                stdout=stdout,
            )
            return result.returncode
        except KeyboardInterrupt:
            err_console.print("\n[yellow]Interrupted by user[/yellow]")
            return 130

    # ------------------------------------------------------------------
    # Container state
    # ------------------------------------------------------------------

    def running_containers(self) -> list[dict[str, str]]:
        """Return the active containers reported by the orchestrator"""
        cmd = self.compose_cmd("ps", "--format", "json")
        if self.verbose:
            err_console.print(f"[dim]Running: {escape(' '.join(cmd))}[/dim]")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.project_root,
            )
        except KeyboardInterrupt as e:
            raise Interrupted("interrupted by user") from e
        if result.returncode != 0:
            raise CommandFailed(cmd, result.returncode, result.stderr)

        try:
            return parse_ps_output(result.stdout)
        except ValueError as e:
            raise CommandFailed(cmd, 1, f"unparseable ps output: {e}") from e

    def is_running(self) -> bool:
        return bool(self.running_containers())

    def require_running(self) -> None:
        if not self.is_running():
            raise ContainersNotRunning("containers are not running")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def status(self) -> list[dict[str, str]]:
        containers = self.running_containers()
        if not containers:
            raise ContainersNotRunning("containers are not running")
        return containers

    def start(self) -> int:
        if self.is_running():
            raise ContainersAlreadyRunning("containers are already running")
        return self.run(self.compose_cmd("up", "-d"))

    def stop(self) -> int:
        if not self.is_running():
            console.print("[yellow]Containers are not running[/yellow]")
            return 0
        return self.run(self.compose_cmd("down"))

    def restart(self) -> int:
        code = self.stop()
        if code != 0:
            return code
        return self.start()

    # ------------------------------------------------------------------
    # Container commands
    # ------------------------------------------------------------------

    def exec(self, args: list[str]) -> int:
        """Run an arbitrary command in the database container"""
        self.require_running()
        return self.run(self.exec_cmd(*args, tty=sys.stdin.isatty()))

    def mysql_cmd(self, *args: str, tty: bool = False) -> list[str]:
        return self.exec_cmd("mysql", f"-u{self.config.mysql.user}", *args, tty=tty)

    def import_dump(self, dump_name: str, database: str) -> int:
        """Create ``database`` if needed and load ``<dumps>/<dump_name>.sql`` into it"""
        dump_path = self.dumps_dir / f"{dump_name}.sql"
        if not dump_path.is_file():
            raise MissingDumpFile(f"{dump_path} not found")

        self.require_running()

        code = self.run(
            self.mysql_cmd(
                "-e", f"CREATE DATABASE IF NOT EXISTS {quote_identifier(database)}"
            )
        )
        if code != 0:
            return code

        with open(dump_path, "rb") as f:
            code = self.run(self.mysql_cmd(database), stdin=f)

        if code == 0:
            console.print(f"[green]✓[/green] Imported {escape(str(dump_path))} into {escape(database)}")
        return code

    def dump(self, database: str, output_name: str) -> int:
        """Write ``mysqldump <database>`` to ``<dumps>/<output_name>.sql``"""
        self.require_running()

        output_path = self.dumps_dir / f"{output_name}.sql"
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = self.exec_cmd(
            "mysqldump", f"-u{self.config.mysql.user}", database, interactive=False
        )
        with open(output_path, "wb") as f:
            code = self.run(cmd, stdout=f)

        if code == 0:
            console.print(f"[green]✓[/green] Dumped {escape(database)} to {escape(str(output_path))}")
        return code

    def query(self, args: list[str]) -> int:
        """Run the joined arguments as a single SQL statement"""
        self.require_running()
        statement = " ".join(args)
        return self.run(self.mysql_cmd("-e", statement, tty=sys.stdin.isatty()))

    # ------------------------------------------------------------------
    # Compose descriptor
    # ------------------------------------------------------------------

    def render_template(self, template_name: str = COMPOSE_TEMPLATE) -> str:
        """Render Jinja2 template with settings"""
        env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        template = env.get_template(template_name)
        return template.render(**self.config.model_dump())

    def generate_compose_file(self, force: bool = False) -> Optional[Path]:
        """Write the compose descriptor; returns None when it already exists"""
        if self.compose_path.exists() and not force:
            return None

        output = self.render_template()
        self.compose_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.compose_path, "w", encoding="utf-8") as f:
            f.write(output)
        return self.compose_path


def parse_ps_output(stdout: str) -> list[dict[str, str]]:
    """Parse ``compose ps --format json`` output.

    Older Compose releases print one JSON array, newer ones one object per line.
    Raises ValueError on anything else.
    """
    text = stdout.strip()
    if not text:
        return []

    if text.startswith("["):
        entries = json.loads(text)
    else:
        entries = [json.loads(line) for line in text.splitlines() if line.strip()]

    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ValueError("expected JSON objects")

    return [
        {
            "name": entry.get("Name", ""),
            "service": entry.get("Service", ""),
            "state": entry.get("State", ""),
        }
        for entry in entries
    ]
