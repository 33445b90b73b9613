# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

import json
import subprocess
from pathlib import Path

import pytest

from dbctl_src import manager as manager_module
from dbctl_src.errors import CommandFailed, Interrupted
from dbctl_src.manager import DatabaseManager, parse_ps_output, quote_identifier


def test_parse_ps_output_empty():
    assert parse_ps_output("") == []
    assert parse_ps_output("\n") == []


def test_parse_ps_output_json_lines():
    stdout = (
        json.dumps({"Name": "mysql", "Service": "mysql", "State": "running"})
        + "\n"
        + json.dumps({"Name": "adminer", "Service": "adminer", "State": "restarting"})
        + "\n"
    )
    assert parse_ps_output(stdout) == [
        {"name": "mysql", "service": "mysql", "state": "running"},
        {"name": "adminer", "service": "adminer", "state": "restarting"},
    ]


def test_parse_ps_output_json_array():
    stdout = json.dumps([{"Name": "mysql", "Service": "mysql", "State": "running"}])
    assert parse_ps_output(stdout) == [
        {"name": "mysql", "service": "mysql", "state": "running"}
    ]


@pytest.mark.parametrize(
    ("name", "expected"),
    [("app", "`app`"), ("my-db", "`my-db`"), ("a`b", "`a``b`")],
)
def test_quote_identifier(name: str, expected: str):
    assert quote_identifier(name) == expected


def test_compose_cmd_uses_descriptor_path(tmp_path: Path):
    (tmp_path / "dbctl.yaml").write_text(
        "compose:\n  command: docker compose\n  file: deploy/compose.yml\n",
        encoding="utf-8",
    )
    manager = DatabaseManager(tmp_path)
    assert manager.compose_cmd("up", "-d") == [
        "docker",
        "compose",
        "-f",
        str(tmp_path / "deploy" / "compose.yml"),
        "up",
        "-d",
    ]


def test_exec_cmd_passes_password_by_name_only(tmp_path: Path):
    manager = DatabaseManager(tmp_path)
    assert manager.exec_cmd("mysqldump", "app", interactive=False) == [
        "docker",
        "exec",
        "-e",
        "MYSQL_PWD",
        "mysql",
        "mysqldump",
        "app",
    ]
    assert manager.exec_cmd("bash", tty=True)[:4] == ["docker", "exec", "-i", "-t"]


def test_running_containers_raises_when_query_fails(tmp_path: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 3, stdout="", stderr="no such file")

    monkeypatch.setattr(manager_module.subprocess, "run", fake_run)
    with pytest.raises(CommandFailed) as exc_info:
        DatabaseManager(tmp_path).running_containers()

    assert exc_info.value.exit_code == 3
    assert "no such file" in str(exc_info.value)


def test_run_returns_130_on_interrupt(tmp_path: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(manager_module.subprocess, "run", fake_run)
    assert DatabaseManager(tmp_path).run(["docker", "ps"]) == 130


def test_render_template_uses_settings(tmp_path: Path):
    (tmp_path / "dbctl.yaml").write_text(
        "runtime:\n  container: db\nmysql:\n  image: mysql:8.4\n  port: 3307\n",
        encoding="utf-8",
    )
    output = DatabaseManager(tmp_path).render_template()
    assert "image: mysql:8.4" in output
    assert "container_name: db" in output
    assert '"3307:3306"' in output
    assert "- .env" in output


def test_generate_compose_file_keeps_existing_without_force(tmp_path: Path):
    compose_path = tmp_path / "docker-compose.yml"
    compose_path.write_text("custom\n", encoding="utf-8")
    manager = DatabaseManager(tmp_path)

    assert manager.generate_compose_file() is None
    assert compose_path.read_text(encoding="utf-8") == "custom\n"

    assert manager.generate_compose_file(force=True) == compose_path
    assert "services:" in compose_path.read_text(encoding="utf-8")


@pytest.mark.parametrize("stdout", ["WARN something\n", "[1, 2]", '"running"', "{bad"])
def test_parse_ps_output_rejects_non_objects(stdout: str):
    with pytest.raises(ValueError):
        parse_ps_output(stdout)


def test_running_containers_reports_unparseable_output(tmp_path: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout="NAME  STATE\n", stderr="")

    monkeypatch.setattr(manager_module.subprocess, "run", fake_run)
    with pytest.raises(CommandFailed) as exc_info:
        DatabaseManager(tmp_path).running_containers()

    assert exc_info.value.exit_code == 1
    assert "unparseable ps output" in str(exc_info.value)


def test_running_containers_maps_interrupt(tmp_path: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(manager_module.subprocess, "run", fake_run)
    with pytest.raises(Interrupted) as exc_info:
        DatabaseManager(tmp_path).running_containers()

    assert exc_info.value.exit_code == 130
