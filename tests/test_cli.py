from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import List

import pytest
from typer.testing import CliRunner

from playdeck.cli import app
from playdeck.runner import PlayResult


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def write_config(tmp_path: Path, body: str) -> Path:
    cfg = tmp_path / "playdeck.yaml"
    cfg.write_text(body, encoding="utf-8")
    return cfg


def good_config(tmp_path: Path) -> Path:
    playbook = tmp_path / "site.yml"
    playbook.write_text("- hosts: all\n", encoding="utf-8")
    return write_config(
        tmp_path,
        f"""
        hosts: [web1, web2]
        groups: [web]
        become: yes
        plays:
          - playbook: {playbook}
          - module: ping
            enabled: no
        """,
    )


def test_validate_good_config(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["validate", str(good_config(tmp_path))])
    assert result.exit_code == 0
    assert "Configuration is valid" in result.stdout


def test_validate_reports_all_errors(runner: CliRunner, tmp_path: Path) -> None:
    cfg = write_config(
        tmp_path,
        """
        use_sudo: true
        become_method: magic
        plays:
          - module: ping
            tags: [x]
        """,
    )
    result = runner.invoke(app, ["validate", str(cfg)])
    assert result.exit_code == 1
    out = result.stdout
    assert "warning: nothing to play" in out
    assert "plays[0].tags" in out
    assert "become_method" in out
    assert "use_sudo" in out


def test_validate_quiet(runner: CliRunner, tmp_path: Path) -> None:
    cfg = write_config(tmp_path, "use_sudo: no\n")
    result = runner.invoke(app, ["validate", "--quiet", str(cfg)])
    assert result.exit_code == 0
    assert "Errors: 0, Warnings: 1" in result.stdout


def test_validate_missing_config(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["validate", str(tmp_path / "missing.yaml")])
    assert result.exit_code != 0


def test_plan_shows_resolved_plays(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["plan", str(good_config(tmp_path))])
    assert result.exit_code == 0
    out = result.stdout
    assert "Planned Plays" in out
    assert "1 of 2 plays enabled, remote execution" in out


def test_inventory_command(runner: CliRunner, tmp_path: Path) -> None:
    cfg = good_config(tmp_path)
    result = runner.invoke(app, ["inventory", str(cfg), "--play", "0"])
    assert result.exit_code == 0
    assert result.stdout == "[default]\nweb1\nweb2\n\n[web]\nweb1\nweb2\n"

    local = runner.invoke(app, ["inventory", str(cfg), "--local"])
    assert local.stdout == "localhost ansible_connection=local\n"

    out_of_range = runner.invoke(app, ["inventory", str(cfg), "--play", "5"])
    assert out_of_range.exit_code != 0


def test_run_dry_run(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["run", "--dry-run", str(good_config(tmp_path))])
    assert result.exit_code == 0
    assert "Will run 1 plays" in result.stdout


def test_run_with_stubbed_results(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = good_config(tmp_path)
    targets: List[object] = []

    def fake_run_plan(config, target=None) -> List[PlayResult]:
        targets.append(target)
        return [
            PlayResult(index=0, kind="playbook", name="site.yml", command="ansible-playbook site.yml",
                       exit_status=2, stdout="PLAY RECAP", stderr="ERROR! failed", ok=False,
                       started_at=0.0, ended_at=0.5),
        ]

    monkeypatch.setattr("playdeck.cli.run_plan", fake_run_plan)

    logfile = tmp_path / "logs" / "run.jsonl"
    result = runner.invoke(app, ["run", str(cfg), "--host", "10.0.0.5", "--username", "ubuntu", "-v", "--log-file", str(logfile)])

    assert result.exit_code == 1
    out = result.stdout
    assert "Failed: 1" in out
    assert "FAIL" in out
    assert "STDOUT - play 0" in out
    assert "PLAY RECAP" in out

    assert targets[0].host == "10.0.0.5"
    assert targets[0].username == "ubuntu"

    records = [json.loads(line) for line in logfile.read_text(encoding="utf-8").splitlines()]
    assert len(records) == 1
    assert records[0]["play"] == 0
    assert records[0]["ok"] is False
    assert records[0]["exit_status"] == 2
    assert records[0]["command"] == "ansible-playbook site.yml"


def test_run_quiet_success(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run_plan(config, target=None) -> List[PlayResult]:
        assert target is None
        return [
            PlayResult(index=0, kind="playbook", name="site.yml", command="ansible-playbook site.yml",
                       exit_status=0, stdout="", stderr="", ok=True, started_at=0.0, ended_at=0.1),
        ]

    monkeypatch.setattr("playdeck.cli.run_plan", fake_run_plan)

    result = runner.invoke(app, ["run", "--quiet", str(good_config(tmp_path))])
    assert result.exit_code == 0
    assert result.stdout.strip() == "Succeeded: 1"


def test_run_blocks_on_validation_errors(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fail_run_plan(config, target=None):
        raise AssertionError("must not run")

    monkeypatch.setattr("playdeck.cli.run_plan", fail_run_plan)

    cfg = write_config(tmp_path, "plays:\n  - module: ping\n    one_line: maybe\n")
    result = runner.invoke(app, ["run", str(cfg)])
    assert result.exit_code == 1
    assert "one_line" in result.stdout


def test_cli_help() -> None:
    proc = subprocess.run([sys.executable, "-m", "playdeck", "--help"], capture_output=True, text=True)
    assert proc.returncode == 0
    assert "Validate, plan and run ordered Ansible plays" in proc.stdout

    proc2 = subprocess.run([sys.executable, "-m", "playdeck", "run", "--help"], capture_output=True, text=True)
    assert proc2.returncode == 0
    assert "Run the enabled plays of CONFIG" in proc2.stdout


def test_cli_dry_run_subprocess(tmp_path: Path) -> None:
    proc = subprocess.run(
        [sys.executable, "-m", "playdeck", "run", "--dry-run", str(good_config(tmp_path))],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0
    assert "Planned Plays" in proc.stdout
