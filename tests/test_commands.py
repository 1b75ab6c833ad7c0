from __future__ import annotations

from playdeck.commands import build_command, command_line
from playdeck.models import CallArgs, InventoryMeta, ModuleTarget, Play, PlaybookTarget, YesNo


def make_play(target, **args) -> Play:
    return Play(enabled=YesNo.yes, target=target, inventory_meta=InventoryMeta(), call_args=CallArgs(**args))


def test_playbook_command_defaults() -> None:
    argv = build_command(make_play(PlaybookTarget(file_path="/srv/site.yml")), "/tmp/hosts")
    assert argv == ["ansible-playbook", "/srv/site.yml", "--inventory-file=/tmp/hosts", "--forks=5"]


def test_playbook_command_all_options() -> None:
    target = PlaybookTarget(
        file_path="site.yml",
        force_handlers=YesNo.yes,
        skip_tags=["slow", "db"],
        start_at_task="Install packages",
        tags=["web"],
    )
    play = make_play(
        target,
        become=YesNo.yes,
        become_method="su",
        become_user="admin",
        extra_vars={"b": 2, "a": "x"},
        forks=10,
        limit="web*",
        vault_password_file="/secrets/pw",
        verbose=YesNo.yes,
    )
    argv = build_command(play, "hosts")
    assert argv == [
        "ansible-playbook",
        "site.yml",
        "--inventory-file=hosts",
        "--force-handlers",
        "--skip-tags=slow,db",
        "--start-at-task=Install packages",
        "--tags=web",
        "--become",
        "--become-method=su",
        "--become-user=admin",
        '--extra-vars={"a": "x", "b": 2}',
        "--forks=10",
        "--limit=web*",
        "--vault-password-file=/secrets/pw",
        "-v",
    ]


def test_module_command() -> None:
    target = ModuleTarget(
        module="shell",
        args={"cmd": "uptime -p", "chdir": "/tmp"},
        background=30,
        poll=5,
        host_pattern="web",
        one_line=YesNo.yes,
    )
    argv = build_command(make_play(target), "hosts")
    assert argv == [
        "ansible",
        "web",
        "--inventory-file=hosts",
        "--module-name=shell",
        "--args=chdir=/tmp cmd='uptime -p'",
        "--background=30",
        "--poll=5",
        "--one-line",
        "--forks=5",
    ]


def test_module_command_without_background_skips_poll() -> None:
    argv = build_command(make_play(ModuleTarget(module="ping")), "hosts")
    assert argv == ["ansible", "all", "--inventory-file=hosts", "--module-name=ping", "--forks=5"]


def test_command_line_quotes() -> None:
    assert command_line(["ansible-playbook", "my site.yml"]) == "ansible-playbook 'my site.yml'"
