"""Command lines for ``ansible-playbook`` and ad-hoc ``ansible`` calls."""

from __future__ import annotations

import json
import shlex
from typing import List, Sequence

from .models import CallArgs, ModuleTarget, Play, PlaybookTarget


def _shared_args(args: CallArgs) -> List[str]:
    argv: List[str] = []
    if args.become.enabled:
        argv += ["--become", f"--become-method={args.become_method}", f"--become-user={args.become_user}"]
    if args.extra_vars:
        argv.append(f"--extra-vars={json.dumps(args.extra_vars, sort_keys=True)}")
    argv.append(f"--forks={args.forks}")
    if args.limit:
        argv.append(f"--limit={args.limit}")
    if args.vault_password_file:
        argv.append(f"--vault-password-file={args.vault_password_file}")
    if args.verbose.enabled:
        argv.append("-v")
    return argv


def _playbook_command(target: PlaybookTarget, inventory_path: str) -> List[str]:
    argv = ["ansible-playbook", target.file_path, f"--inventory-file={inventory_path}"]
    if target.force_handlers.enabled:
        argv.append("--force-handlers")
    if target.skip_tags:
        argv.append(f"--skip-tags={','.join(target.skip_tags)}")
    if target.start_at_task:
        argv.append(f"--start-at-task={target.start_at_task}")
    if target.tags:
        argv.append(f"--tags={','.join(target.tags)}")
    return argv


def _module_command(target: ModuleTarget, inventory_path: str) -> List[str]:
    argv = ["ansible", target.host_pattern, f"--inventory-file={inventory_path}", f"--module-name={target.module}"]
    if target.args:
        pairs = [f"{key}={shlex.quote(str(value))}" for key, value in sorted(target.args.items())]
        argv.append(f"--args={' '.join(pairs)}")
    if target.background > 0:
        argv += [f"--background={target.background}", f"--poll={target.poll}"]
    if target.one_line.enabled:
        argv.append("--one-line")
    return argv


def build_command(play: Play, inventory_path: str) -> List[str]:
    """Return the argv that runs ``play`` against ``inventory_path``."""
    if isinstance(play.target, PlaybookTarget):
        argv = _playbook_command(play.target, inventory_path)
    else:
        argv = _module_command(play.target, inventory_path)
    return argv + _shared_args(play.call_args)


def command_line(argv: Sequence[str]) -> str:
    return shlex.join(argv)
