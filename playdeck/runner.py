"""Execution of a decoded plan.

Plays run one after another in configuration order; the first failed play
stops the run. There are no retries.

Modes
- Local: Ansible runs on this machine via ``asyncio`` subprocesses. Used when
  the config sets ``local: yes`` or no SSH target is given.
- Remote: Ansible runs on an SSH target through ``asyncssh``. Ansible is
  installed first unless ``skip_install`` is set; inventory, playbook directory
  and vault password files are copied into a temporary work directory which is
  removed afterwards unless ``skip_cleanup`` is set. Commands are prefixed with
  ``sudo`` when ``use_sudo`` is set.

Host key verification is disabled (``known_hosts=None``), matching
``-o StrictHostKeyChecking=no -o UserKnownHostsFile=/dev/null``.
"""

from __future__ import annotations

import asyncio
import shlex
import tempfile
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import asyncssh

from .commands import build_command, command_line
from .inventory import write_inventory
from .models import Play, PlaybookTarget, ProvisionerConfig


@dataclass
class PlayResult:
    """Result of running one play.

    Attributes
    - index: Position of the play in the configuration
    - kind/name: ``playbook`` or ``module`` and the playbook path or module name
    - command: Command line that was run (empty when setup failed first)
    - exit_status: Command exit status (``None`` on setup/connection failures)
    - stdout/stderr: Captured output streams (empty strings if none)
    - ok: ``exit_status == 0``
    - started_at/ended_at: ``time.perf_counter()`` timestamps
    - error: Optional structured error string on failures
    """
    index: int
    kind: str
    name: str
    command: str
    exit_status: Optional[int]
    stdout: str
    stderr: str
    ok: bool
    started_at: float
    ended_at: float
    error: Optional[str] = None

    @property
    def duration(self) -> float:
        return self.ended_at - self.started_at


@dataclass
class SSHTarget:
    """Connection settings for remote mode. Paths are expanded by the caller."""
    host: str
    username: Optional[str] = None
    port: int = 22
    identity: Optional[Path] = None
    password: Optional[str] = None
    connect_timeout: float = 10.0


class RemoteStepError(RuntimeError):
    """A setup command on the remote host exited non-zero."""


def _failed(index: int, play: Play, started: float, exc: BaseException, command: str = "") -> PlayResult:
    return PlayResult(
        index=index,
        kind=play.kind,
        name=play.name,
        command=command,
        exit_status=None,
        stdout="",
        stderr="",
        ok=False,
        started_at=started,
        ended_at=time.perf_counter(),
        error=f"{type(exc).__name__}: {exc}",
    )


def _completed(index: int, play: Play, command: str, exit_status: Optional[int], stdout: str, stderr: str, started: float) -> PlayResult:
    return PlayResult(
        index=index,
        kind=play.kind,
        name=play.name,
        command=command,
        exit_status=exit_status,
        stdout=stdout,
        stderr=stderr,
        ok=(exit_status == 0),
        started_at=started,
        ended_at=time.perf_counter(),
    )


def _enabled(config: ProvisionerConfig) -> List[Tuple[int, Play]]:
    return [(index, play) for index, play in enumerate(config.plays) if play.is_enabled]


async def _run_local_play(index: int, play: Play, argv: List[str]) -> PlayResult:
    started = time.perf_counter()
    command = command_line(argv)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
    except OSError as exc:
        return _failed(index, play, started, exc, command)
    return _completed(
        index, play, command, proc.returncode,
        stdout.decode("utf-8", errors="replace"), stderr.decode("utf-8", errors="replace"), started,
    )


async def run_local(config: ProvisionerConfig) -> List[PlayResult]:
    """Run every enabled play on this machine."""
    results: List[PlayResult] = []
    with tempfile.TemporaryDirectory(prefix="playdeck-") as workdir:
        for index, play in _enabled(config):
            inventory = config.inventory_file or str(
                write_inventory(play.inventory_meta, Path(workdir) / f"play-{index}", local=config.local.enabled)
            )
            result = await _run_local_play(index, play, build_command(play, inventory))
            results.append(result)
            if not result.ok:
                break
    return results


async def _connect(target: SSHTarget) -> asyncssh.SSHClientConnection:
    connect_kwargs: Dict[str, Any] = dict(
        host=target.host,
        port=target.port or 22,
        username=target.username,
        connect_timeout=target.connect_timeout,
    )
    if target.identity:
        connect_kwargs["client_keys"] = [str(target.identity)]
    if target.password:
        connect_kwargs["password"] = target.password
    connect_kwargs["known_hosts"] = None
    return await asyncssh.connect(**connect_kwargs)


async def _check(conn: asyncssh.SSHClientConnection, command: str) -> str:
    completed = await conn.run(command, check=False)
    if completed.exit_status != 0:
        stderr = (completed.stderr or "").strip()
        raise RemoteStepError(f"{command!r} exited with {completed.exit_status}: {stderr}")
    return completed.stdout or ""


def install_command(config: ProvisionerConfig) -> str:
    package = f"ansible=={config.install_version}" if config.install_version else "ansible"
    prefix = "sudo " if config.use_sudo.enabled else ""
    return f"{prefix}python3 -m pip install {shlex.quote(package)}"


async def _stage_play(
    conn: asyncssh.SSHClientConnection,
    index: int,
    play: Play,
    workdir: str,
) -> Play:
    """Copy the files a play needs and return the play with remote paths."""
    play_dir = f"{workdir}/play-{index}"
    await _check(conn, f"mkdir -p {shlex.quote(play_dir)}")

    if isinstance(play.target, PlaybookTarget):
        source = Path(play.target.file_path).parent
        await asyncssh.scp(str(source), (conn, play_dir), recurse=True)
        remote_playbook = f"{play_dir}/{source.name}/{Path(play.target.file_path).name}"
        play = replace(play, target=replace(play.target, file_path=remote_playbook))

    if play.call_args.vault_password_file:
        remote_vault = f"{play_dir}/vault-password-file"
        await asyncssh.scp(play.call_args.vault_password_file, (conn, remote_vault))
        play = replace(play, call_args=replace(play.call_args, vault_password_file=remote_vault))

    return play


async def _upload_inventory(conn: asyncssh.SSHClientConnection, config: ProvisionerConfig, index: int, play: Play, workdir: str) -> str:
    remote_inventory = f"{workdir}/play-{index}/hosts"
    if config.inventory_file:
        await asyncssh.scp(config.inventory_file, (conn, remote_inventory))
        return remote_inventory
    with tempfile.TemporaryDirectory(prefix="playdeck-") as local_dir:
        local_inventory = write_inventory(play.inventory_meta, local_dir, local=False)
        await asyncssh.scp(str(local_inventory), (conn, remote_inventory))
    return remote_inventory


async def run_remote(config: ProvisionerConfig, target: SSHTarget) -> List[PlayResult]:
    """Run every enabled play on ``target`` over a single SSH connection."""
    plays = _enabled(config)
    results: List[PlayResult] = []
    if not plays:
        return results

    sudo = ["sudo"] if config.use_sudo.enabled else []
    index, play = plays[0]
    started = time.perf_counter()
    try:
        conn = await _connect(target)
        try:
            if not config.skip_install.enabled:
                await _check(conn, install_command(config))
            workdir = (await _check(conn, "mktemp -d -t playdeck.XXXXXX")).strip()
            try:
                for index, play in plays:
                    started = time.perf_counter()
                    staged = await _stage_play(conn, index, play, workdir)
                    inventory = await _upload_inventory(conn, config, index, play, workdir)
                    command = command_line(sudo + build_command(staged, inventory))
                    completed = await conn.run(command, check=False)
                    result = _completed(
                        index, play, command, completed.exit_status,
                        completed.stdout or "", completed.stderr or "", started,
                    )
                    results.append(result)
                    if not result.ok:
                        break
            finally:
                if not config.skip_cleanup.enabled:
                    await conn.run(f"rm -rf {shlex.quote(workdir)}", check=False)
        finally:
            conn.close()
            await conn.wait_closed()
    except (asyncssh.Error, OSError, RemoteStepError) as exc:
        if all(result.index != index for result in results):
            results.append(_failed(index, play, started, exc))
    return results


def run_plan(config: ProvisionerConfig, target: Optional[SSHTarget] = None) -> List[PlayResult]:
    """Run the plan locally or on ``target`` and return one result per play attempted."""
    if config.local.enabled or target is None:
        return asyncio.run(run_local(config))
    return asyncio.run(run_remote(config, target))
