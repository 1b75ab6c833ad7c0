"""Decode a raw configuration into an immutable ``ProvisionerConfig``.

Decoding only fails on structurally malformed input and raises ``DecodeError``
with the first problem found. Semantic rules (allow-lists, file existence,
local-execution conflicts) belong to ``validator.validate``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Tuple

from .config import expand_path, load_config
from .fallback import read, resolve_shared
from .models import (
    Defaults,
    ModuleTarget,
    Play,
    PlaybookTarget,
    ProvisionerConfig,
    ValidationResult,
    YesNo,
)
from .values import DecodeError, Document
from .validator import validate


def _decode_defaults(doc: Document) -> Defaults:
    vault_password_file = read(doc, "vault_password_file", Document.string).value
    return Defaults(
        hosts=read(doc, "hosts", Document.string_list).value,
        groups=read(doc, "groups", Document.string_list).value,
        become=read(doc, "become", Document.yes_no).value,
        become_method=read(doc, "become_method", Document.string).value,
        become_user=read(doc, "become_user", Document.string).value,
        extra_vars=read(doc, "extra_vars", Document.mapping).value,
        forks=read(doc, "forks", Document.integer).value,
        limit=read(doc, "limit", Document.string).value,
        vault_password_file=expand_path(vault_password_file) if vault_password_file else vault_password_file,
        verbose=read(doc, "verbose", Document.yes_no).value,
    )


def _or(value: Optional[Any], default: Any) -> Any:
    return default if value is None else value


def _decode_play(play: Document, index: int, defaults: Defaults) -> Play:
    where = f"plays[{index}]."
    playbook = read(play, "playbook", Document.string, where)
    module = read(play, "module", Document.string, where)
    if play.filled("playbook") == play.filled("module"):
        raise DecodeError(f"plays[{index}]: exactly one of 'playbook' or 'module' is required")

    target: Any
    if play.filled("playbook"):
        target = PlaybookTarget(
            file_path=expand_path(playbook.value),
            force_handlers=_or(read(play, "force_handlers", Document.yes_no, where).value, YesNo.no),
            skip_tags=_or(read(play, "skip_tags", Document.string_list, where).value, []),
            start_at_task=_or(read(play, "start_at_task", Document.string, where).value, ""),
            tags=_or(read(play, "tags", Document.string_list, where).value, []),
        )
    else:
        target = ModuleTarget(
            module=module.value,
            args=_or(read(play, "args", Document.mapping, where).value, {}),
            background=_or(read(play, "background", Document.integer, where).value, 0),
            host_pattern=_or(read(play, "host_pattern", Document.string, where).value, "all"),
            one_line=_or(read(play, "one_line", Document.yes_no, where).value, YesNo.no),
            poll=_or(read(play, "poll", Document.integer, where).value, 15),
        )

    inventory_meta, call_args = resolve_shared(play, defaults, where)
    return Play(
        enabled=_or(read(play, "enabled", Document.yes_no, where).value, YesNo.yes),
        target=target,
        inventory_meta=inventory_meta,
        call_args=call_args,
    )


def decode(raw: Any) -> ProvisionerConfig:
    """Build the execution plan from a raw configuration mapping.

    Provisioner settings are decoded first and then used as the fallback
    source for every play, preserving play order.
    """
    doc = Document.from_raw(raw)
    defaults = _decode_defaults(doc)

    plays_field = read(doc, "plays", Document.documents)
    plays: List[Play] = []
    for index, play in enumerate(plays_field.value or []):
        plays.append(_decode_play(play, index, defaults))

    inventory_file = _or(read(doc, "inventory_file", Document.string).value, "")
    return ProvisionerConfig(
        defaults=defaults,
        plays=plays,
        inventory_file=expand_path(inventory_file) if inventory_file else "",
        use_sudo=_or(read(doc, "use_sudo", Document.yes_no).value, YesNo.yes),
        skip_install=_or(read(doc, "skip_install", Document.yes_no).value, YesNo.no),
        skip_cleanup=_or(read(doc, "skip_cleanup", Document.yes_no).value, YesNo.no),
        install_version=_or(read(doc, "install_version", Document.string).value, ""),
        local=_or(read(doc, "local", Document.yes_no).value, YesNo.no),
    )


def load_plan(path: Path | str) -> Tuple[Optional[ProvisionerConfig], ValidationResult]:
    """Load, validate and, when there are no errors, decode a config file."""
    raw = load_config(path)
    result = validate(raw)
    if result.errors:
        return None, result
    return decode(raw), result
