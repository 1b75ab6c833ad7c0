"""Field tables for the provisioner configuration and its plays.

Declaration order matters: diagnostics are reported in this order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class FieldKind(str, Enum):
    string = "string"
    yes_no = "yes/no"
    integer = "integer"
    string_list = "list of strings"
    mapping = "map"
    plays = "list of plays"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    group: str = "shared"  # core | shared | playbook | module | provisioner
    path: bool = False


PLAY_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("enabled", FieldKind.yes_no, group="core"),
    FieldSpec("playbook", FieldKind.string, group="core", path=True),
    FieldSpec("module", FieldKind.string, group="core"),
    FieldSpec("hosts", FieldKind.string_list),
    FieldSpec("groups", FieldKind.string_list),
    FieldSpec("become", FieldKind.yes_no),
    FieldSpec("become_method", FieldKind.string),
    FieldSpec("become_user", FieldKind.string),
    FieldSpec("extra_vars", FieldKind.mapping),
    FieldSpec("forks", FieldKind.integer),
    FieldSpec("limit", FieldKind.string),
    FieldSpec("vault_password_file", FieldKind.string, path=True),
    FieldSpec("verbose", FieldKind.yes_no),
    FieldSpec("force_handlers", FieldKind.yes_no, group="playbook"),
    FieldSpec("skip_tags", FieldKind.string_list, group="playbook"),
    FieldSpec("start_at_task", FieldKind.string, group="playbook"),
    FieldSpec("tags", FieldKind.string_list, group="playbook"),
    FieldSpec("args", FieldKind.mapping, group="module"),
    FieldSpec("background", FieldKind.integer, group="module"),
    FieldSpec("host_pattern", FieldKind.string, group="module"),
    FieldSpec("one_line", FieldKind.yes_no, group="module"),
    FieldSpec("poll", FieldKind.integer, group="module"),
)

PROVISIONER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("plays", FieldKind.plays, group="provisioner"),
    FieldSpec("hosts", FieldKind.string_list),
    FieldSpec("groups", FieldKind.string_list),
    FieldSpec("become", FieldKind.yes_no),
    FieldSpec("become_method", FieldKind.string),
    FieldSpec("become_user", FieldKind.string),
    FieldSpec("extra_vars", FieldKind.mapping),
    FieldSpec("forks", FieldKind.integer),
    FieldSpec("inventory_file", FieldKind.string, group="provisioner", path=True),
    FieldSpec("limit", FieldKind.string),
    FieldSpec("vault_password_file", FieldKind.string, path=True),
    FieldSpec("verbose", FieldKind.yes_no),
    FieldSpec("use_sudo", FieldKind.yes_no, group="provisioner"),
    FieldSpec("skip_install", FieldKind.yes_no, group="provisioner"),
    FieldSpec("skip_cleanup", FieldKind.yes_no, group="provisioner"),
    FieldSpec("install_version", FieldKind.string, group="provisioner"),
    FieldSpec("local", FieldKind.yes_no, group="provisioner"),
)

PLAY_FIELD_MAP: Dict[str, FieldSpec] = {spec.name: spec for spec in PLAY_FIELDS}
PROVISIONER_FIELD_MAP: Dict[str, FieldSpec] = {spec.name: spec for spec in PROVISIONER_FIELDS}

SHARED_FIELDS: Tuple[str, ...] = tuple(spec.name for spec in PLAY_FIELDS if spec.group == "shared")
PLAYBOOK_ONLY: Tuple[str, ...] = tuple(spec.name for spec in PLAY_FIELDS if spec.group == "playbook")
MODULE_ONLY: Tuple[str, ...] = tuple(spec.name for spec in PLAY_FIELDS if spec.group == "module")

YES_NO = ("yes", "no")

BECOME_METHODS: Tuple[str, ...] = (
    "sudo",
    "su",
    "pbrun",
    "pfexec",
    "doas",
    "dzdo",
    "ksu",
    "runas",
    "pmrun",
    "enable",
    "machinectl",
)

# Not applicable when Ansible runs on the control machine.
LOCAL_CONFLICTS: Tuple[str, ...] = ("use_sudo", "skip_install", "skip_cleanup", "install_version")
