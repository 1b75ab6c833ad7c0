"""Execution plan types produced by the decoder.

All types are frozen; a decoded ``Play`` carries resolved copies of the shared
call arguments and never refers back to the provisioner defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class YesNo(str, Enum):
    """Literal ``yes``/``no`` token. Native booleans are not accepted."""
    yes = "yes"
    no = "no"

    @property
    def enabled(self) -> bool:
        return self is YesNo.yes


@dataclass(frozen=True)
class InventoryMeta:
    hosts: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CallArgs:
    """Arguments shared by playbook and module plays."""
    become: YesNo = YesNo.no
    become_method: str = "sudo"
    become_user: str = "root"
    extra_vars: Dict[str, Any] = field(default_factory=dict)
    forks: int = 5
    limit: str = ""
    vault_password_file: str = ""
    verbose: YesNo = YesNo.no


@dataclass(frozen=True)
class PlaybookTarget:
    file_path: str
    force_handlers: YesNo = YesNo.no
    skip_tags: List[str] = field(default_factory=list)
    start_at_task: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ModuleTarget:
    module: str
    args: Dict[str, Any] = field(default_factory=dict)
    background: int = 0
    host_pattern: str = "all"
    one_line: YesNo = YesNo.no
    poll: int = 15


@dataclass(frozen=True)
class Play:
    enabled: YesNo
    target: Union[PlaybookTarget, ModuleTarget]
    inventory_meta: InventoryMeta
    call_args: CallArgs

    @property
    def kind(self) -> str:
        return "playbook" if isinstance(self.target, PlaybookTarget) else "module"

    @property
    def is_enabled(self) -> bool:
        return self.enabled.enabled

    @property
    def name(self) -> str:
        if isinstance(self.target, PlaybookTarget):
            return self.target.file_path
        return self.target.module


@dataclass(frozen=True)
class Defaults:
    """Provisioner-global values for shared fields; ``None`` means not configured."""
    hosts: Optional[List[str]] = None
    groups: Optional[List[str]] = None
    become: Optional[YesNo] = None
    become_method: Optional[str] = None
    become_user: Optional[str] = None
    extra_vars: Optional[Dict[str, Any]] = None
    forks: Optional[int] = None
    limit: Optional[str] = None
    vault_password_file: Optional[str] = None
    verbose: Optional[YesNo] = None


@dataclass(frozen=True)
class ProvisionerConfig:
    defaults: Defaults = field(default_factory=Defaults)
    plays: List[Play] = field(default_factory=list)
    inventory_file: str = ""
    use_sudo: YesNo = YesNo.yes
    skip_install: YesNo = YesNo.no
    skip_cleanup: YesNo = YesNo.no
    install_version: str = ""
    local: YesNo = YesNo.no

    def enabled_plays(self) -> List[Play]:
        return [play for play in self.plays if play.is_enabled]


@dataclass
class ValidationResult:
    """Warnings are advisory; any error blocks the operation."""
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)
