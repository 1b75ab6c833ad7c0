"""Per-field inheritance of shared play arguments from provisioner defaults.

Each field is resolved on its own: a play may override ``forks`` while
inheriting ``become``. Presence decides, not emptiness, so an explicit
``hosts: []`` on a play is kept as an empty list.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Tuple

from .config import expand_path
from .models import CallArgs, Defaults, InventoryMeta, YesNo
from .values import DecodeError, Document, Field


def resolve(play_value: Field, default: Optional[Any], zero: Any) -> Any:
    """Return the play value if set, else the provisioner default, else ``zero``."""
    if play_value.present:
        return play_value.value
    if default is not None:
        return default
    return zero


def to_yes_no(value: str, name: str) -> YesNo:
    try:
        return YesNo(value)
    except ValueError:
        raise DecodeError(f"{name}: expected 'yes' or 'no', got {value!r}") from None


def read(doc: Document, name: str, accessor: Callable[[Document, str], Field], where: str = "") -> Field:
    """Read a field and raise ``DecodeError`` on a type mismatch."""
    result = accessor(doc, name)
    if result.mismatch:
        raise DecodeError(f"{where}{name}: {result.mismatch}")
    if result.present and accessor is Document.yes_no:
        return Field(present=True, value=to_yes_no(result.value, f"{where}{name}"))
    return result


def resolve_shared(play: Document, defaults: Defaults, where: str = "") -> Tuple[InventoryMeta, CallArgs]:
    """Resolve the inventory meta and call arguments of one play."""
    zero = CallArgs()

    def pick(name: str, accessor: Callable[[Document, str], Field], fallback_zero: Any) -> Any:
        play_value = read(play, name, accessor, where)
        if play_value.present and name == "vault_password_file":
            play_value = Field(present=True, value=expand_path(play_value.value))
        value = resolve(play_value, getattr(defaults, name), fallback_zero)
        # Copies keep plays independent of the defaults and of each other.
        if isinstance(value, list):
            return list(value)
        if isinstance(value, dict):
            return dict(value)
        return value

    meta = InventoryMeta(
        hosts=pick("hosts", Document.string_list, []),
        groups=pick("groups", Document.string_list, []),
    )
    args = CallArgs(
        become=pick("become", Document.yes_no, zero.become),
        become_method=pick("become_method", Document.string, zero.become_method),
        become_user=pick("become_user", Document.string, zero.become_user),
        extra_vars=pick("extra_vars", Document.mapping, zero.extra_vars),
        forks=pick("forks", Document.integer, zero.forks),
        limit=pick("limit", Document.string, zero.limit),
        vault_password_file=pick("vault_password_file", Document.string, zero.vault_password_file),
        verbose=pick("verbose", Document.yes_no, zero.verbose),
    )
    return meta, args
