"""Semantic validation of a raw provisioner configuration.

``validate`` walks the whole document once and returns every warning and error
it finds; it never stops at the first problem and never mutates its input.
Diagnostics follow field declaration order (see ``schema``), so validating the
same input twice yields identical output.

Checks
- nothing to play: no play is both enabled and free of errors (warning)
- exactly one of ``playbook``/``module`` per play
- playbook-only fields on a module play and vice versa
- types, literal ``yes``/``no`` tokens and the ``become_method`` allow-list
- referenced files exist on disk
- fields that do not apply to local execution
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from .config import expand_path
from .models import ValidationResult
from .schema import (
    BECOME_METHODS,
    LOCAL_CONFLICTS,
    MODULE_ONLY,
    PLAY_FIELD_MAP,
    PLAY_FIELDS,
    PLAYBOOK_ONLY,
    PROVISIONER_FIELD_MAP,
    PROVISIONER_FIELDS,
    YES_NO,
    FieldKind,
    FieldSpec,
)
from .values import DecodeError, Document, Field

NOTHING_TO_PLAY = "nothing to play"


def _read(doc: Document, spec: FieldSpec) -> Field:
    if spec.kind is FieldKind.string:
        return doc.string(spec.name)
    if spec.kind is FieldKind.yes_no:
        return doc.yes_no(spec.name)
    if spec.kind is FieldKind.integer:
        return doc.integer(spec.name)
    if spec.kind is FieldKind.string_list:
        return doc.string_list(spec.name)
    if spec.kind is FieldKind.mapping:
        return doc.mapping(spec.name)
    return doc.documents(spec.name)


def _check_field(doc: Document, spec: FieldSpec, where: str, result: ValidationResult) -> Field:
    """Type, token and file checks for one field. Returns the field read."""
    value = _read(doc, spec)
    if not value.present:
        return value
    label = f"{where}{spec.name}"
    if value.mismatch:
        result.error(f"{label}: {value.mismatch}")
        return value
    if spec.kind is FieldKind.yes_no and value.value not in YES_NO:
        result.error(f"{label}: {value.value!r} is not one of: yes, no")
    elif spec.name == "become_method" and value.value not in BECOME_METHODS:
        result.error(f"{label}: {value.value!r} is not a supported become method ({', '.join(BECOME_METHODS)})")
    elif spec.path and value.value and not Path(expand_path(value.value)).is_file():
        result.error(f"{label}: file {value.value!r} does not exist")
    return value


def _target_kind(play: Document) -> Optional[str]:
    has_playbook = play.filled("playbook")
    has_module = play.filled("module")
    if has_playbook == has_module:
        return None
    return "playbook" if has_playbook else "module"


def _validate_play(play: Document, index: int, result: ValidationResult) -> bool:
    """Validate one play. Returns whether the play would run."""
    where = f"plays[{index}]."
    errors_before = len(result.errors)

    kind = _target_kind(play)
    if kind is None:
        if play.filled("playbook"):
            result.error(f"plays[{index}]: 'playbook' and 'module' cannot be used together")
        else:
            result.error(f"plays[{index}]: one of 'playbook' or 'module' is required")

    wrong_group = {"module": PLAYBOOK_ONLY, "playbook": MODULE_ONLY}.get(kind or "", ())
    enabled = True
    for spec in PLAY_FIELDS:
        if spec.name in wrong_group and play.has(spec.name):
            result.error(f"{where}{spec.name}: can't be used with {kind}")
            continue
        value = _check_field(play, spec, where, result)
        if spec.name == "enabled" and value.usable and value.value == "no":
            enabled = False

    for key in play.keys():
        if key not in PLAY_FIELD_MAP:
            result.error(f"{where}{key}: unsupported field")

    return enabled and len(result.errors) == errors_before


def validate(raw: Any) -> ValidationResult:
    """Validate a raw configuration mapping and collect all diagnostics."""
    result = ValidationResult()
    try:
        doc = Document.from_raw(raw)
    except DecodeError as exc:
        result.error(str(exc))
        return result

    playable = 0
    for spec in PROVISIONER_FIELDS:
        if spec.kind is FieldKind.plays:
            plays = doc.documents(spec.name)
            if plays.mismatch:
                result.error(f"{spec.name}: {plays.mismatch}")
            elif plays.present:
                for index, play in enumerate(plays.value):
                    if _validate_play(play, index, result):
                        playable += 1
            continue

        value = _check_field(doc, spec, "", result)
        if spec.name in LOCAL_CONFLICTS and value.present and doc.yes_no("local").value == "yes":
            result.error(f"{spec.name}: not applicable with local execution")

    for key in doc.keys():
        if key not in PROVISIONER_FIELD_MAP:
            result.error(f"{key}: unsupported field")

    if playable == 0:
        result.warn(NOTHING_TO_PLAY)
    return result
