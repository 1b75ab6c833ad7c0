"""Configuration loading for playdeck.

Loads a YAML provisioner configuration: global defaults plus an ordered
``plays`` list of per-play settings.

Highlights
- Literal ``yes``/``no`` (and ``on``/``off``) tokens stay strings. Only
  ``true``/``false`` load as YAML booleans, which the validator then rejects
  for yes/no fields.
- Dates such as ``2020-01-01`` stay strings.
- Path values support ``~`` and environment variable expansion.
- Raises ``FileNotFoundError`` for a missing config file and ``ValueError``
  when the document is not a mapping.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict

import yaml

_BOOL_TAG = "tag:yaml.org,2002:bool"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class ConfigLoader(yaml.SafeLoader):
    """Safe loader that resolves only ``true``/``false`` as booleans and no timestamps."""


ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (_BOOL_TAG, _TIMESTAMP_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
ConfigLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def expand_path(value: str) -> str:
    return os.path.expandvars(os.path.expanduser(value))


def parse_config(text: str) -> Dict[str, Any]:
    """Parse YAML text into the raw configuration mapping."""
    data = yaml.load(text, Loader=ConfigLoader)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping, got {type(data).__name__}.")
    return data


def load_config(path: Path | str) -> Dict[str, Any]:
    """Load a provisioner configuration YAML file into a raw mapping.

    The mapping is untyped; pass it to ``validate`` and ``decode``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        return parse_config(f.read())
