"""Inventory document rendering.

Two shapes are produced from an ``InventoryMeta``:

- local: a single ``localhost`` entry; supplied hosts and groups are ignored
  because local execution always targets the control machine.
- remote: a ``[default]`` block listing every host, followed by one block per
  group listing the same hosts. Blocks are separated by a blank line and keep
  input order; a block without hosts renders its header only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .models import InventoryMeta

LOCAL_HOST_LINE = "localhost ansible_connection=local"
DEFAULT_GROUP = "default"


@dataclass
class InventoryBlock:
    name: Optional[str]
    hosts: List[str] = field(default_factory=list)

    def lines(self) -> List[str]:
        header = [f"[{self.name}]"] if self.name else []
        return header + list(self.hosts)


def build_blocks(meta: InventoryMeta, local: bool = False) -> List[InventoryBlock]:
    if local:
        return [InventoryBlock(name=None, hosts=[LOCAL_HOST_LINE])]
    blocks = [InventoryBlock(name=DEFAULT_GROUP, hosts=list(meta.hosts))]
    for group in meta.groups:
        blocks.append(InventoryBlock(name=group, hosts=list(meta.hosts)))
    return blocks


def render_inventory(meta: InventoryMeta, local: bool = False) -> str:
    """Render the inventory text for one play."""
    chunks = ["\n".join(block.lines()) for block in build_blocks(meta, local)]
    return "\n\n".join(chunks) + "\n"


def write_inventory(meta: InventoryMeta, directory: Path | str, local: bool = False) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "hosts"
    path.write_text(render_inventory(meta, local), encoding="utf-8")
    return path
