"""Typed view over an untyped configuration document.

Raw YAML input is parsed once into ``Node`` values (a tagged union of scalar,
list and map nodes). The validator and the decoder both read configuration
through ``Document`` accessors, which report presence, the coerced value and a
type-mismatch message instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class DecodeError(ValueError):
    """Raised when configuration input cannot be decoded into the expected shape."""


class NodeKind(str, Enum):
    null = "null"
    string = "string"
    bool = "boolean"
    int = "integer"
    float = "float"
    list = "list"
    map = "map"
    other = "unsupported"


@dataclass(frozen=True)
class Node:
    kind: NodeKind
    value: Any = None

    def describe(self) -> str:
        if self.kind in (NodeKind.list, NodeKind.map, NodeKind.null):
            return self.kind.value
        if self.kind is NodeKind.other:
            return f"{type(self.value).__name__} {self.value!r}"
        if self.kind is NodeKind.bool:
            return f"boolean {'true' if self.value else 'false'}"
        return f"{self.kind.value} {self.value!r}"

    def to_python(self) -> Any:
        if self.kind is NodeKind.list:
            return [item.to_python() for item in self.value]
        if self.kind is NodeKind.map:
            return {key: item.to_python() for key, item in self.value}
        return self.value


def parse_node(raw: Any) -> Node:
    """Convert decoded YAML (or plain Python) data into a ``Node`` tree."""
    if raw is None:
        return Node(NodeKind.null)
    # bool is a subclass of int, check it first
    if isinstance(raw, bool):
        return Node(NodeKind.bool, raw)
    if isinstance(raw, int):
        return Node(NodeKind.int, raw)
    if isinstance(raw, float):
        return Node(NodeKind.float, raw)
    if isinstance(raw, str):
        return Node(NodeKind.string, raw)
    if isinstance(raw, (list, tuple)):
        return Node(NodeKind.list, tuple(parse_node(item) for item in raw))
    if isinstance(raw, dict):
        return Node(NodeKind.map, tuple((str(key), parse_node(value)) for key, value in raw.items()))
    # dates and other tagged scalars; accessors report them as mismatches
    return Node(NodeKind.other, raw)


@dataclass(frozen=True)
class Field:
    """Result of reading one key: presence, coerced value and mismatch message."""
    present: bool
    value: Any = None
    mismatch: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.present and self.mismatch is None


_ABSENT = Field(present=False)
_STRINGISH = (NodeKind.string, NodeKind.int)


def _mismatch(expected: str, node: Node) -> Field:
    return Field(present=True, mismatch=f"expected {expected}, got {node.describe()}")


def _text_mismatch(expected: str, node: Node) -> Field:
    if node.kind is NodeKind.float:
        # 2.10 loads as 2.1
        return Field(present=True, mismatch=f"expected {expected}, got {node.describe()} (quote the value to keep it as text)")
    return _mismatch(expected, node)


class Document:
    """Read-only accessor over a map node."""

    def __init__(self, node: Node) -> None:
        if node.kind is not NodeKind.map:
            raise DecodeError(f"Expected a map, got {node.describe()}")
        self._items: Tuple[Tuple[str, Node], ...] = node.value
        self._index: Dict[str, Node] = dict(node.value)

    @classmethod
    def from_raw(cls, raw: Any) -> "Document":
        return cls(parse_node({} if raw is None else raw))

    def keys(self) -> List[str]:
        return [key for key, _ in self._items]

    def node(self, name: str) -> Optional[Node]:
        node = self._index.get(name)
        if node is None or node.kind is NodeKind.null:
            return None
        return node

    def has(self, name: str) -> bool:
        return self.node(name) is not None

    def filled(self, name: str) -> bool:
        """Like ``has`` but an empty string also counts as unset."""
        node = self.node(name)
        return node is not None and not (node.kind is NodeKind.string and node.value == "")

    def string(self, name: str) -> Field:
        node = self.node(name)
        if node is None:
            return _ABSENT
        if node.kind not in _STRINGISH:
            return _text_mismatch("a string", node)
        return Field(present=True, value=str(node.value))

    def yes_no(self, name: str) -> Field:
        node = self.node(name)
        if node is None:
            return _ABSENT
        if node.kind is not NodeKind.string:
            return _mismatch("'yes' or 'no'", node)
        return Field(present=True, value=node.value)

    def integer(self, name: str) -> Field:
        node = self.node(name)
        if node is None:
            return _ABSENT
        if node.kind is not NodeKind.int:
            return _mismatch("an integer", node)
        return Field(present=True, value=node.value)

    def string_list(self, name: str) -> Field:
        node = self.node(name)
        if node is None:
            return _ABSENT
        if node.kind is not NodeKind.list:
            return _mismatch("a list of strings", node)
        values: List[str] = []
        for item in node.value:
            if item.kind not in _STRINGISH:
                return _text_mismatch("a list of strings", item)
            values.append(str(item.value))
        return Field(present=True, value=values)

    def mapping(self, name: str) -> Field:
        node = self.node(name)
        if node is None:
            return _ABSENT
        if node.kind is not NodeKind.map:
            return _mismatch("a map", node)
        return Field(present=True, value=node.to_python())

    def documents(self, name: str) -> Field:
        node = self.node(name)
        if node is None:
            return _ABSENT
        if node.kind is not NodeKind.list:
            return _mismatch("a list of plays", node)
        docs: List[Document] = []
        for item in node.value:
            if item.kind is not NodeKind.map:
                return _mismatch("a list of plays", item)
            docs.append(Document(item))
        return Field(present=True, value=docs)
