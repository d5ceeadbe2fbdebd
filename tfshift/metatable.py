"""Build a Lua environment table from a flat list of dotted symbol names."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Union


@dataclass
class ValueNode:
    name: str
    value: str


@dataclass
class TableNode:
    name: str
    children: Dict[str, Union["TableNode", ValueNode]] = field(default_factory=dict)

    def child_table(self, name: str) -> "TableNode":
        existing = self.children.get(name)
        if existing is None:
            table = TableNode(name)
            self.children[name] = table
            return table
        if isinstance(existing, ValueNode):
            raise ValueError(f"{existing.value} is both a value and a table.")
        return existing

    def add_value(self, name: str, value: str) -> None:
        existing = self.children.get(name)
        if isinstance(existing, TableNode):
            raise ValueError(f"{value} is both a value and a table.")
        self.children[name] = ValueNode(name, value)


class MetaTableBuilder:
    """Collects entries such as ``string.format`` and renders them as a Lua table.

    Every leaf refers to the global of the same qualified name, so the rendered
    chunk copies exactly the listed symbols into the sandbox environment.
    """

    def __init__(self, table_name: str = "env") -> None:
        self.table_name = table_name
        self._entries: List[str] = []

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def with_entry(self, entry: str) -> "MetaTableBuilder":
        entry = entry.strip()
        if not entry or any(not part for part in entry.split(".")):
            raise ValueError(f"Invalid table entry {entry!r}.")
        if entry not in self._entries:
            self._entries.append(entry)
        return self

    def with_entries(self, entries: Iterable[str]) -> "MetaTableBuilder":
        for entry in entries:
            self.with_entry(entry)
        return self

    def build_tree(self) -> TableNode:
        root = TableNode(self.table_name)
        for entry in self._entries:
            parts = entry.split(".")
            node = root
            for part in parts[:-1]:
                node = node.child_table(part)
            node.add_value(parts[-1], entry)
        return root

    def build(self, pretty: bool = False) -> str:
        root = self.build_tree()
        if pretty:
            return f"{self.table_name} = {_format_pretty(root, 0)}"
        return f"{self.table_name} = {_format_compact(root)}"


def _format_compact(table: TableNode) -> str:
    items = []
    for child in table.children.values():
        if isinstance(child, ValueNode):
            items.append(f"{child.name} = {child.value}")
        else:
            items.append(f"{child.name} = {_format_compact(child)}")
    return "{" + ", ".join(items) + "}"


def _format_pretty(table: TableNode, depth: int) -> str:
    if not table.children:
        return "{}"
    indent = "    " * (depth + 1)
    lines = []
    for child in table.children.values():
        if isinstance(child, ValueNode):
            lines.append(f"{indent}{child.name} = {child.value}")
        else:
            lines.append(f"{indent}{child.name} = {_format_pretty(child, depth + 1)}")
    return "{\n" + ",\n".join(lines) + "\n" + "    " * depth + "}"


__all__ = [
    "MetaTableBuilder",
    "TableNode",
    "ValueNode",
]
