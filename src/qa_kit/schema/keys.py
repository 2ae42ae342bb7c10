# src/qa_kit/schema/keys.py

"""Hierarchical key tree extracted from heterogeneous JSON records.

The tree lets an operator pick which nested fields take part in chunk
construction. Paths are dot-separated (``author.name``). Arrays of
primitives are one leaf; arrays of objects are described by their first
element only, so the tree size does not depend on array length.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from typing import Any

from qa_kit.errors import InputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyNode:
    """One field position discovered across a set of records.

    Immutable. Selection changes go through ``KeyTree`` so the
    parent/child cascade always holds.
    """

    name: str
    path: str
    level: int
    is_leaf: bool
    is_array: bool
    selected: bool = False

    @property
    def parent_path(self) -> str | None:
        if "." not in self.path:
            return None
        return self.path.rsplit(".", 1)[0]


def extract_keys(records: Iterable[Any]) -> list[KeyNode]:
    """Build the key list for ``records``, parents before children.

    Records that are not a JSON object or array at the top level are
    skipped.

    Raises:
        InputError: If no key could be extracted from any record.
    """
    array_flags: dict[str, bool] = {}
    skipped = 0

    for index, record in enumerate(records):
        if not isinstance(record, (dict, list)):
            skipped += 1
            logger.debug("Skipping record %d: not an object or array", index)
            continue
        _collect(record, "", array_flags)

    if not array_flags:
        raise InputError("No keys found in the provided records")

    ordered = sorted(array_flags, key=lambda p: p.split("."))
    parents = {p.rsplit(".", 1)[0] for p in ordered if "." in p}

    nodes = [
        KeyNode(
            name=path.rsplit(".", 1)[-1],
            path=path,
            level=path.count("."),
            is_leaf=path not in parents,
            is_array=array_flags[path],
        )
        for path in ordered
    ]
    logger.info("Extracted %d keys (%d records skipped)", len(nodes), skipped)
    return nodes


def _collect(value: Any, prefix: str, array_flags: dict[str, bool]) -> None:
    if isinstance(value, list):
        if value and isinstance(value[0], (dict, list)):
            _collect(value[0], prefix, array_flags)
        return

    for key, child in value.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        is_array = isinstance(child, list)
        array_flags[path] = array_flags.get(path, False) or is_array

        if isinstance(child, dict):
            _collect(child, path, array_flags)
        elif is_array and child and isinstance(child[0], (dict, list)):
            _collect(child[0], path, array_flags)


class KeyTree:
    """Indexed key tree with cascading selection.

    Selecting a node selects all of its ancestors. Deselecting a node
    deselects all of its descendants. Parent and child lookups go through
    a path index, never a scan.
    """

    def __init__(self, nodes: Iterable[KeyNode]) -> None:
        self._nodes: dict[str, KeyNode] = {}
        self._children: dict[str, list[str]] = {}

        for node in nodes:
            if node.path in self._nodes:
                raise ValueError(f"Duplicate key path: {node.path}")
            self._nodes[node.path] = node
            self._children[node.path] = []

        for path, node in self._nodes.items():
            parent = node.parent_path
            if parent is not None and parent in self._nodes:
                self._children[parent].append(path)

        # Re-apply any selection that came in with the nodes.
        for path in [p for p, n in self._nodes.items() if n.selected]:
            self.select(path)

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "KeyTree":
        return cls(extract_keys(records))

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[KeyNode]:
        return iter(self._nodes.values())

    def __contains__(self, path: object) -> bool:
        return path in self._nodes

    def get(self, path: str) -> KeyNode:
        try:
            return self._nodes[path]
        except KeyError:
            raise KeyError(f"Key path '{path}' not found")

    def parent(self, path: str) -> KeyNode | None:
        parent_path = self.get(path).parent_path
        if parent_path is None:
            return None
        return self._nodes.get(parent_path)

    def children(self, path: str) -> list[KeyNode]:
        self.get(path)
        return [self._nodes[p] for p in self._children[path]]

    def select(self, path: str) -> None:
        node: KeyNode | None = self.get(path)
        while node is not None:
            if not node.selected:
                self._nodes[node.path] = replace(node, selected=True)
            parent_path = node.parent_path
            node = self._nodes.get(parent_path) if parent_path else None

    def deselect(self, path: str) -> None:
        self.get(path)
        stack = [path]
        while stack:
            current = stack.pop()
            node = self._nodes[current]
            if node.selected:
                self._nodes[current] = replace(node, selected=False)
            stack.extend(self._children[current])

    def set_selected(self, path: str, selected: bool) -> None:
        if selected:
            self.select(path)
        else:
            self.deselect(path)

    def toggle(self, path: str) -> None:
        self.set_selected(path, not self.get(path).selected)

    def select_all(self) -> None:
        for path, node in self._nodes.items():
            self._nodes[path] = replace(node, selected=True)

    def deselect_all(self) -> None:
        for path, node in self._nodes.items():
            self._nodes[path] = replace(node, selected=False)

    def selected_paths(self) -> list[str]:
        return [p for p, n in self._nodes.items() if n.selected]

    def projection_paths(self) -> list[str]:
        """Selected paths that have no selected descendant.

        These are the paths a record projector renders: selected leaves,
        plus selected branches whose children were all left out (rendered
        whole).
        """
        return [
            path
            for path, node in self._nodes.items()
            if node.selected
            and not any(self._nodes[c].selected for c in self._children[path])
        ]

    def nodes(self) -> Sequence[KeyNode]:
        return list(self._nodes.values())
