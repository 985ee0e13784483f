"""Rebuild a directory forest from GitHub's flat recursive tree."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from onramp.constants import GITHUB_TREE_TYPE, NodeType
from onramp.schemas import FileNode

logger = logging.getLogger(__name__)

TreeEntry = Mapping[str, Any] | tuple[str, str, int | None]


def _unpack(entry: TreeEntry) -> tuple[str, str, int | None]:
    if isinstance(entry, Mapping):
        return entry["path"], entry["type"], entry.get("size")
    path, entry_type, size = entry
    return path, entry_type, size


def _depth(entry: TreeEntry) -> int:
    return len(_unpack(entry)[0].split("/"))


def build_file_tree(entries: Iterable[TreeEntry]) -> list[FileNode]:
    """Build a forest of :class:`FileNode` from ``(path, type, size)``.

    Entries may arrive in any order; they are processed shallowest
    first so every parent exists before its children. ``tree`` and
    ``directory`` entries become directories, anything else a file.
    A node whose parent path is not among the entries is dropped.
    """
    roots: list[FileNode] = []
    by_path: dict[str, FileNode] = {}

    for entry in sorted(entries, key=_depth):
        path, entry_type, size = _unpack(entry)
        segments = path.split("/")
        name = segments[-1]
        is_directory = entry_type in (GITHUB_TREE_TYPE, NodeType.DIRECTORY)

        node = FileNode(
            path=path,
            name=name,
            type=NodeType.DIRECTORY if is_directory else NodeType.FILE,
            children=[] if is_directory else None,
            size=size,
            extension=name.rsplit(".", 1)[-1] if "." in name else None,
        )
        by_path[path] = node

        if len(segments) == 1:
            roots.append(node)
            continue

        parent = by_path.get("/".join(segments[:-1]))
        if parent is not None and parent.children is not None:
            parent.children.append(node)
        else:
            logger.debug("event=tree_orphan_dropped path=%s", path)

    return roots
