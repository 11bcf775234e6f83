"""
ASCII drawing of a binary tree.

The drawing is produced in two passes. ``snapshot_levels`` walks the tree level
by level and returns one list of labels per level, where level n always has
2**n slots and slot j at level n is reached from the root by the binary path
spelled by j (0 = left, 1 = right). Missing positions, and everything below
them, are None. ``format_levels`` then lays those rows out inside a fixed total
width derived from the deepest populated level, and draws ``/`` and ``\\``
connectors at the midpoint between each label and its parent. A label longer
than its row's interior spacing is cut to that width, so every slot keeps its
column and at least one blank separates neighbours.
"""

import sys
from typing import Any, Callable, List, Optional, TextIO

from avlmap.trees import BinaryTree, Position

Level = List[Optional[str]]


def key_label(p: Position) -> Optional[str]:
    """Label a position by the key of its entry; sentinels have no label."""
    entry = p.get_element()
    if entry is None:
        return None
    return str(entry.get_key())


class TreeRenderer:
    def __init__(self, spacing: int = 10, label: Callable[[Position], Optional[str]] = key_label):
        self.spacing = spacing
        self.label = label

    # ------------------ Pass 1: snapshot ------------------
    def snapshot_levels(self, tree: BinaryTree) -> List[Level]:
        """Return the labels of each tree level, root level first."""
        root = tree.root()
        if root is None or self.label(root) is None:
            return []

        levels: List[Level] = []
        row: List[Optional[Position]] = [root]
        while True:
            labels = [self.label(p) if p is not None else None for p in row]
            if all(lbl is None for lbl in labels):
                break
            levels.append(labels)
            next_row: List[Optional[Position]] = []
            for p, lbl in zip(row, labels):
                if lbl is None:
                    next_row.extend((None, None))
                else:
                    next_row.append(tree.left(p))
                    next_row.append(tree.right(p))
            row = next_row
        return levels

    # ------------------ Pass 2: format ------------------
    def _row_spacing(self, total: int, slots: int):
        interior = total // slots
        exterior = max(0, (total - (interior * (slots - 1) + slots)) // 2)
        return interior, exterior

    def _label_line(self, labels: Level, interior: int, exterior: int) -> str:
        line = " " * exterior
        for lbl in labels:
            # cut to the field so later labels keep their columns
            text = lbl[:interior] if lbl is not None else " "
            line += text.ljust(interior + 1)
        return line + " " * (exterior + 1)

    def _connector_line(self, labels: Level, total: int) -> str:
        slots = len(labels)
        interior, exterior = self._row_spacing(total, slots)
        parent_interior, parent_exterior = self._row_spacing(total, slots // 2)

        line = ""
        for j, lbl in enumerate(labels):
            if lbl is None:
                continue
            child_x = exterior + j * (interior + 1)
            parent_x = parent_exterior + (j // 2) * (parent_interior + 1)
            position = min(child_x, parent_x) + abs(child_x - parent_x) // 2
            line = line.ljust(position) + ("/" if j % 2 == 0 else "\\")
        return line

    def format_levels(self, levels: List[Level]) -> List[str]:
        """Return the printable lines for the given level snapshot, top line first."""
        if not levels:
            return []
        last_row = len(levels) - 1
        width = 2 ** last_row
        total = width + self.spacing * width

        lines: List[str] = []
        for i in range(last_row, -1, -1):
            labels = levels[i]
            interior, exterior = self._row_spacing(total, len(labels))
            lines.append(self._label_line(labels, interior, exterior))
            if i != 0:
                lines.extend(["", self._connector_line(labels, total), ""])
        lines.reverse()
        return lines

    # ------------------ Entry points ------------------
    def render(self, tree: BinaryTree) -> str:
        """Return the drawing of tree as one string (empty for an empty tree)."""
        return "\n".join(self.format_levels(self.snapshot_levels(tree)))

    def print_tree(self, tree: BinaryTree, file: Optional[TextIO] = None) -> None:
        """Write the drawing of tree followed by a blank line; nothing for an empty tree."""
        lines = self.format_levels(self.snapshot_levels(tree))
        if not lines:
            return
        out = file if file is not None else sys.stdout
        for line in lines:
            print(line, file=out)
        print(file=out)


def render_tree(tree: BinaryTree, **options: Any) -> str:
    return TreeRenderer(**options).render(tree)
