from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Tuple

from avlmap.trees import BalanceableBinaryTree, Position


class MapEntry:
    """Lightweight composite to store key-value pairs."""
    __slots__ = '_key', '_value'

    def __init__(self, key, value):
        self._key = key
        self._value = value

    def get_key(self): return self._key
    def get_value(self): return self._value

    def __lt__(self, other): return self._key < other.get_key()
    def __le__(self, other): return self._key <= other.get_key()
    def __eq__(self, other): return isinstance(other, MapEntry) and self._key == other.get_key()
    def __hash__(self): return hash(self._key)
    def __repr__(self): return f"({self._key}, {self._value})"


class StructuralListener(ABC):
    """Receives the position touched by every raw insertion or removal of a TreeMap."""

    @abstractmethod
    def after_insert(self, p: Position) -> None:
        """Called once with the newly inserted internal position."""
        pass

    @abstractmethod
    def after_delete(self, p: Position) -> None:
        """Called once with the position now occupying the removed node's slot."""
        pass


class NullListener(StructuralListener):
    """Leaves the tree as the raw operations shaped it (plain binary search tree)."""

    def after_insert(self, p: Position) -> None:
        pass

    def after_delete(self, p: Position) -> None:
        pass


Comparator = Callable[[Any, Any], int]


def natural_order(a: Any, b: Any) -> int:
    """Three-way comparison using the keys' own ordering."""
    if a < b:
        return -1
    if b < a:
        return 1
    return 0


class TreeMap:
    """
    Sorted map implemented as a binary search tree with leaf sentinels.

    Every internal position stores a MapEntry and has exactly two children;
    external positions store None. An empty map is a single sentinel root.
    Balancing schemes plug in through a StructuralListener.
    """

    def __init__(self, comparator: Optional[Comparator] = None,
                 tree: Optional[BalanceableBinaryTree] = None,
                 listener: Optional[StructuralListener] = None):
        self._compare: Comparator = comparator if comparator is not None else natural_order
        self._tree = tree if tree is not None else BalanceableBinaryTree()
        if self._tree.is_empty():
            self._tree.add_root(None)
        self._listener = listener if listener is not None else NullListener()

    # ------------------ Accessors ------------------
    @property
    def tree(self) -> BalanceableBinaryTree:
        return self._tree

    def __len__(self) -> int:
        return (len(self._tree) - 1) // 2

    def is_empty(self) -> bool:
        return len(self) == 0

    def root(self) -> Position:
        return self._tree.root()

    def __iter__(self) -> Iterable[Any]:
        """Generate an iteration of the map's keys in order."""
        for entry in self.entries():
            yield entry.get_key()

    def keys(self) -> Iterable[Any]:
        return iter(self)

    def values(self) -> Iterable[Any]:
        """Generate an iteration of the map's values in key order."""
        for entry in self.entries():
            yield entry.get_value()

    def items(self) -> Iterable[Tuple[Any, Any]]:
        for entry in self.entries():
            yield entry.get_key(), entry.get_value()

    def entries(self) -> Iterable[MapEntry]:
        """Generate the stored entries in key order."""
        for p in self._tree.inorder():
            if self._tree.is_internal(p):
                yield p.get_element()

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"{type(self).__name__}({{{body}}})"

    # ------------------ Search helpers ------------------
    def _tree_search(self, p: Position, k: Any) -> Position:
        """Return the position holding key k, or the sentinel where it would go."""
        tree = self._tree
        walk = p
        while tree.is_internal(walk):
            comp = self._compare(k, walk.get_element().get_key())
            if comp == 0:
                return walk
            elif comp < 0:
                walk = tree.left(walk)
            else:
                walk = tree.right(walk)
        return walk

    def _tree_min(self, p: Position) -> Position:
        """Return the internal position with the smallest key in subtree p."""
        walk = p
        while self._tree.is_internal(walk):
            walk = self._tree.left(walk)
        return self._tree.parent(walk)

    def _tree_max(self, p: Position) -> Position:
        """Return the internal position with the largest key in subtree p."""
        walk = p
        while self._tree.is_internal(walk):
            walk = self._tree.right(walk)
        return self._tree.parent(walk)

    def _expand_external(self, p: Position, entry: MapEntry) -> None:
        """Turn sentinel p into an internal position holding entry."""
        self._tree.set(p, entry)
        self._tree.add_left(p, None)
        self._tree.add_right(p, None)

    def _before(self, p: Position) -> Optional[Position]:
        """Return the internal position preceding p in key order."""
        tree = self._tree
        if tree.is_internal(tree.left(p)):
            return self._tree_max(tree.left(p))
        walk = p
        while not tree.is_root(walk):
            parent = tree.parent(walk)
            if walk == tree.right(parent):
                return parent
            walk = parent
        return None

    def _after(self, p: Position) -> Optional[Position]:
        """Return the internal position following p in key order."""
        tree = self._tree
        if tree.is_internal(tree.right(p)):
            return self._tree_min(tree.right(p))
        walk = p
        while not tree.is_root(walk):
            parent = tree.parent(walk)
            if walk == tree.left(parent):
                return parent
            walk = parent
        return None

    @staticmethod
    def _entry_of(p: Optional[Position]) -> Optional[MapEntry]:
        return p.get_element() if p is not None else None

    # ------------------ Core queries ------------------
    def get(self, k: Any, default: Any = None) -> Any:
        """Return the value associated with key k, or default."""
        p = self._tree_search(self.root(), k)
        if self._tree.is_external(p):
            return default
        return p.get_element().get_value()

    def __getitem__(self, k: Any) -> Any:
        p = self._tree_search(self.root(), k)
        if self._tree.is_external(p):
            raise KeyError(k)
        return p.get_element().get_value()

    def __contains__(self, k: Any) -> bool:
        return self._tree.is_internal(self._tree_search(self.root(), k))

    def first_entry(self) -> Optional[MapEntry]:
        """Return the entry with the smallest key, or None if the map is empty."""
        if self.is_empty():
            return None
        return self._tree_min(self.root()).get_element()

    def last_entry(self) -> Optional[MapEntry]:
        """Return the entry with the largest key, or None if the map is empty."""
        if self.is_empty():
            return None
        return self._tree_max(self.root()).get_element()

    def ceiling_entry(self, k: Any) -> Optional[MapEntry]:
        """Return the entry with the least key greater than or equal to k."""
        p = self._tree_search(self.root(), k)
        if self._tree.is_internal(p):
            return p.get_element()
        while not self._tree.is_root(p):
            if p == self._tree.left(self._tree.parent(p)):
                return self._tree.parent(p).get_element()
            p = self._tree.parent(p)
        return None

    def floor_entry(self, k: Any) -> Optional[MapEntry]:
        """Return the entry with the greatest key less than or equal to k."""
        p = self._tree_search(self.root(), k)
        if self._tree.is_internal(p):
            return p.get_element()
        while not self._tree.is_root(p):
            if p == self._tree.right(self._tree.parent(p)):
                return self._tree.parent(p).get_element()
            p = self._tree.parent(p)
        return None

    def lower_entry(self, k: Any) -> Optional[MapEntry]:
        """Return the entry with the greatest key strictly less than k."""
        p = self._tree_search(self.root(), k)
        if self._tree.is_internal(p):
            return self._entry_of(self._before(p))
        return self.floor_entry(k)

    def higher_entry(self, k: Any) -> Optional[MapEntry]:
        """Return the entry with the least key strictly greater than k."""
        p = self._tree_search(self.root(), k)
        if self._tree.is_internal(p):
            return self._entry_of(self._after(p))
        return self.ceiling_entry(k)

    def sub_map(self, k1: Any, k2: Any) -> Iterable[Tuple[Any, Any]]:
        """Generate (key, value) pairs for keys k such that k1 <= k < k2."""
        entry = self.ceiling_entry(k1)
        if entry is None:
            return
        current = self._tree_search(self.root(), entry.get_key())
        while current is not None:
            key = current.get_element().get_key()
            if self._compare(key, k2) >= 0:
                break
            yield key, current.get_element().get_value()
            current = self._after(current)

    # ------------------ Core mutations ------------------
    def put(self, k: Any, v: Any) -> Optional[Any]:
        """
        Insert or replace entry (k, v) and return the old value, or None.
        Raises ValueError for a key that does not compare equal to itself (NaN).
        """
        if self._compare(k, k) != 0 or k != k:
            raise ValueError(f"key {k!r} is not ordered against itself")
        entry = MapEntry(k, v)
        p = self._tree_search(self.root(), k)
        if self._tree.is_internal(p):
            old_entry = self._tree.set(p, entry)
            return old_entry.get_value()
        self._expand_external(p, entry)
        self._listener.after_insert(p)
        return None

    def __setitem__(self, k: Any, v: Any) -> None:
        self.put(k, v)

    def remove(self, k: Any) -> Optional[Any]:
        """Remove entry with key k and return its value, or None."""
        tree = self._tree
        p = self._tree_search(self.root(), k)
        if tree.is_external(p):
            return None
        old_value = p.get_element().get_value()

        if tree.is_internal(tree.left(p)) and tree.is_internal(tree.right(p)):
            replacement = self._tree_max(tree.left(p))
            tree.set(p, replacement.get_element())
            p = replacement  # now remove the predecessor, which has a sentinel child

        leaf = tree.left(p) if tree.is_external(tree.left(p)) else tree.right(p)
        sib = tree.sibling(leaf)
        tree.remove(leaf)
        tree.remove(p)  # sib is promoted into p's slot
        self._listener.after_delete(sib)
        return old_value

    def __delitem__(self, k: Any) -> None:
        if k not in self:
            raise KeyError(k)
        self.remove(k)

    def clear(self) -> None:
        """Remove every entry, leaving a single sentinel root."""
        self._tree = type(self._tree)()
        self._tree.add_root(None)
        self._on_new_tree()

    def _on_new_tree(self) -> None:
        """Hook for subclasses whose listener holds a reference to the tree."""
        pass
