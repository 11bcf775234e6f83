import sys
from typing import Optional, TextIO

from avlmap.maps import Comparator, StructuralListener, TreeMap
from avlmap.render import TreeRenderer
from avlmap.trees import BalanceableBinaryTree, Position


class AVLBalancer(StructuralListener):
    """
    Keeps a BalanceableBinaryTree height-balanced.

    The cached height of each position lives in the node's height field;
    sentinels (and None) have height 0. After every raw insertion or removal
    the path above the change is walked upward, recomputing heights and
    restructuring the first unbalanced position found on each step, until a
    subtree height stops changing.
    """

    def __init__(self, tree: BalanceableBinaryTree):
        self._tree = tree

    @property
    def tree(self) -> BalanceableBinaryTree:
        return self._tree

    # ------------------ Heights ------------------
    def height(self, p: Optional[Position]) -> int:
        """Return the cached height of p."""
        return self._tree.get_height(p)

    def recompute_height(self, p: Position) -> None:
        """Recompute the height of p from its children's cached heights."""
        tree = self._tree
        tree.set_height(p, 1 + max(self.height(tree.left(p)), self.height(tree.right(p))))

    # ------------------ Balance ------------------
    def is_balanced(self, p: Position) -> bool:
        """Return True if p has balance factor between -1 and 1 inclusive."""
        tree = self._tree
        return abs(self.height(tree.left(p)) - self.height(tree.right(p))) <= 1

    def taller_child(self, p: Position) -> Position:
        """Return a child of p with height no smaller than that of the other child."""
        tree = self._tree
        left, right = tree.left(p), tree.right(p)
        if self.height(left) > self.height(right):
            return left
        if self.height(left) < self.height(right):
            return right
        # equal heights: match the parent's orientation
        if tree.is_root(p):
            return left
        if p == tree.left(tree.parent(p)):
            return left
        return right

    def rebalance(self, p: Position) -> None:
        """
        Walk upward from p, restructuring wherever the balance is broken,
        until a position's height is unchanged or the root has been handled.
        """
        tree = self._tree
        while True:
            old_height = self.height(p)  # not yet recalculated if internal
            if not self.is_balanced(p):
                p = tree.restructure(self.taller_child(self.taller_child(p)))
                self.recompute_height(tree.left(p))
                self.recompute_height(tree.right(p))
            self.recompute_height(p)
            new_height = self.height(p)
            p = tree.parent(p)
            if old_height == new_height or p is None:
                break

    # ------------------ Hooks ------------------
    def after_insert(self, p: Position) -> None:
        self.rebalance(p)

    def after_delete(self, p: Position) -> None:
        if not self._tree.is_root(p):
            self.rebalance(self._tree.parent(p))

    # ------------------ Debugging ------------------
    def sanity_check(self, out: Optional[TextIO] = None) -> bool:
        """Ensure that the current tree structure is a valid AVL tree (debug use only)."""
        out = out if out is not None else sys.stdout
        tree = self._tree
        for p in tree.positions():
            if not tree.is_internal(p):
                continue
            if p.get_element() is None:
                print("VIOLATION: Internal node has null entry", file=out)
                continue
            key = p.get_element().get_key()
            if self.height(p) != 1 + max(self.height(tree.left(p)), self.height(tree.right(p))):
                print(f"VIOLATION: AVL height cache wrong at node with key {key}", file=out)
                self.dump(out)
                return False
            if not self.is_balanced(p):
                print(f"VIOLATION: AVL unbalanced node with key {key}", file=out)
                self.dump(out)
                return False
        return True

    def dump(self, out: Optional[TextIO] = None) -> None:
        """Print every internal position with its cached height, then the tree drawing."""
        out = out if out is not None else sys.stdout
        tree = self._tree
        for p in tree.preorder():
            if tree.is_internal(p) and p.get_element() is not None:
                indent = "  " * tree.depth(p)
                print(f"{indent}{p.get_element().get_key()} (h={self.height(p)})", file=out)
        TreeRenderer().print_tree(tree, file=out)


class AVLTreeMap(TreeMap):
    """Sorted map implementation using an AVL tree."""

    def __init__(self, comparator: Optional[Comparator] = None):
        tree = BalanceableBinaryTree()
        self._balancer = AVLBalancer(tree)
        super().__init__(comparator, tree=tree, listener=self._balancer)

    def _on_new_tree(self) -> None:
        self._balancer = AVLBalancer(self._tree)
        self._listener = self._balancer

    @property
    def balancer(self) -> AVLBalancer:
        return self._balancer

    def height(self) -> int:
        """Return the cached height of the whole tree."""
        return self._balancer.height(self.root())

    def sanity_check(self, out: Optional[TextIO] = None) -> bool:
        return self._balancer.sanity_check(out)

    def dump(self, out: Optional[TextIO] = None) -> None:
        self._balancer.dump(out)

    def render(self) -> str:
        """Return the ASCII drawing of the current tree."""
        return TreeRenderer().render(self._tree)

    def print_tree(self, file: Optional[TextIO] = None) -> None:
        """Write the ASCII drawing of the current tree to stdout (or file)."""
        TreeRenderer().print_tree(self._tree, file=file)
