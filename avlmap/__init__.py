from avlmap.trees import (
    Position,
    Tree,
    BinaryTree,
    LinkedBinaryTree,
    BalanceableBinaryTree,
)
from avlmap.maps import MapEntry, StructuralListener, NullListener, TreeMap, natural_order
from avlmap.render import TreeRenderer, render_tree
from avlmap.avl import AVLBalancer, AVLTreeMap

__all__ = [
    "Position",
    "Tree",
    "BinaryTree",
    "LinkedBinaryTree",
    "BalanceableBinaryTree",
    "MapEntry",
    "StructuralListener",
    "NullListener",
    "TreeMap",
    "natural_order",
    "TreeRenderer",
    "render_tree",
    "AVLBalancer",
    "AVLTreeMap",
]
