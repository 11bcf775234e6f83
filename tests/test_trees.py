import gc

import pytest

from avlmap.trees import BalanceableBinaryTree, LinkedBinaryTree


def build_chain(tree, labels, sides):
    """Add a root labelled labels[0], then each next label as a child on the given side."""
    p = tree.add_root(labels[0])
    nodes = [p]
    for label, side in zip(labels[1:], sides):
        p = tree.add_left(p, label) if side == "L" else tree.add_right(p, label)
        nodes.append(p)
    return nodes


def test_add_and_navigate():
    tree = LinkedBinaryTree()
    root = tree.add_root("r")
    a = tree.add_left(root, "a")
    b = tree.add_right(root, "b")

    assert len(tree) == 3
    assert tree.root() == root
    assert tree.parent(a) == root
    assert tree.sibling(a) == b
    assert tree.sibling(root) is None
    assert tree.is_internal(root) and tree.is_external(a)
    assert tree.depth(b) == 1
    assert [p.get_element() for p in tree.inorder()] == ["a", "r", "b"]
    assert [p.get_element() for p in tree.preorder()] == ["r", "a", "b"]
    assert [p.get_element() for p in tree.breadth_first()] == ["r", "a", "b"]


def test_add_root_twice_and_duplicate_child_raise():
    tree = LinkedBinaryTree()
    root = tree.add_root(1)
    tree.add_left(root, 2)
    with pytest.raises(RuntimeError):
        tree.add_root(3)
    with pytest.raises(RuntimeError):
        tree.add_left(root, 4)


def test_remove_promotes_child_and_marks_node_defunct():
    tree = LinkedBinaryTree()
    root, a, b = build_chain(tree, ["r", "a", "b"], "LL")

    assert tree.remove(a) == "a"
    assert tree.left(root) == b
    assert tree.parent(b) == root
    assert len(tree) == 2
    with pytest.raises(RuntimeError):
        tree.parent(a)
    with pytest.raises(RuntimeError):
        a.get_element()


def test_remove_node_with_two_children_raises():
    tree = LinkedBinaryTree()
    root = tree.add_root(1)
    tree.add_left(root, 0)
    tree.add_right(root, 2)
    with pytest.raises(RuntimeError):
        tree.remove(root)


def test_non_positions_are_rejected():
    first, second = LinkedBinaryTree(), LinkedBinaryTree()
    first.add_root(1)
    with pytest.raises(RuntimeError):
        second.left(object())


def test_positions_compare_by_identity():
    tree = LinkedBinaryTree()
    root = tree.add_root(None)
    left = tree.add_left(root, None)
    right = tree.add_right(root, None)
    assert left != right
    assert left == tree.left(root)
    assert len({left, right, root}) == 3


def test_parent_link_does_not_keep_parent_alive():
    tree = LinkedBinaryTree()
    root = tree.add_root("r")
    child = tree.add_left(root, "c")
    tree._root = None
    del root
    gc.collect()
    assert child.get_parent() is None


def test_height_counts_internal_levels():
    tree = LinkedBinaryTree()
    root, a, b = build_chain(tree, ["r", "a", "b"], "LR")
    assert tree.height() == 2  # b is external
    assert tree.height(b) == 0


def test_rotate_updates_root_and_parent_links():
    tree = BalanceableBinaryTree()
    z, y = build_chain(tree, ["z", "y"], "L")
    t = tree.add_right(y, "t")

    tree.rotate(y)

    assert tree.root() == y
    assert tree.parent(y) is None
    assert tree.right(y) == z
    assert tree.parent(z) == y
    assert tree.left(z) == t
    assert tree.parent(t) == z


def test_restructure_single_rotation():
    tree = BalanceableBinaryTree()
    z, y, x = build_chain(tree, ["z", "y", "x"], "RR")

    top = tree.restructure(x)

    assert top == y
    assert tree.root() == y
    assert tree.left(y) == z and tree.right(y) == x
    assert tree.parent(z) == y and tree.parent(x) == y


def test_restructure_double_rotation():
    tree = BalanceableBinaryTree()
    z, y, x = build_chain(tree, ["z", "y", "x"], "LR")

    top = tree.restructure(x)

    assert top == x
    assert tree.root() == x
    assert tree.left(x) == y and tree.right(x) == z


def test_restructure_below_root_relinks_grandparent():
    tree = BalanceableBinaryTree()
    g, z, y, x = build_chain(tree, ["g", "z", "y", "x"], "RLL")

    top = tree.restructure(x)

    assert top == y
    assert tree.right(g) == y
    assert tree.parent(y) == g
    assert [p.get_element() for p in tree.inorder()] == ["g", "x", "y", "z"]


def test_height_field_defaults_to_zero():
    tree = BalanceableBinaryTree()
    root = tree.add_root(None)
    assert tree.get_height(root) == 0
    assert tree.get_height(None) == 0
    tree.set_height(root, 3)
    assert tree.get_height(root) == 3
