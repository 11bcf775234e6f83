import weakref
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Any, Optional


class Position(ABC):
    @abstractmethod
    def get_element(self):
        """Return the element stored at this position."""
        pass

    def __eq__(self, other):
        """Return True if other is a Position representing the same location."""
        raise NotImplementedError('must be implemented by subclass')

    def __ne__(self, other):
        """Return True if other does not represent the same location."""
        return not (self == other)


class Tree(ABC):
    """Abstract base class representing a tree structure."""

    @abstractmethod
    def __len__(self) -> int:
        """Return the total number of positions in the tree."""
        pass

    def is_empty(self) -> bool:
        """Return True if the tree is empty."""
        return len(self) == 0

    @abstractmethod
    def root(self) -> Optional[Position]:
        """Return the root Position of the tree (or None if tree is empty)."""
        pass

    @abstractmethod
    def parent(self, p: Position) -> Optional[Position]:
        """Return the Position of p's parent (or None if p is root)."""
        pass

    @abstractmethod
    def children(self, p: Position) -> Iterable[Position]:
        """Return an iterable collection containing the children of Position p."""
        pass

    @abstractmethod
    def num_children(self, p: Position) -> int:
        """Return the number of children that Position p has."""
        pass

    def is_internal(self, p: Position) -> bool:
        """Return True if Position p has at least one child."""
        return self.num_children(p) > 0

    def is_external(self, p: Position) -> bool:
        """Return True if Position p has no children."""
        return self.num_children(p) == 0

    def is_root(self, p: Position) -> bool:
        """Return True if Position p represents the root of the tree."""
        return p == self.root()

    def depth(self, p: Position) -> int:
        """Return the number of levels separating Position p from the root."""
        if self.is_root(p):
            return 0
        else:
            return 1 + self.depth(self.parent(p))

    def height(self, p: Optional[Position] = None) -> int:
        """
        Return the height of the subtree rooted at p (the whole tree by default),
        counting external positions as height 0. Walks the subtree every call.
        """
        if p is None:
            p = self.root()
        if p is None or self.is_external(p):
            return 0
        return 1 + max(self.height(c) for c in self.children(p))

    def preorder(self) -> Iterable[Position]:
        """Generate a preorder iteration of positions in the tree."""
        if not self.is_empty():
            yield from self._subtree_preorder(self.root())

    def _subtree_preorder(self, p: Position) -> Iterable[Position]:
        yield p
        for c in self.children(p):
            yield from self._subtree_preorder(c)

    def breadth_first(self) -> Iterable[Position]:
        """Generate a breadth-first iteration of the positions of the tree."""
        if not self.is_empty():
            fringe = deque([self.root()])
            while fringe:
                p = fringe.popleft()
                yield p
                fringe.extend(self.children(p))

    def positions(self) -> Iterable[Position]:
        """Generate an iteration of the tree's positions."""
        yield from self.preorder()

    def __iter__(self) -> Iterable[Any]:
        """Generate an iteration of the tree's elements."""
        for p in self.positions():
            yield p.get_element()


class BinaryTree(Tree):
    """A tree in which every position has at most a left and a right child."""

    @abstractmethod
    def left(self, p: Position) -> Optional[Position]:
        pass

    @abstractmethod
    def right(self, p: Position) -> Optional[Position]:
        pass

    def sibling(self, p: Position) -> Optional[Position]:
        """The other child of p's parent; None for the root."""
        parent = self.parent(p)
        if parent is None:
            return None
        left = self.left(parent)
        return self.right(parent) if p == left else left

    def children(self, p: Position) -> Iterable[Position]:
        for child in (self.left(p), self.right(p)):
            if child is not None:
                yield child

    def num_children(self, p: Position) -> int:
        return sum(1 for _ in self.children(p))

    def inorder(self) -> Iterable[Position]:
        """Positions in symmetric order: left subtree, position, right subtree."""
        if not self.is_empty():
            yield from self._inorder_from(self.root())

    def _inorder_from(self, p: Position) -> Iterable[Position]:
        left, right = self.left(p), self.right(p)
        if left is not None:
            yield from self._inorder_from(left)
        yield p
        if right is not None:
            yield from self._inorder_from(right)

    def positions(self) -> Iterable[Position]:
        yield from self.inorder()


class LinkedBinaryTree(BinaryTree):
    """Binary tree made of linked nodes; each node doubles as its own Position."""

    class _Node(Position):
        """
        Children are owned through ``_left``/``_right``. The parent link is a weak
        reference, so ownership only flows from the root downwards. A removed
        node points its parent link at itself and is rejected from then on.
        """
        __slots__ = '_element', '_parent', '_left', '_right'

        def __init__(self, element, parent=None, left=None, right=None):
            self._element = element
            self._parent = None
            self._left = left
            self._right = right
            self.set_parent(parent)

        def is_defunct(self) -> bool:
            return self.get_parent() is self

        def get_element(self):
            if self.is_defunct():
                raise RuntimeError("Position no longer valid")
            return self._element

        def set_element(self, element):
            self._element = element

        def get_parent(self):
            return None if self._parent is None else self._parent()

        def set_parent(self, parent):
            self._parent = None if parent is None else weakref.ref(parent)

        def get_left(self):
            return self._left

        def set_left(self, node):
            self._left = node

        def get_right(self):
            return self._right

        def set_right(self, node):
            self._right = node

        def __eq__(self, other):
            return other is self

        def __hash__(self):
            return id(self)

    def __init__(self):
        self._root = None
        self._size = 0

    def _validate(self, p):
        """Return p as a node of this tree, or raise RuntimeError."""
        if not isinstance(p, self._Node):
            raise RuntimeError("Not valid position type")
        if p.is_defunct():
            raise RuntimeError("p is no longer in the tree")
        return p

    def _make_node(self, element, parent=None):
        return self._Node(element, parent)

    def __len__(self) -> int:
        return self._size

    def root(self) -> Optional[Position]:
        return self._root

    def parent(self, p: Position) -> Optional[Position]:
        return self._validate(p).get_parent()

    def left(self, p: Position) -> Optional[Position]:
        return self._validate(p).get_left()

    def right(self, p: Position) -> Optional[Position]:
        return self._validate(p).get_right()

    def add_root(self, element) -> Position:
        if self._root is not None:
            raise RuntimeError("Tree is not empty")
        self._root = self._make_node(element)
        self._size = 1
        return self._root

    def _attach_child(self, p, element, on_left: bool) -> Position:
        node = self._validate(p)
        current = node.get_left() if on_left else node.get_right()
        if current is not None:
            side = "left" if on_left else "right"
            raise RuntimeError(f"p already has a {side} child")
        child = self._make_node(element, node)
        if on_left:
            node.set_left(child)
        else:
            node.set_right(child)
        self._size += 1
        return child

    def add_left(self, p, element) -> Position:
        return self._attach_child(p, element, on_left=True)

    def add_right(self, p, element) -> Position:
        return self._attach_child(p, element, on_left=False)

    def set(self, p, element):
        """Store element at p and hand back what was there before."""
        node = self._validate(p)
        previous = node.get_element()
        node.set_element(element)
        return previous

    def remove(self, p):
        """
        Unlink p, lifting its only child (if any) into its place, and return
        p's element. Positions with two children cannot be removed directly.
        """
        node = self._validate(p)
        if self.num_children(node) == 2:
            raise RuntimeError("p has two children")
        child = node.get_left() if node.get_left() is not None else node.get_right()
        parent = node.get_parent()
        if child is not None:
            child.set_parent(parent)
        if parent is None:
            self._root = child
        elif node == parent.get_left():
            parent.set_left(child)
        else:
            parent.set_right(child)
        self._size -= 1

        element = node.get_element()
        node.set_element(None)
        node.set_left(None)
        node.set_right(None)
        node.set_parent(node)
        return element


class BalanceableBinaryTree(LinkedBinaryTree):
    """A LinkedBinaryTree whose nodes cache a subtree height and support rotations."""

    class _BSTNode(LinkedBinaryTree._Node):
        __slots__ = ('_height',)

        def __init__(self, element, parent=None):
            super().__init__(element, parent)
            self._height = 0

        def get_height(self) -> int:
            return self._height

        def set_height(self, value: int) -> None:
            self._height = value

    def _make_node(self, element, parent=None):
        return self._BSTNode(element, parent)

    def get_height(self, p: Optional[Position]) -> int:
        """Cached height of p; 0 for None and for positions never measured."""
        if p is None:
            return 0
        return self._validate(p).get_height()

    def set_height(self, p: Position, value: int) -> None:
        self._validate(p).set_height(value)

    def _relink(self, parent, child, make_left_child):
        """Relink a parent node with its oriented child node."""
        if make_left_child:
            parent.set_left(child)
        else:
            parent.set_right(child)
        if child is not None:
            child.set_parent(parent)

    def rotate(self, p: Position) -> None:
        """Rotate Position p above its parent."""
        x = self._validate(p)
        y = x.get_parent()
        z = y.get_parent()

        if z is None:
            self._root = x
            x.set_parent(None)
        else:
            self._relink(z, x, y == z.get_left())

        if x == y.get_left():
            self._relink(y, x.get_right(), True)
            self._relink(x, y, False)
        else:
            self._relink(y, x.get_left(), False)
            self._relink(x, y, True)

    def restructure(self, x: Position) -> Position:
        """
        Perform a trinode restructuring of Position x with its parent and
        grandparent, returning the Position that becomes the local root.
        """
        y = self.parent(x)
        z = self.parent(y)

        if (x == self.right(y)) == (y == self.right(z)):
            self.rotate(y)
            return y
        else:
            self.rotate(x)
            self.rotate(x)
            return x
