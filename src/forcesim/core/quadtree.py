"""
QuadTree: recursive partition of 2D space for Barnes–Hut approximation.

Internal cells have four children indexed by `bottom << 1 | right`:
    0 = top-left, 1 = top-right, 2 = bottom-left, 3 = bottom-right
(with y increasing downwards, as in screen coordinates).

Leaves hold one entity index. Entities at exactly the same position share
a leaf through a `next` chain, since no subdivision can separate them.

Cells carry scratch attributes that forces fill in during `visit_after`:
- value: aggregate charge (many-body)
- x, y: centre of charge (many-body); for leaves, the point itself
- r: largest radius in the cell (collision)
"""

from __future__ import annotations
from typing import Callable, Iterator, Sequence
import math


class Leaf:
    """A single point (plus any coincident points chained on `next`)."""

    __slots__ = ("index", "x", "y", "next", "value", "r")

    def __init__(self, index: int, x: float, y: float):
        self.index = index
        self.x = x
        self.y = y
        self.next: Leaf | None = None
        self.value = 0.0
        self.r = 0.0

    def chain(self) -> Iterator["Leaf"]:
        """Iterate this leaf and every coincident leaf after it."""
        leaf = self
        while leaf is not None:
            yield leaf
            leaf = leaf.next


class Quad:
    """An internal cell with up to four children."""

    __slots__ = ("children", "x", "y", "value", "r")

    def __init__(self):
        self.children: list[Quad | Leaf | None] = [None, None, None, None]
        self.x = 0.0
        self.y = 0.0
        self.value = 0.0
        self.r = 0.0


Node = Quad | Leaf
Visitor = Callable[[Node, float, float, float, float], bool | None]


class QuadTree:
    """
    Point quadtree over a square extent covering all finite input points.

    Args:
        xs, ys: Point coordinates
        indices: Entity index stored for each point (defaults to 0..n-1)
    """

    def __init__(
        self,
        xs: Sequence[float],
        ys: Sequence[float],
        indices: Sequence[int] | None = None,
    ):
        if indices is None:
            indices = range(len(xs))

        points = [
            (i, float(xs[k]), float(ys[k]))
            for k, i in enumerate(indices)
            if math.isfinite(xs[k]) and math.isfinite(ys[k])
        ]

        self.root: Node | None = None
        self._size = 0

        if points:
            x0 = min(p[1] for p in points)
            y0 = min(p[2] for p in points)
            x1 = max(p[1] for p in points)
            y1 = max(p[2] for p in points)
            size = max(x1 - x0, y1 - y0)
            if size <= 0:
                size = 1.0
            self.extent = (x0, y0, x0 + size, y0 + size)
        else:
            self.extent = (0.0, 0.0, 1.0, 1.0)

        for i, x, y in points:
            self._add(i, x, y)

    def __len__(self) -> int:
        return self._size

    def _add(self, index: int, x: float, y: float) -> None:
        leaf = Leaf(index, x, y)
        self._size += 1

        node = self.root
        if node is None:
            self.root = leaf
            return

        x0, y0, x1, y1 = self.extent
        parent: Quad | None = None
        i = 0

        # Descend to the leaf (or empty slot) containing the new point
        while isinstance(node, Quad):
            xm = (x0 + x1) / 2
            ym = (y0 + y1) / 2
            right = x >= xm
            bottom = y >= ym
            if right:
                x0 = xm
            else:
                x1 = xm
            if bottom:
                y0 = ym
            else:
                y1 = ym
            parent = node
            i = bottom << 1 | right
            node = node.children[i]
            if node is None:
                parent.children[i] = leaf
                return

        # Coincident point: chain onto the existing leaf
        xp, yp = node.x, node.y
        if x == xp and y == yp:
            leaf.next = node
            if parent is not None:
                parent.children[i] = leaf
            else:
                self.root = leaf
            return

        # Split until the new point and the existing one land in different cells
        while True:
            quad = Quad()
            if parent is not None:
                parent.children[i] = quad
            else:
                self.root = quad
            parent = quad

            xm = (x0 + x1) / 2
            ym = (y0 + y1) / 2
            right = x >= xm
            bottom = y >= ym
            if right:
                x0 = xm
            else:
                x1 = xm
            if bottom:
                y0 = ym
            else:
                y1 = ym

            i = bottom << 1 | right
            j = (yp >= ym) << 1 | (xp >= xm)
            if i != j:
                break

        parent.children[j] = node
        parent.children[i] = leaf

    def visit(self, callback: Visitor) -> None:
        """
        Pre-order traversal.

        The callback receives (node, x0, y0, x1, y1) and returns True to
        skip the node's children.
        """
        if self.root is None:
            return

        stack = [(self.root, *self.extent)]
        while stack:
            node, x0, y0, x1, y1 = stack.pop()
            if callback(node, x0, y0, x1, y1) or not isinstance(node, Quad):
                continue

            xm = (x0 + x1) / 2
            ym = (y0 + y1) / 2
            children = node.children
            # Pushed in reverse so child 0 is visited first
            if children[3] is not None:
                stack.append((children[3], xm, ym, x1, y1))
            if children[2] is not None:
                stack.append((children[2], x0, ym, xm, y1))
            if children[1] is not None:
                stack.append((children[1], xm, y0, x1, ym))
            if children[0] is not None:
                stack.append((children[0], x0, y0, xm, ym))

    def visit_after(self, callback: Visitor) -> None:
        """Post-order traversal: every child is visited before its parent."""
        if self.root is None:
            return

        pending = [(self.root, *self.extent)]
        ordered = []
        while pending:
            item = pending.pop()
            ordered.append(item)
            node, x0, y0, x1, y1 = item
            if isinstance(node, Quad):
                xm = (x0 + x1) / 2
                ym = (y0 + y1) / 2
                children = node.children
                if children[0] is not None:
                    pending.append((children[0], x0, y0, xm, ym))
                if children[1] is not None:
                    pending.append((children[1], xm, y0, x1, ym))
                if children[2] is not None:
                    pending.append((children[2], x0, ym, xm, y1))
                if children[3] is not None:
                    pending.append((children[3], xm, ym, x1, y1))

        for node, x0, y0, x1, y1 in reversed(ordered):
            callback(node, x0, y0, x1, y1)

    def leaves(self) -> Iterator[Leaf]:
        """Iterate every stored point, coincident chains included."""
        found: list[Leaf] = []

        def collect(node, x0, y0, x1, y1):
            if isinstance(node, Leaf):
                found.extend(node.chain())

        self.visit(collect)
        return iter(found)

