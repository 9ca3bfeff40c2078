"""
eosim.graph — Scene Graph
==========================

A tree of nodes, each with a local 4×4 rigid transform.  The world frame is
the frame of the root.

    Node            — leaf; identity local transform
    Group           — Node that owns an ordered list of children
    TransformGroup  — Group with a mutable local transform

Ownership runs one way: a Group holds its children, a child holds only a
weak reference to its parent.  ``attach`` refuses any parent that would
close a cycle.

``local_to_world`` is computed on demand and cached.  The cache key is the
chain of ``(node, revision)`` pairs from the node up to the root; every
transform mutation or re-parenting draws a fresh revision, so a change to
any ancestor invalidates all descendants without walking them.  Cached
matrices are returned read-only.
"""

import itertools
import weakref

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError
from .utils import (
    IDENTITY4, inverse_transformation, multiply_by_point,
    multiply_by_point_as_vector, rotation_x, rotation_y, rotation_z,
)

_revisions = itertools.count(1)


def _readonly(a: NDArray) -> NDArray:
    a.flags.writeable = False
    return a


class Node:
    """A scene-graph node with an identity local transform."""

    def __init__(self):
        self._parent_ref = None
        self._revision = next(_revisions)
        self._l2w_key = None
        self._l2w = None
        self._w2l_key = None
        self._w2l = None

    # ── Hierarchy ────────────────────────────────────────────────────────

    @property
    def parent(self):
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def length(self) -> int:
        return 0

    def attach(self, parent: "Group") -> None:
        """Make this node a child of ``parent`` (detaching it first)."""
        if not isinstance(parent, Group):
            raise InvalidInputError(f"cannot attach to {type(parent).__name__}")
        node = parent
        while node is not None:
            if node is self:
                raise InvalidInputError("attach would create a cycle")
            node = node.parent
        self.detach()
        parent._children.append(self)
        self._parent_ref = weakref.ref(parent)
        self._revision = next(_revisions)

    def detach(self) -> None:
        parent = self.parent
        if parent is not None:
            parent._children.remove(self)
        self._parent_ref = None
        self._revision = next(_revisions)

    def ancestors(self):
        """Yield parent, grandparent, … up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def root(self) -> "Node":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    # ── Transforms ───────────────────────────────────────────────────────

    @property
    def transform(self) -> NDArray:
        """Local transform (read-only)."""
        return IDENTITY4

    def _chain_key(self) -> tuple:
        key = [(id(self), self._revision)]
        for node in self.ancestors():
            key.append((id(node), node._revision))
        return tuple(key)

    @property
    def local_to_world(self) -> NDArray:
        key = self._chain_key()
        if key != self._l2w_key:
            parent = self.parent
            if parent is None:
                m = np.array(self.transform)
            else:
                m = parent.local_to_world @ self.transform
            self._l2w = _readonly(m)
            self._l2w_key = key
        return self._l2w

    @property
    def world_to_local(self) -> NDArray:
        l2w = self.local_to_world
        if self._w2l_key != self._l2w_key:
            self._w2l = _readonly(inverse_transformation(l2w))
            self._w2l_key = self._l2w_key
        return self._w2l

    def transform_point_to_world(self, point: NDArray, out: NDArray = None) -> NDArray:
        return multiply_by_point(self.local_to_world, point, out)

    def transform_point_from_world(self, point: NDArray, out: NDArray = None) -> NDArray:
        return multiply_by_point(self.world_to_local, point, out)

    def transform_point_to(self, destination: "Node", point: NDArray,
                           out: NDArray = None) -> NDArray:
        """Express a point of this node's frame in ``destination``'s frame."""
        world = self.transform_point_to_world(point)
        return destination.transform_point_from_world(world, out)

    def transform_vector_to_world(self, vector: NDArray, out: NDArray = None) -> NDArray:
        return multiply_by_point_as_vector(self.local_to_world, vector, out)

    def transform_vector_from_world(self, vector: NDArray, out: NDArray = None) -> NDArray:
        return multiply_by_point_as_vector(self.world_to_local, vector, out)

    def transform_vector_to(self, destination: "Node", vector: NDArray,
                            out: NDArray = None) -> NDArray:
        world = self.transform_vector_to_world(vector)
        return destination.transform_vector_from_world(world, out)

    @property
    def world_origin(self) -> NDArray:
        """Origin of this node's frame in world coordinates."""
        return self.local_to_world[:3, 3].copy()


class Group(Node):
    """Node with an ordered list of children."""

    def __init__(self):
        super().__init__()
        self._children = []

    @property
    def children(self) -> tuple:
        return tuple(self._children)

    @property
    def length(self) -> int:
        return len(self._children)

    def add_child(self, child: Node) -> None:
        child.attach(self)

    def remove_child(self, child: Node) -> None:
        if child.parent is self:
            child.detach()

    def remove_all(self) -> None:
        for child in list(self._children):
            child.detach()

    def has_children(self) -> bool:
        return bool(self._children)


class TransformGroup(Group):
    """Group with a mutable local transform.

    Rotations and translations post-multiply the current transform, i.e.
    they act in the group's own (already transformed) frame.
    """

    def __init__(self):
        super().__init__()
        self._transform = np.eye(4)

    def _touch(self):
        self._revision = next(_revisions)

    @property
    def transform(self) -> NDArray:
        view = self._transform.view()
        view.flags.writeable = False
        return view

    @transform.setter
    def transform(self, value: NDArray):
        value = np.asarray(value, dtype=np.float64)
        if value.shape != (4, 4):
            raise InvalidInputError(f"transform must be 4×4, got {value.shape}")
        self._transform[:] = value
        self._touch()

    def _post_rotate(self, rot: NDArray) -> None:
        self._transform[:3, :3] = self._transform[:3, :3] @ rot
        self._touch()

    def rotate_x(self, angle: float) -> None:
        self._post_rotate(rotation_x(angle))

    def rotate_y(self, angle: float) -> None:
        self._post_rotate(rotation_y(angle))

    def rotate_z(self, angle: float) -> None:
        self._post_rotate(rotation_z(angle))

    def translate(self, vector: NDArray) -> None:
        """Move by ``vector`` expressed in the rotated local frame."""
        self._transform[:3, 3] += self._transform[:3, :3] @ np.asarray(vector, dtype=np.float64)
        self._touch()

    def set_translation(self, vector: NDArray) -> None:
        self._transform[:3, 3] = vector
        self._touch()

    def set_rotation(self, matrix: NDArray) -> None:
        self._transform[:3, :3] = matrix
        self._touch()

    def set_columns(self, x: NDArray, y: NDArray, z: NDArray) -> None:
        """Set the rotation block column by column (local axes in parent)."""
        self._transform[:3, 0] = x
        self._transform[:3, 1] = y
        self._transform[:3, 2] = z
        self._touch()

    def reset(self) -> None:
        self._transform[:] = np.eye(4)
        self._touch()
