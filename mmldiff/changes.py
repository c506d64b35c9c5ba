"""Change nodes emitted by the diff and the value projections they carry."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional, Protocol, Tuple, TypeVar, Union

AttrValue = Union[int, float, bool, str]

FIXED_ONE = 65536.0
CHANNEL_MAX = 65535.0


@dataclass(frozen=True)
class ChangeNode:
    """One element of the change document.

    ``attributes`` holds the post-change values in emission order; ``scope``
    names the ancestor elements (below the document root) a top-level node
    is filed under.
    """

    element: str
    attributes: Tuple[Tuple[str, AttrValue], ...] = ()
    children: Tuple["ChangeNode", ...] = ()
    text: Optional[str] = None
    scope: Tuple[str, ...] = ()

    def get(self, name: str, default: AttrValue | None = None) -> AttrValue | None:
        for key, value in self.attributes:
            if key == name:
                return value
        return default

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.attributes)

    @property
    def index(self) -> int | None:
        value = self.get("index")
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    @property
    def path(self) -> str:
        path = "/".join(self.scope + (self.element,))
        if self.index is not None:
            path += f"[{self.index}]"
        return path

    def find_all(self, element: str) -> Tuple["ChangeNode", ...]:
        return tuple(child for child in self.children if child.element == element)

    def within(self, *scope: str) -> "ChangeNode":
        return replace(self, scope=tuple(scope))


def change(
    element: str,
    attributes: Mapping[str, AttrValue] | Iterable[Tuple[str, AttrValue]] = (),
    children: Iterable[ChangeNode] = (),
    *,
    text: str | None = None,
) -> ChangeNode:
    if isinstance(attributes, Mapping):
        attributes = attributes.items()
    return ChangeNode(
        element=element,
        attributes=tuple(attributes),
        children=tuple(children),
        text=text,
    )


T = TypeVar("T", contravariant=True)


class Diffable(Protocol[T]):
    """A record that can describe how ``other`` differs from itself."""

    def diff(self, other: T, index: int | None = None) -> ChangeNode | None:
        ...


def fixed_to_float(value: int) -> float:
    """16.16 fixed point to a decimal fraction."""
    return value / FIXED_ONE


def channel_to_float(value: int) -> float:
    """0..65535 color channel to 0.0..1.0."""
    return value / CHANNEL_MAX


@dataclass(frozen=True)
class ShapeDescriptor:
    """Packed 16-bit shape reference: CLUT in the top 5 bits, then collection, then frame sequence."""

    collection: int
    clut: int
    sequence: int

    @classmethod
    def from_raw(cls, raw: int) -> "ShapeDescriptor":
        return cls(
            collection=(raw >> 8) & 0x1F,
            clut=raw >> 11,
            sequence=raw & 0xFF,
        )

    def to_change(self) -> ChangeNode:
        return change(
            "shape",
            {"coll": self.collection, "clut": self.clut, "seq": self.sequence},
        )
