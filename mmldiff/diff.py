"""Structural diff of two decoded snapshots.

The result is a flat list of top-level :class:`ChangeNode` objects, each
carrying the ``scope`` it belongs under in the change document.  Nothing is
emitted for unchanged values; array elements keep their positional index.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .changes import ChangeNode, Diffable, change
from .chunks import PhysicsState, Tag, tag_name
from .errors import IncomparableSnapshots, UndecodableText
from .macbinary import ResourceState

Snapshot = Union[PhysicsState, ResourceState]

DEFAULT_ENCODING = "mac_roman"
FILE_NAME_STRINGS_ID = 129

LINE_COLOR_BASE = 8
ANNOTATION_COLOR_INDEX = 16
MAP_NAME_COLOR_INDEX = 17

FONT_NAMES: Mapping[int, str] = MappingProxyType({4: "Monaco", 22: "Courier"})

PHYSICS = "physics"
UNSUPPORTED = "unsupported"
OTHER = "other"

DEFAULT_TAG_CATEGORIES: Mapping[Tag, str] = MappingProxyType(
    {
        b"Effx": PHYSICS,
        b"Item": PHYSICS,
        b"Mons": PHYSICS,
        b"Proj": PHYSICS,
        b"Wep1": PHYSICS,
        b"Ivrm": UNSUPPORTED,
    }
)

# What each unsupported tag holds, for the diagnostic line
UNSUPPORTED_FEATURES: Mapping[Tag, str] = MappingProxyType({b"Ivrm": "8-bit infravision MML"})


def _each(
    before: Sequence[Diffable],
    after: Sequence[Diffable],
    *scope: str,
    first_index: int = 0,
) -> List[ChangeNode]:
    nodes: List[ChangeNode] = []
    for index, (old, new) in enumerate(zip(before, after), start=first_index):
        node = old.diff(new, index)
        if node is not None:
            nodes.append(node.within(*scope))
    return nodes


def _one(before: Diffable, after: Diffable, index: int, *scope: str) -> List[ChangeNode]:
    node = before.diff(after, index)
    return [] if node is None else [node.within(*scope)]


def _overhead_map_lines(base: PhysicsState, modified: PhysicsState) -> List[ChangeNode]:
    nodes: List[ChangeNode] = []
    for kind, (old, new) in enumerate(zip(base.line_definitions, modified.line_definitions)):
        for scale, (old_width, new_width) in enumerate(zip(old.pen_sizes, new.pen_sizes)):
            if old_width != new_width:
                nodes.append(
                    change("line", {"type": kind, "scale": scale, "width": new_width}).within("overhead_map")
                )
    return nodes


def _overhead_map_fonts(base: PhysicsState, modified: PhysicsState) -> List[ChangeNode]:
    old = base.annotation_definition
    new = modified.annotation_definition
    nodes: List[ChangeNode] = []
    for index, (old_size, new_size) in enumerate(zip(old.sizes, new.sizes)):
        if old.font == new.font and old.face == new.face and old_size == new_size:
            continue
        attributes: Dict[str, object] = {"index": index}
        if new.font in FONT_NAMES:
            attributes["name"] = FONT_NAMES[new.font]
        attributes["size"] = new_size
        attributes["style"] = new.face
        nodes.append(change("font", attributes).within("overhead_map"))
    return nodes


def _random_sounds(base: PhysicsState, modified: PhysicsState) -> List[ChangeNode]:
    return [
        change("random", {"index": index, "sound": new}).within("sounds")
        for index, (old, new) in enumerate(zip(base.random_sounds, modified.random_sounds))
        if old != new
    ]


def diff_physics(base: PhysicsState, modified: PhysicsState) -> List[ChangeNode]:
    nodes: List[ChangeNode] = []
    nodes += _each(base.control_panels, modified.control_panels, "control_panels")
    nodes += _each(base.fade_definitions, modified.fade_definitions, "faders")
    nodes += _each(base.infravision_colors, modified.infravision_colors, "infravision")

    nodes += _each(base.polygon_colors, modified.polygon_colors, "overhead_map")
    nodes += _each(
        [line.color for line in base.line_definitions],
        [line.color for line in modified.line_definitions],
        "overhead_map",
        first_index=LINE_COLOR_BASE,
    )
    nodes += _one(
        base.annotation_definition.color,
        modified.annotation_definition.color,
        ANNOTATION_COLOR_INDEX,
        "overhead_map",
    )
    nodes += _one(base.map_name_color, modified.map_name_color, MAP_NAME_COLOR_INDEX, "overhead_map")
    nodes += _overhead_map_lines(base, modified)
    nodes += _overhead_map_fonts(base, modified)

    nodes += _each(base.damage_responses, modified.damage_responses, "player")
    nodes += _each(base.media_definitions, modified.media_definitions, "liquids")
    nodes += _random_sounds(base, modified)
    nodes += _each(base.scenery_definitions, modified.scenery_definitions, "scenery")
    nodes += _each(base.weapon_interface_definitions, modified.weapon_interface_definitions, "interface")
    return nodes


def physics_warnings(base: PhysicsState, modified: PhysicsState) -> List[str]:
    """Changes that exist in the data but cannot be expressed in the document."""
    warnings: List[str] = []
    for index, (old_weapon, new_weapon) in enumerate(
        zip(base.weapon_interface_definitions, modified.weapon_interface_definitions)
    ):
        if old_weapon.item_id != new_weapon.item_id:
            warnings.append(f"Weapon HUD items changed (weapon {index}); Aleph One does not support this!")

    old = base.annotation_definition
    new = modified.annotation_definition
    if (old.font, old.face, old.sizes) != (new.font, new.face, new.sizes) and new.font not in FONT_NAMES:
        warnings.append(f"Overhead map font {new.font} has no known name")
    return warnings


def _decode_text(text: bytes, encoding: str, resource_id: int, index: int) -> str:
    try:
        return text.decode(encoding)
    except UnicodeDecodeError as exc:
        raise UndecodableText(
            f"STR# {resource_id} string {index} is not valid {encoding}: {exc.reason} at byte {exc.start}"
        ) from exc


def _stringsets(base: ResourceState, modified: ResourceState, encoding: str) -> List[ChangeNode]:
    for resource_id in sorted(modified.strings.keys() - base.strings.keys()):
        if resource_id != FILE_NAME_STRINGS_ID:
            raise IncomparableSnapshots(f"STR# {resource_id} is missing from the base file")

    nodes: List[ChangeNode] = []
    for resource_id, old_strings in base.strings.items():
        if resource_id == FILE_NAME_STRINGS_ID:
            continue
        if resource_id not in modified.strings:
            raise IncomparableSnapshots(f"STR# {resource_id} is missing from the modified file")
        new_strings = modified.strings[resource_id]
        if len(old_strings) != len(new_strings):
            raise IncomparableSnapshots(
                f"STR# {resource_id} holds {len(old_strings)} strings in the base "
                f"but {len(new_strings)} in the modified file"
            )
        children = [
            change("string", {"index": index}, text=_decode_text(new, encoding, resource_id, index))
            for index, (old, new) in enumerate(zip(old_strings, new_strings))
            if old != new
        ]
        if children:
            nodes.append(change("stringset", {"index": resource_id}, children))
    return nodes


def _optional_table(
    name: str,
    before: Optional[Tuple[Diffable, ...]],
    after: Optional[Tuple[Diffable, ...]],
) -> List[ChangeNode]:
    if before is None and after is None:
        return []
    if before is None or after is None:
        missing = "base" if before is None else "modified"
        raise IncomparableSnapshots(f"{name} is missing from the {missing} file")
    return _each(before, after, "interface")


def diff_resources(
    base: ResourceState,
    modified: ResourceState,
    *,
    strings_only: bool = False,
    encoding: str = DEFAULT_ENCODING,
) -> List[ChangeNode]:
    nodes = _stringsets(base, modified, encoding)
    if strings_only:
        return nodes
    nodes += _optional_table("clut 130", base.interface_colors, modified.interface_colors)
    nodes += _optional_table("nrct 128", base.interface_rects, modified.interface_rects)
    return nodes


def diff(base: Snapshot, modified: Snapshot, **options) -> List[ChangeNode]:
    """Diff two snapshots of the same kind; options pass through to :func:`diff_resources`."""
    if type(base) is not type(modified):
        raise IncomparableSnapshots(
            f"cannot compare a {type(base).__name__} with a {type(modified).__name__}"
        )
    if isinstance(base, PhysicsState):
        return diff_physics(base, modified)
    return diff_resources(base, modified, **options)


@dataclass(frozen=True)
class TagDifference:
    tag: Tag
    category: str
    size: int  # payload size in the modified file


@dataclass(frozen=True)
class TagSummary:
    differences: Tuple[TagDifference, ...] = ()

    def tags(self, category: str) -> Tuple[Tag, ...]:
        return tuple(item.tag for item in self.differences if item.category == category)

    @property
    def physics_differs(self) -> bool:
        return any(item.category == PHYSICS for item in self.differences)

    def messages(self) -> List[str]:
        lines: List[str] = []
        for item in self.differences:
            if item.category == UNSUPPORTED:
                feature = UNSUPPORTED_FEATURES.get(item.tag, "it in MML")
                lines.append(f"'{tag_name(item.tag)}' differs, but Aleph One does not support {feature}")
            elif item.category != PHYSICS:
                # custom categories report like OTHER
                lines.append(f"{tag_name(item.tag)} differs ({item.size})")
        if self.physics_differs:
            lines.append("Physics models differ")
        return lines


def summarize_tags(
    base: PhysicsState,
    modified: PhysicsState,
    categories: Mapping[Tag, str] = DEFAULT_TAG_CATEGORIES,
) -> TagSummary:
    """Compare opaque chunks by bytes and classify the ones that differ."""
    ordered = list(base.tags)
    ordered += [tag for tag in modified.tags if tag not in base.tags]

    differences: List[TagDifference] = []
    for tag in ordered:
        old = base.tags.get(tag, b"")
        new = modified.tags.get(tag, b"")
        if old != new:
            differences.append(TagDifference(tag=tag, category=categories.get(tag, OTHER), size=len(new)))
    return TagSummary(differences=tuple(differences))
