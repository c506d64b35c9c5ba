"""Fixed-layout big-endian records shared by both snapshot formats.

Each record knows its packed ``SIZE``, how to ``read`` itself from a
:class:`~mmldiff.cursor.ByteCursor`, and (where the change document has an
element for it) how to ``diff`` itself against the modified snapshot's copy.

Diff methods follow one rule: when any compared field differs, the node
carries every attribute of the record at its modified value, and nested
records or slots appear as children only where they differ themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, List, Sequence, Tuple, Type, TypeVar

from .changes import (
    ChangeNode,
    ShapeDescriptor,
    channel_to_float,
    change,
    fixed_to_float,
)
from .cursor import ByteCursor
from .errors import IncomparableSnapshots

R = TypeVar("R")


def read_array(cursor: ByteCursor, reader: Callable[[ByteCursor], R], count: int) -> Tuple[R, ...]:
    return tuple(reader(cursor) for _ in range(count))


def read_i16s(cursor: ByteCursor, count: int) -> Tuple[int, ...]:
    return tuple(cursor.read_i16be() for _ in range(count))


def blank(record_type: Type[R]) -> R:
    """Return the all-zero instance of ``record_type``."""
    return record_type.read(ByteCursor(bytes(record_type.SIZE)))  # type: ignore[attr-defined]


def _differs(a: object, b: object, fields: Sequence[str]) -> bool:
    return any(getattr(a, name) != getattr(b, name) for name in fields)


def _indexed(index: int | None, **attributes) -> dict:
    if index is None:
        return attributes
    return {"index": index, **attributes}


def _slot_changes(element: str, before: Sequence[int], after: Sequence[int]) -> List[ChangeNode]:
    """One ``<element type=slot which=value>`` per differing slot."""
    return [
        change(element, {"type": slot, "which": after[slot]})
        for slot in range(len(before))
        if before[slot] != after[slot]
    ]


@dataclass(frozen=True)
class RGBColor:
    red: int
    green: int
    blue: int

    SIZE: ClassVar[int] = 6

    @classmethod
    def read(cls, cursor: ByteCursor) -> "RGBColor":
        return cls(cursor.read_u16be(), cursor.read_u16be(), cursor.read_u16be())

    def diff(self, other: "RGBColor", index: int | None = None) -> ChangeNode | None:
        if self == other:
            return None
        return change(
            "color",
            _indexed(
                index,
                red=channel_to_float(other.red),
                green=channel_to_float(other.green),
                blue=channel_to_float(other.blue),
            ),
        )


@dataclass(frozen=True)
class Rect:
    top: int
    left: int
    bottom: int
    right: int

    SIZE: ClassVar[int] = 8

    @classmethod
    def read(cls, cursor: ByteCursor) -> "Rect":
        return cls(
            cursor.read_u16be(),
            cursor.read_u16be(),
            cursor.read_u16be(),
            cursor.read_u16be(),
        )

    def diff(self, other: "Rect", index: int | None = None) -> ChangeNode | None:
        if self == other:
            return None
        return change(
            "rect",
            _indexed(
                index,
                top=other.top,
                left=other.left,
                bottom=other.bottom,
                right=other.right,
            ),
        )


@dataclass(frozen=True)
class AnnotationDefinition:
    color: RGBColor
    font: int
    face: int
    sizes: Tuple[int, ...]

    SIZE: ClassVar[int] = 18

    @classmethod
    def read(cls, cursor: ByteCursor) -> "AnnotationDefinition":
        return cls(
            color=RGBColor.read(cursor),
            font=cursor.read_i16be(),
            face=cursor.read_i16be(),
            sizes=read_i16s(cursor, 4),
        )


@dataclass(frozen=True)
class LineDefinition:
    color: RGBColor
    pen_sizes: Tuple[int, ...]

    SIZE: ClassVar[int] = 14

    @classmethod
    def read(cls, cursor: ByteCursor) -> "LineDefinition":
        return cls(color=RGBColor.read(cursor), pen_sizes=read_i16s(cursor, 4))


@dataclass(frozen=True)
class ControlPanelDefinition:
    panel_class: int
    flags: int
    collection: int
    active_shape: int
    inactive_shape: int
    sounds: Tuple[int, ...]
    sound_frequency: int
    item: int

    SIZE: ClassVar[int] = 22
    COMPARED: ClassVar[Tuple[str, ...]] = (
        "panel_class",
        "flags",
        "collection",
        "active_shape",
        "inactive_shape",
        "sounds",
        "sound_frequency",
        "item",
    )

    @classmethod
    def read(cls, cursor: ByteCursor) -> "ControlPanelDefinition":
        return cls(
            panel_class=cursor.read_i16be(),
            flags=cursor.read_u16be(),
            collection=cursor.read_i16be(),
            active_shape=cursor.read_i16be(),
            inactive_shape=cursor.read_i16be(),
            sounds=read_i16s(cursor, 3),
            sound_frequency=cursor.read_i32be(),
            item=cursor.read_i16be(),
        )

    def diff(self, other: "ControlPanelDefinition", index: int | None = None) -> ChangeNode | None:
        if not _differs(self, other, self.COMPARED):
            return None
        # flags are compared but have no attribute of their own
        return change(
            "panel",
            _indexed(
                index,
                type=other.panel_class,
                coll=other.collection,
                active_frame=other.active_shape,
                inactive_frame=other.inactive_shape,
                pitch=fixed_to_float(other.sound_frequency),
                item=other.item,
            ),
            _slot_changes("sound", self.sounds, other.sounds),
        )


@dataclass(frozen=True)
class DamageDefinition:
    type: int
    flags: int
    base: int
    random: int
    scale: int

    SIZE: ClassVar[int] = 12

    @classmethod
    def read(cls, cursor: ByteCursor) -> "DamageDefinition":
        return cls(
            type=cursor.read_i16be(),
            flags=cursor.read_i16be(),
            base=cursor.read_i16be(),
            random=cursor.read_i16be(),
            scale=cursor.read_i32be(),
        )

    def diff(self, other: "DamageDefinition", index: int | None = None) -> ChangeNode | None:
        if self == other:
            return None
        return change(
            "damage",
            _indexed(
                index,
                type=other.type,
                flags=other.flags,
                base=other.base,
                random=other.random,
                scale=fixed_to_float(other.scale),
            ),
        )


@dataclass(frozen=True)
class DamageResponse:
    """How the player reacts to one damage type; ``type`` is the key."""

    type: int
    threshold: int
    fade: int
    sound: int
    death_sound: int
    death_action: int

    SIZE: ClassVar[int] = 12
    COMPARED: ClassVar[Tuple[str, ...]] = (
        "threshold",
        "fade",
        "sound",
        "death_sound",
        "death_action",
    )

    @classmethod
    def read(cls, cursor: ByteCursor) -> "DamageResponse":
        return cls(*read_i16s(cursor, 6))

    def diff(self, other: "DamageResponse", index: int | None = None) -> ChangeNode | None:
        if self.type != other.type:
            raise IncomparableSnapshots(
                f"damage response {index}: damage type {self.type} does not match {other.type}"
            )
        if not _differs(self, other, self.COMPARED):
            return None
        return change(
            "damage",
            _indexed(
                index,
                threshold=other.threshold,
                fade=other.fade,
                sound=other.sound,
                death_sound=other.death_sound,
                death_action=other.death_action,
            ),
        )


@dataclass(frozen=True)
class FadeDefinition:
    proc: int
    color: RGBColor
    initial_transparency: int
    final_transparency: int
    period: int
    flags: int
    priority: int

    SIZE: ClassVar[int] = 24

    @classmethod
    def read(cls, cursor: ByteCursor) -> "FadeDefinition":
        return cls(
            proc=cursor.read_u32be(),
            color=RGBColor.read(cursor),
            initial_transparency=cursor.read_i32be(),
            final_transparency=cursor.read_i32be(),
            period=cursor.read_i16be(),
            flags=cursor.read_u16be(),
            priority=cursor.read_i16be(),
        )

    def diff(self, other: "FadeDefinition", index: int | None = None) -> ChangeNode | None:
        if self == other:
            return None
        color = self.color.diff(other.color)
        return change(
            "fader",
            _indexed(
                index,
                type=other.proc,
                initial_opacity=fixed_to_float(other.initial_transparency),
                final_opacity=fixed_to_float(other.final_transparency),
                period=other.period,
                flags=other.flags,
                priority=other.priority,
            ),
            [color] if color is not None else [],
        )


@dataclass(frozen=True)
class MediaDefinition:
    collection: int
    shape: int
    shape_count: int
    shape_frequency: int
    transfer_mode: int
    damage_frequency: int
    damage: DamageDefinition
    detonation_effects: Tuple[int, ...]
    sounds: Tuple[int, ...]
    submerged_fade_effect: int

    SIZE: ClassVar[int] = 52
    # shape_frequency is unused by the engine
    COMPARED: ClassVar[Tuple[str, ...]] = (
        "collection",
        "shape",
        "shape_count",
        "transfer_mode",
        "damage_frequency",
        "damage",
        "detonation_effects",
        "sounds",
        "submerged_fade_effect",
    )

    @classmethod
    def read(cls, cursor: ByteCursor) -> "MediaDefinition":
        collection, shape, shape_count, shape_frequency, transfer_mode, damage_frequency = read_i16s(cursor, 6)
        return cls(
            collection=collection,
            shape=shape,
            shape_count=shape_count,
            shape_frequency=shape_frequency,
            transfer_mode=transfer_mode,
            damage_frequency=damage_frequency,
            damage=DamageDefinition.read(cursor),
            detonation_effects=read_i16s(cursor, 4),
            sounds=read_i16s(cursor, 9),
            submerged_fade_effect=cursor.read_i16be(),
        )

    def diff(self, other: "MediaDefinition", index: int | None = None) -> ChangeNode | None:
        if not _differs(self, other, self.COMPARED):
            return None
        children: List[ChangeNode] = []
        damage = self.damage.diff(other.damage)
        if damage is not None:
            children.append(damage)
        children.extend(_slot_changes("effect", self.detonation_effects, other.detonation_effects))
        children.extend(_slot_changes("sound", self.sounds, other.sounds))
        return change(
            "liquid",
            _indexed(
                index,
                coll=other.collection,
                frame=other.shape,
                transfer=other.transfer_mode,
                damage_freq=other.damage_frequency,
                submerged=other.submerged_fade_effect,
            ),
            children,
        )


@dataclass(frozen=True)
class SceneryDefinition:
    flags: int
    shape: int
    radius: int
    height: int
    destroyed_effect: int
    destroyed_shape: int

    SIZE: ClassVar[int] = 12

    @classmethod
    def read(cls, cursor: ByteCursor) -> "SceneryDefinition":
        return cls(
            flags=cursor.read_u16be(),
            shape=cursor.read_u16be(),
            radius=cursor.read_i16be(),
            height=cursor.read_i16be(),
            destroyed_effect=cursor.read_i16be(),
            destroyed_shape=cursor.read_u16be(),
        )

    def diff(self, other: "SceneryDefinition", index: int | None = None) -> ChangeNode | None:
        if self == other:
            return None
        children: List[ChangeNode] = []
        if self.shape != other.shape:
            shape = ShapeDescriptor.from_raw(other.shape).to_change()
            children.append(change("normal", children=[shape]))
        if self.destroyed_shape != other.destroyed_shape:
            shape = ShapeDescriptor.from_raw(other.destroyed_shape).to_change()
            children.append(change("destroyed", children=[shape]))
        return change(
            "object",
            _indexed(
                index,
                flags=other.flags,
                radius=other.radius,
                height=other.height,
                destruction=other.destroyed_effect,
            ),
            children,
        )


@dataclass(frozen=True)
class WeaponInterfaceAmmoDefinition:
    type: int
    screen_left: int
    screen_top: int
    ammo_across: int
    ammo_down: int
    delta_x: int
    delta_y: int
    bullet: int
    empty_bullet: int
    right_to_left: int

    SIZE: ClassVar[int] = 20

    @classmethod
    def read(cls, cursor: ByteCursor) -> "WeaponInterfaceAmmoDefinition":
        fields = read_i16s(cursor, 9)
        return cls(*fields, right_to_left=cursor.read_u16be())

    def diff(self, other: "WeaponInterfaceAmmoDefinition", index: int | None = None) -> ChangeNode | None:
        if self == other:
            return None
        return change(
            "ammo",
            _indexed(
                index,
                type=other.type,
                left=other.screen_left,
                top=other.screen_top,
                across=other.ammo_across,
                down=other.ammo_down,
                delta_x=other.delta_x,
                delta_y=other.delta_y,
                bullet_shape=other.bullet,
                empty_shape=other.empty_bullet,
                right_to_left=other.right_to_left != 0,
            ),
        )


@dataclass(frozen=True)
class WeaponInterfaceDefinition:
    item_id: int
    weapon_panel_shape: int
    weapon_name_start_y: int
    weapon_name_end_y: int
    weapon_name_start_x: int
    weapon_name_end_x: int
    standard_weapon_panel_top: int
    standard_weapon_panel_left: int
    multi_weapon: int
    ammo_data: Tuple[WeaponInterfaceAmmoDefinition, ...]

    SIZE: ClassVar[int] = 58
    # item_id cannot be remapped downstream; callers report it separately
    COMPARED: ClassVar[Tuple[str, ...]] = (
        "weapon_panel_shape",
        "weapon_name_start_y",
        "weapon_name_end_y",
        "weapon_name_start_x",
        "weapon_name_end_x",
        "standard_weapon_panel_top",
        "standard_weapon_panel_left",
        "multi_weapon",
        "ammo_data",
    )

    @classmethod
    def read(cls, cursor: ByteCursor) -> "WeaponInterfaceDefinition":
        fields = read_i16s(cursor, 8)
        multi_weapon = cursor.read_u16be()
        ammo = read_array(cursor, WeaponInterfaceAmmoDefinition.read, 2)
        return cls(*fields, multi_weapon=multi_weapon, ammo_data=ammo)

    def diff(self, other: "WeaponInterfaceDefinition", index: int | None = None) -> ChangeNode | None:
        if not _differs(self, other, self.COMPARED):
            return None
        ammo: List[ChangeNode] = []
        for slot, (before, after) in enumerate(zip(self.ammo_data, other.ammo_data)):
            node = before.diff(after, slot)
            if node is not None:
                ammo.append(node)
        return change(
            "weapon",
            _indexed(
                index,
                shape=other.weapon_panel_shape,
                start_y=other.weapon_name_start_y,
                end_y=other.weapon_name_end_y,
                start_x=other.weapon_name_start_x,
                end_x=other.weapon_name_end_x,
                top=other.standard_weapon_panel_top,
                left=other.standard_weapon_panel_left,
                multiple=other.multi_weapon != 0,
            ),
            ammo,
        )
