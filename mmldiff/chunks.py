"""Tagged chunk container (Fux! physics state files).

The file is a flat run of chunks::

    tag     4 bytes, not NUL terminated
    length  u32 big-endian
    payload ``length`` bytes

Known tags carry fixed arrays of packed records and must declare exactly
their mandated payload size.  Unknown tags are kept verbatim so they can be
compared byte for byte.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from .cursor import ByteCursor, Source, as_cursor
from .errors import CorruptContainer, Truncated
from .records import (
    AnnotationDefinition,
    ControlPanelDefinition,
    DamageResponse,
    FadeDefinition,
    LineDefinition,
    MediaDefinition,
    RGBColor,
    SceneryDefinition,
    WeaponInterfaceDefinition,
    blank,
    read_array,
    read_i16s,
)

CHUNK_HEADER_SIZE = 8

CONTROL_PANEL_COUNT = 54
DAMAGE_RESPONSE_COUNT = 24
FADE_DEFINITION_COUNT = 32
INFRAVISION_COLOR_COUNT = 4
LINE_DEFINITION_COUNT = 3
MEDIA_DEFINITION_COUNT = 5
POLYGON_COLOR_COUNT = 6
RANDOM_SOUND_COUNT = 5
SCENERY_DEFINITION_COUNT = 61
WEAPON_INTERFACE_COUNT = 10

Tag = bytes


def tag_name(tag: Tag) -> str:
    return tag.decode("latin-1")


@dataclass(frozen=True)
class ChunkLayout:
    """What a known tag decodes into.  ``target`` is None for validated-but-skipped tags."""

    tag: Tag
    size: int
    target: Optional[str]
    reader: Optional[Callable[[ByteCursor], object]] = None


def _array(reader: Callable[[ByteCursor], object], count: int) -> Callable[[ByteCursor], tuple]:
    return lambda cursor: read_array(cursor, reader, count)


KNOWN_CHUNKS: Mapping[Tag, ChunkLayout] = MappingProxyType(
    {
        layout.tag: layout
        for layout in (
            ChunkLayout(b"Clfx", 768, "fade_definitions", _array(FadeDefinition.read, FADE_DEFINITION_COUNT)),
            ChunkLayout(b"Damg", 288, "damage_responses", _array(DamageResponse.read, DAMAGE_RESPONSE_COUNT)),
            ChunkLayout(b"Ivcl", 24, "infravision_colors", _array(RGBColor.read, INFRAVISION_COLOR_COUNT)),
            ChunkLayout(b"Mdia", 260, "media_definitions", _array(MediaDefinition.read, MEDIA_DEFINITION_COUNT)),
            ChunkLayout(b"Mpln", 42, "line_definitions", _array(LineDefinition.read, LINE_DEFINITION_COUNT)),
            ChunkLayout(b"Mpnc", 6, "map_name_color", RGBColor.read),
            ChunkLayout(b"Mppl", 36, "polygon_colors", _array(RGBColor.read, POLYGON_COLOR_COUNT)),
            ChunkLayout(b"Mptx", 18, "annotation_definition", AnnotationDefinition.read),
            ChunkLayout(b"Panl", 1188, "control_panels", _array(ControlPanelDefinition.read, CONTROL_PANEL_COUNT)),
            ChunkLayout(b"Rand", 10, "random_sounds", lambda cursor: read_i16s(cursor, RANDOM_SOUND_COUNT)),
            ChunkLayout(b"Scnr", 732, "scenery_definitions", _array(SceneryDefinition.read, SCENERY_DEFINITION_COUNT)),
            # Type has no counterpart in the change document
            ChunkLayout(b"Type", 28, None),
            ChunkLayout(b"Wep2", 580, "weapon_interface_definitions", _array(WeaponInterfaceDefinition.read, WEAPON_INTERFACE_COUNT)),
        )
    }
)


def _blank_array(record_type, count: int) -> Callable[[], tuple]:
    return lambda: (blank(record_type),) * count


@dataclass(frozen=True)
class PhysicsState:
    """Decoded chunk container.

    Known tags that were absent from the input keep their all-zero records.
    ``tags`` maps every unknown tag to its raw payload in first-encounter order.
    """

    annotation_definition: AnnotationDefinition = field(default_factory=lambda: blank(AnnotationDefinition))
    control_panels: Tuple[ControlPanelDefinition, ...] = field(
        default_factory=_blank_array(ControlPanelDefinition, CONTROL_PANEL_COUNT)
    )
    damage_responses: Tuple[DamageResponse, ...] = field(
        default_factory=_blank_array(DamageResponse, DAMAGE_RESPONSE_COUNT)
    )
    fade_definitions: Tuple[FadeDefinition, ...] = field(
        default_factory=_blank_array(FadeDefinition, FADE_DEFINITION_COUNT)
    )
    infravision_colors: Tuple[RGBColor, ...] = field(
        default_factory=_blank_array(RGBColor, INFRAVISION_COLOR_COUNT)
    )
    line_definitions: Tuple[LineDefinition, ...] = field(
        default_factory=_blank_array(LineDefinition, LINE_DEFINITION_COUNT)
    )
    map_name_color: RGBColor = field(default_factory=lambda: blank(RGBColor))
    media_definitions: Tuple[MediaDefinition, ...] = field(
        default_factory=_blank_array(MediaDefinition, MEDIA_DEFINITION_COUNT)
    )
    polygon_colors: Tuple[RGBColor, ...] = field(
        default_factory=_blank_array(RGBColor, POLYGON_COLOR_COUNT)
    )
    random_sounds: Tuple[int, ...] = (0,) * RANDOM_SOUND_COUNT
    scenery_definitions: Tuple[SceneryDefinition, ...] = field(
        default_factory=_blank_array(SceneryDefinition, SCENERY_DEFINITION_COUNT)
    )
    weapon_interface_definitions: Tuple[WeaponInterfaceDefinition, ...] = field(
        default_factory=_blank_array(WeaponInterfaceDefinition, WEAPON_INTERFACE_COUNT)
    )
    tags: Mapping[Tag, bytes] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ChunkHeader:
    tag: Tag
    length: int
    offset: int  # absolute offset of the header itself

    @property
    def payload_offset(self) -> int:
        return self.offset + CHUNK_HEADER_SIZE


@dataclass(frozen=True)
class Chunk:
    header: ChunkHeader
    payload: bytes

    @property
    def tag(self) -> Tag:
        return self.header.tag


def read_chunk_header(cursor: ByteCursor) -> ChunkHeader | None:
    """Read the next header, or return None at a clean end of stream."""
    offset = cursor.offset
    raw = cursor.read_upto(CHUNK_HEADER_SIZE)
    if not raw:
        return None
    if len(raw) != CHUNK_HEADER_SIZE:
        raise Truncated(
            f"chunk header at offset {offset} cut short ({len(raw)} of {CHUNK_HEADER_SIZE} bytes)",
            offset=offset,
        )
    return ChunkHeader(tag=raw[:4], length=int.from_bytes(raw[4:], "big"), offset=offset)


def _read_payload(cursor: ByteCursor, header: ChunkHeader) -> bytes:
    try:
        return cursor.read_exact(header.length)
    except Truncated as exc:
        raise Truncated(
            f"chunk '{tag_name(header.tag)}' at offset {header.offset} declares "
            f"{header.length} bytes but the file ends first",
            offset=exc.offset,
            tag=header.tag,
        ) from exc


def iter_chunks(source: Source) -> Iterator[Chunk]:
    """Yield every chunk without interpreting payloads."""
    cursor = as_cursor(source)
    while True:
        header = read_chunk_header(cursor)
        if header is None:
            return
        yield Chunk(header=header, payload=_read_payload(cursor, header))


def decode_chunks(source: Source) -> PhysicsState:
    """Decode a chunk container into a :class:`PhysicsState`.

    Raises :class:`CorruptContainer` when a known tag declares the wrong
    payload size and :class:`Truncated` when the file ends mid-chunk.
    """
    cursor = as_cursor(source)
    values: Dict[str, object] = {}
    tags: Dict[Tag, bytes] = {}

    while True:
        header = read_chunk_header(cursor)
        if header is None:
            break

        layout = KNOWN_CHUNKS.get(header.tag)
        if layout is None:
            tags[header.tag] = _read_payload(cursor, header)
            continue

        if header.length != layout.size:
            raise CorruptContainer(
                f"chunk '{tag_name(header.tag)}' at offset {header.offset} declares "
                f"{header.length} bytes, expected {layout.size}",
                offset=header.offset,
                tag=header.tag,
            )
        payload = _read_payload(cursor, header)
        if layout.target is not None:
            values[layout.target] = layout.reader(ByteCursor(payload))

    return PhysicsState(tags=MappingProxyType(tags), **values)
